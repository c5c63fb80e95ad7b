"""
PARTPULSE NEXUS - Configuration Package
"""

from .settings import (
    PROJECT_ROOT,
    LOGS_DIR,
    LeadTimeConfig,
    QuantityConfig,
    EarlyOrderConfig,
    TimelineConfig,
    LEAD_TIME_CONFIG,
    QUANTITY_CONFIG,
    EARLY_ORDER_CONFIG,
    TIMELINE_CONFIG,
    LOG_FORMAT,
    LOG_ROTATION,
    LOG_RETENTION,
)
