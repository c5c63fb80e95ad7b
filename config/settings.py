"""
PARTPULSE NEXUS - Configuration Settings
========================================
"""

from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict

# ============================================
# PATH CONFIGURATION
# ============================================

# Project root (one level above this file)
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Output paths (created on demand by setup_logger)
LOGS_DIR = PROJECT_ROOT / "logs"


# ============================================
# LEAD TIME CONFIGURATION
# ============================================

@dataclass
class LeadTimeConfig:
    """Defaults used when a part is missing lead-time inputs."""

    default_base_days: int = 30        # No base days and no weeks text
    default_sea_freight_days: int = 35
    default_air_freight_days: int = 5
    days_per_week: int = 7

    # Base and transit days above this are clamped (ten years)
    max_lead_time_days: int = 3650


# ============================================
# QUANTITY CONFIGURATION
# ============================================

@dataclass
class QuantityConfig:
    """Production quantity derivation settings."""

    # Scrap rates at or above 1.0 are clamped here (100x multiplier at most)
    max_scrap_rate: float = 0.99
    min_scrap_rate: float = 0.0

    # Forecast and override quantities above this are clamped
    max_quantity: float = 1e12


# ============================================
# EARLY ORDER CONFIGURATION
# ============================================

@dataclass
class EarlyOrderConfig:
    """Early-order risk detection settings."""

    # DTX (Decision to Execute) is where everything normally gets ordered
    trigger_gate: str = "dtx"

    # Gate statuses that count as "reached"
    passed_statuses: tuple = ("passed",)


# ============================================
# TIMELINE CONFIGURATION
# ============================================

@dataclass
class TimelineConfig:
    """Geometry and styling for the procurement timeline."""

    # Each segment stays clickable
    min_segment_width: float = 4.0

    # Pixels per day at each zoom level
    zoom_scales: Dict[str, float] = field(default_factory=lambda: {
        'day': 40.0,
        'week': 12.0,
        'month': 4.0,
        'quarter': 1.5,
        'year': 0.5,
        'multi-year': 0.15,
    })

    # Minimum total bar width per zoom level
    min_bar_widths: Dict[str, float] = field(default_factory=lambda: {
        'day': 20.0,
        'week': 16.0,
        'month': 12.0,
        'quarter': 10.0,
        'year': 8.0,
        'multi-year': 8.0,
    })

    # Padding around the timeline bounds (days)
    start_buffer_days: int = 7
    end_buffer_days: int = 14

    # Bar colors by display state
    status_colors: Dict[str, str] = field(default_factory=lambda: {
        'late': '#f59e0b',         # Amber (warning)
        'received': '#10b981',     # Emerald (success)
        'ordered': '#3b82f6',      # Blue (neutral)
        'not_ordered': '#64748b',  # Slate (muted)
        'no_target': '#1e293b',
    })

    # (order segment, transit segment) opacity
    ordered_opacity: tuple = (1.0, 0.5)
    unordered_opacity: tuple = (0.6, 0.3)


# ============================================
# LOGGING CONFIGURATION
# ============================================

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level:<8} | {module}:{function}:{line} | {message}"
LOG_ROTATION = "10 MB"
LOG_RETENTION = "7 days"


# ============================================
# EXPORT CONFIGURATION INSTANCES
# ============================================

LEAD_TIME_CONFIG = LeadTimeConfig()
QUANTITY_CONFIG = QuantityConfig()
EARLY_ORDER_CONFIG = EarlyOrderConfig()
TIMELINE_CONFIG = TimelineConfig()
