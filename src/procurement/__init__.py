"""
PARTPULSE NEXUS - Procurement Scheduling Module

Lead-time scheduling for new parts
- Lead-Time Resolver
- Order Status Engine
- Production Quantity Calculator
- Early-Order Risk Detector
- Timeline Geometry Calculator
- Portfolio Metrics & Scheduler facade
"""

from .errors import (
    IssueCategory,
    IssueSeverity,
    SchedulingIssue,
    SchedulingContractError,
    InvalidPhaseError,
    InvalidScaleError,
)

from .models import (
    Phase,
    FreightType,
    PartStatus,
    OrderStatus,
    GateKey,
    GateStatus,
    GATE_ORDER,
    GATE_METADATA,
    PhaseOrder,
    Part,
    Gate,
    GateSequence,
    load_parts,
    to_date,
)

from .lead_time import (
    BaseLeadSource,
    LeadTimeBreakdown,
    parse_lead_time_weeks,
    resolve_lead_time,
    calculate_order_by_date,
    calculate_expected_arrival,
    shift_date,
    order_by_date,
    with_freight_type,
)

from .quantities import (
    QuantityBreakdown,
    production_quantity_breakdown,
    total_production_qty,
    requested_quantity,
    receipt_percent,
    qty_outstanding,
)

from .order_status import (
    OrderRecord,
    OrderStatusInfo,
    evaluate_order_status,
    is_order_late,
    get_order_status_info,
)

from .early_order import (
    EarlyOrderCheck,
    check_early_order,
    get_next_gate,
    calculate_gate_progress,
    get_current_gate_name,
    get_next_gate_date,
)

from .timeline import (
    ZoomLevel,
    BarGeometry,
    BarStyle,
    TimelineBounds,
    GateMarker,
    min_bar_width_for_scale,
    days_between,
    date_to_x,
    bar_geometry,
    bar_style,
    timeline_bounds,
    gate_markers,
)

from .metrics import (
    RiskLevel,
    PartStats,
    calculate_part_stats,
    calculate_risk_level,
    schedule_frame,
    group_summary,
)

from .engine import (
    ProcurementScheduler,
    PartSchedule,
    PortfolioSchedule,
    get_procurement_scheduler,
    reset_procurement_scheduler,
    schedule_part,
    schedule_portfolio,
    setup_logger,
)

__all__ = [
    # Errors
    'IssueCategory',
    'IssueSeverity',
    'SchedulingIssue',
    'SchedulingContractError',
    'InvalidPhaseError',
    'InvalidScaleError',
    # Models
    'Phase',
    'FreightType',
    'PartStatus',
    'OrderStatus',
    'GateKey',
    'GateStatus',
    'GATE_ORDER',
    'GATE_METADATA',
    'PhaseOrder',
    'Part',
    'Gate',
    'GateSequence',
    'load_parts',
    'to_date',
    # Lead time
    'BaseLeadSource',
    'LeadTimeBreakdown',
    'parse_lead_time_weeks',
    'resolve_lead_time',
    'calculate_order_by_date',
    'calculate_expected_arrival',
    'shift_date',
    'order_by_date',
    'with_freight_type',
    # Quantities
    'QuantityBreakdown',
    'production_quantity_breakdown',
    'total_production_qty',
    'requested_quantity',
    'receipt_percent',
    'qty_outstanding',
    # Order status
    'OrderRecord',
    'OrderStatusInfo',
    'evaluate_order_status',
    'is_order_late',
    'get_order_status_info',
    # Early order
    'EarlyOrderCheck',
    'check_early_order',
    'get_next_gate',
    'calculate_gate_progress',
    'get_current_gate_name',
    'get_next_gate_date',
    # Timeline
    'ZoomLevel',
    'BarGeometry',
    'BarStyle',
    'TimelineBounds',
    'GateMarker',
    'min_bar_width_for_scale',
    'days_between',
    'date_to_x',
    'bar_geometry',
    'bar_style',
    'timeline_bounds',
    'gate_markers',
    # Metrics
    'RiskLevel',
    'PartStats',
    'calculate_part_stats',
    'calculate_risk_level',
    'schedule_frame',
    'group_summary',
    # Scheduler
    'ProcurementScheduler',
    'PartSchedule',
    'PortfolioSchedule',
    'get_procurement_scheduler',
    'reset_procurement_scheduler',
    'schedule_part',
    'schedule_portfolio',
    'setup_logger',
]
