"""
PARTPULSE NEXUS - Order Status Engine

Derives the order status of one phase of a part relative to a reference
"now". Status and lateness are reported separately: a late order is still
"ordered" for display, while downstream badges and filters query the late
flag on its own.

Precedence:
    1. no target date                 -> no_target
    2. received (and receipt complete) -> received, never late
    3. PO number, now <= order-by     -> ordered
    4. PO number, now >  order-by     -> ordered + late
    5. no PO,     now >  order-by     -> not_ordered + late
    6. no PO,     now <= order-by     -> not_ordered

A partial receipt (received qty below requested) keeps the phase on the
ordered track until the full quantity is in.
"""

from datetime import date, datetime
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from loguru import logger

from config.settings import QUANTITY_CONFIG, QuantityConfig

from .errors import SchedulingIssue
from .lead_time import (
    LeadTimeBreakdown,
    resolve_lead_time,
    calculate_order_by_date,
    calculate_expected_arrival,
)
from .models import Part, Phase, OrderStatus, coerce_phase, to_date
from .quantities import (
    requested_quantity,
    receipt_percent,
    qty_outstanding,
    is_receipt_complete,
)


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class OrderRecord:
    """Derived order facts for one part and phase (never persisted)."""
    part_code: str
    phase: Phase
    status: OrderStatus
    is_late: bool = False
    order_by_date: Optional[date] = None
    target_date: Optional[date] = None
    effective_lead_days: Optional[int] = None
    base_days: Optional[int] = None
    transit_days: Optional[int] = None
    expected_arrival_date: Optional[date] = None
    receipt_percent: float = 0.0
    qty_outstanding: float = 0.0
    days_until_order_by: Optional[int] = None
    issues: List[SchedulingIssue] = field(default_factory=list)

    @property
    def display_status(self) -> OrderStatus:
        """Single badge state: lateness wins over ordered / not ordered."""
        if self.is_late and self.status in (OrderStatus.ORDERED, OrderStatus.NOT_ORDERED):
            return OrderStatus.LATE
        return self.status

    @property
    def is_ordered(self) -> bool:
        return self.status in (OrderStatus.ORDERED, OrderStatus.RECEIVED)

    @property
    def is_complete(self) -> bool:
        return self.status == OrderStatus.RECEIVED

    def to_dict(self) -> Dict:
        return {
            'part_code': self.part_code,
            'phase': self.phase.value,
            'status': self.status.value,
            'display_status': self.display_status.value,
            'is_late': self.is_late,
            'order_by_date': self.order_by_date.isoformat() if self.order_by_date else None,
            'target_date': self.target_date.isoformat() if self.target_date else None,
            'effective_lead_days': self.effective_lead_days,
            'expected_arrival_date': self.expected_arrival_date.isoformat() if self.expected_arrival_date else None,
            'receipt_percent': round(self.receipt_percent, 1),
            'qty_outstanding': self.qty_outstanding,
        }


@dataclass(frozen=True)
class OrderStatusInfo:
    """Badge text for an order record."""
    status: OrderStatus
    label: str
    icon: str           # none | check | warning | received
    tooltip: str = ""


STATUS_LABELS: Dict[OrderStatus, tuple] = {
    OrderStatus.NO_TARGET: ("No target", "none"),
    OrderStatus.NOT_ORDERED: ("Not ordered", "none"),
    OrderStatus.ORDERED: ("Ordered", "check"),
    OrderStatus.RECEIVED: ("Received", "received"),
    OrderStatus.LATE: ("Late", "warning"),
}


# =============================================================================
# ENGINE
# =============================================================================

def _as_day(now: Union[date, datetime]) -> date:
    day = to_date(now)
    if day is None:
        raise TypeError(f"now must be a date or datetime, got {now!r}")
    return day


def evaluate_order_status(part: Part,
                          phase: Union[str, Phase],
                          now: Union[date, datetime],
                          breakdown: Optional[LeadTimeBreakdown] = None,
                          quantity_config: QuantityConfig = QUANTITY_CONFIG) -> OrderRecord:
    """
    Derive status, lateness and order-by date for one phase of a part.

    Pass the breakdown resolved by the caller so the record agrees with any
    bar drawn from the same lead time; quantity_config decides the production
    quantity a receipt is measured against.
    """
    phase = coerce_phase(phase)
    today = _as_day(now)
    order = part.order_for(phase)

    requested = requested_quantity(part, phase, quantity_config)
    percent = receipt_percent(order.received_qty, requested)
    outstanding = qty_outstanding(order.received_qty, requested)

    # Rule 1
    if order.target_date is None:
        return OrderRecord(
            part_code=part.code,
            phase=phase,
            status=OrderStatus.NO_TARGET,
            receipt_percent=percent,
            qty_outstanding=outstanding,
        )

    breakdown = breakdown or resolve_lead_time(part, phase)
    effective = breakdown.effective_days
    order_by = calculate_order_by_date(order.target_date, effective)
    past_order_by = today > order_by

    expected_arrival = None
    if order.po_date is not None:
        expected_arrival = calculate_expected_arrival(order.po_date, effective)

    complete = is_receipt_complete(order.received_qty, requested)

    # Rule 2
    if order.received and complete:
        status, is_late = OrderStatus.RECEIVED, False
        percent = 100.0 if requested else percent
        outstanding = 0.0
    # Rules 3-4 (a partial receipt proves the order exists)
    elif order.has_po or order.received:
        status, is_late = OrderStatus.ORDERED, past_order_by
    # Rules 5-6
    else:
        status, is_late = OrderStatus.NOT_ORDERED, past_order_by

    if is_late:
        logger.debug(f"[{part.code}] {phase.value} late: order-by {order_by} < {today}")

    return OrderRecord(
        part_code=part.code,
        phase=phase,
        status=status,
        is_late=is_late,
        order_by_date=order_by,
        target_date=order.target_date,
        effective_lead_days=effective,
        base_days=breakdown.base_days,
        transit_days=breakdown.transit_days,
        expected_arrival_date=expected_arrival,
        receipt_percent=percent,
        qty_outstanding=outstanding,
        days_until_order_by=(order_by - today).days,
        issues=list(breakdown.issues),
    )


def is_order_late(part: Part, phase: Union[str, Phase], now: Union[date, datetime]) -> bool:
    """Shortcut for the lateness flag alone."""
    return evaluate_order_status(part, phase, now).is_late


def get_order_status_info(record: OrderRecord) -> OrderStatusInfo:
    """Label, icon and tooltip for a status badge."""
    display = record.display_status
    label, icon = STATUS_LABELS[display]

    if display == OrderStatus.NO_TARGET:
        tooltip = f"No {record.phase.value} target date set"
    elif display == OrderStatus.RECEIVED:
        tooltip = "Stock received in plant"
    elif display == OrderStatus.LATE and record.status == OrderStatus.ORDERED:
        tooltip = f"Order-by date {record.order_by_date.isoformat()} passed, not yet received"
    elif display == OrderStatus.LATE:
        tooltip = f"Should have been ordered by {record.order_by_date.isoformat()}"
    elif display == OrderStatus.ORDERED:
        tooltip = f"Ordered ({record.receipt_percent:.0f}% received)"
    else:
        tooltip = f"Order by {record.order_by_date.isoformat()} ({record.days_until_order_by} days)"

    return OrderStatusInfo(status=display, label=label, icon=icon, tooltip=tooltip)
