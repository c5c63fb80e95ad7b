"""
PARTPULSE NEXUS - Portfolio Metrics

Counts and tables over a project's parts: ordered / at-risk / late per phase,
missing information, early-order exposure, receipt readiness, plus a pandas
frame of every part and phase for grouping and export.
"""

from datetime import date, datetime
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union
from enum import Enum

import pandas as pd
from loguru import logger

from .early_order import EarlyOrderCheck, check_early_order
from .models import Part, Phase, PartStatus, GateSequence, OrderStatus, UNASSIGNED_GROUP_CODE
from .order_status import OrderRecord, evaluate_order_status
from .quantities import total_production_qty


# =============================================================================
# ENUMS
# =============================================================================

class RiskLevel(Enum):
    """Share-of-portfolio risk level."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class PartStats:
    """Aggregate counts for a set of parts."""
    total: int = 0
    by_status: Dict[str, int] = field(default_factory=lambda: {s.value: 0 for s in PartStatus})

    ordered: int = 0                # Any phase with a PO
    sprint_at_risk: int = 0         # Sprint target, no PO
    sprint_late: int = 0
    production_at_risk: int = 0
    production_late: int = 0
    missing_info: int = 0           # No vendor, no lead time, or no PO on a targeted phase
    long_lead_time: int = 0         # Needs early order
    unassigned: int = 0             # No group code
    late_parts: int = 0             # Parts with any late phase

    sprint_targeted: int = 0
    sprint_received: int = 0
    production_targeted: int = 0
    production_received: int = 0

    @property
    def sprint_readiness_percent(self) -> float:
        if self.sprint_targeted == 0:
            return 0.0
        return self.sprint_received / self.sprint_targeted * 100

    @property
    def production_readiness_percent(self) -> float:
        if self.production_targeted == 0:
            return 0.0
        return self.production_received / self.production_targeted * 100

    @property
    def at_risk(self) -> int:
        return self.sprint_at_risk + self.production_at_risk

    @property
    def late(self) -> int:
        return self.sprint_late + self.production_late

    @property
    def risk_level(self) -> RiskLevel:
        return calculate_risk_level(self.late_parts, self.total)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'by_status': dict(self.by_status),
            'ordered': self.ordered,
            'sprint_at_risk': self.sprint_at_risk,
            'sprint_late': self.sprint_late,
            'production_at_risk': self.production_at_risk,
            'production_late': self.production_late,
            'missing_info': self.missing_info,
            'long_lead_time': self.long_lead_time,
            'unassigned': self.unassigned,
            'late_parts': self.late_parts,
            'sprint_readiness_percent': round(self.sprint_readiness_percent, 1),
            'production_readiness_percent': round(self.production_readiness_percent, 1),
            'risk_level': self.risk_level.value,
        }


# =============================================================================
# CALCULATIONS
# =============================================================================

def calculate_risk_level(at_risk: int, total: int) -> RiskLevel:
    """>20% critical, >10% high, >5% medium, else low."""
    if total <= 0:
        return RiskLevel.LOW
    ratio = at_risk / total
    if ratio > 0.20:
        return RiskLevel.CRITICAL
    if ratio > 0.10:
        return RiskLevel.HIGH
    if ratio > 0.05:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def is_at_risk(record: OrderRecord) -> bool:
    """Targeted phase still without a purchase order."""
    return record.status == OrderStatus.NOT_ORDERED


def is_missing_info(part: Part) -> bool:
    if not (part.vendor_code or part.vendor_name):
        return True
    if not part.has_lead_time_input:
        return True
    return any(o.has_target and not o.has_po and not o.received
               for o in (part.sprint, part.production))


def accumulate_stats(stats: PartStats,
                     part: Part,
                     sprint: OrderRecord,
                     production: OrderRecord,
                     early: Optional[EarlyOrderCheck]) -> PartStats:
    """Fold one part's derived records into the running stats."""
    stats.total += 1
    stats.by_status[part.status.value] = stats.by_status.get(part.status.value, 0) + 1

    if part.sprint.has_po or part.production.has_po:
        stats.ordered += 1

    if is_at_risk(sprint):
        stats.sprint_at_risk += 1
    if sprint.is_late:
        stats.sprint_late += 1
    if is_at_risk(production):
        stats.production_at_risk += 1
    if production.is_late:
        stats.production_late += 1
    if sprint.is_late or production.is_late:
        stats.late_parts += 1

    if sprint.status != OrderStatus.NO_TARGET:
        stats.sprint_targeted += 1
        stats.sprint_received += int(sprint.is_complete)
    if production.status != OrderStatus.NO_TARGET:
        stats.production_targeted += 1
        stats.production_received += int(production.is_complete)

    if is_missing_info(part):
        stats.missing_info += 1
    if early is not None and early.needs_early_order:
        stats.long_lead_time += 1
    if not part.group_code:
        stats.unassigned += 1

    return stats


def calculate_part_stats(parts: Iterable[Part],
                         gates: Optional[GateSequence],
                         now: Union[date, datetime]) -> PartStats:
    """Aggregate stats for a batch of parts against one reference date."""
    stats = PartStats()
    for part in parts:
        sprint = evaluate_order_status(part, Phase.SPRINT, now)
        production = evaluate_order_status(part, Phase.PRODUCTION, now)
        early = check_early_order(part, gates, now) if gates is not None else None
        accumulate_stats(stats, part, sprint, production, early)

    logger.debug(f"Stats: {stats.total} parts, {stats.late} late, {stats.at_risk} at risk")
    return stats


# =============================================================================
# FRAMES
# =============================================================================

FRAME_COLUMNS = [
    'part_code', 'placeholder_code', 'group_code', 'description', 'vendor_name',
    'phase', 'status', 'display_status', 'is_late', 'is_at_risk',
    'order_by_date', 'target_date', 'days_until_order_by',
    'effective_lead_days', 'base_days', 'transit_days', 'freight_type',
    'expected_arrival_date', 'receipt_percent', 'qty_outstanding',
    'total_production_qty', 'needs_early_order', 'precedes_gate',
]


def schedule_frame(schedules: Iterable[Any]) -> pd.DataFrame:
    """
    One row per part and phase.

    Accepts anything exposing part, sprint, production and early_order
    (PartSchedule from the scheduler facade).
    """
    rows: List[Dict[str, Any]] = []
    for schedule in schedules:
        part = schedule.part
        early = schedule.early_order
        production_qty = getattr(schedule, 'production_qty', None)
        if production_qty is None:
            production_qty = total_production_qty(part)
        for record in (schedule.sprint, schedule.production):
            rows.append({
                'part_code': part.code,
                'placeholder_code': part.placeholder_code,
                'group_code': part.group_code or UNASSIGNED_GROUP_CODE,
                'description': part.description,
                'vendor_name': part.vendor_name,
                'phase': record.phase.value,
                'status': record.status.value,
                'display_status': record.display_status.value,
                'is_late': record.is_late,
                'is_at_risk': is_at_risk(record),
                'order_by_date': record.order_by_date,
                'target_date': record.target_date,
                'days_until_order_by': record.days_until_order_by,
                'effective_lead_days': record.effective_lead_days,
                'base_days': record.base_days,
                'transit_days': record.transit_days,
                'freight_type': part.freight_type.value,
                'expected_arrival_date': record.expected_arrival_date,
                'receipt_percent': record.receipt_percent,
                'qty_outstanding': record.qty_outstanding,
                'total_production_qty': production_qty,
                'needs_early_order': bool(early and early.needs_early_order),
                'precedes_gate': early.precedes_gate.value if early and early.precedes_gate else None,
            })

    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


SUMMARY_COLUMNS = ['group_code', 'part_count', 'at_risk_count', 'late_count', 'early_order_count']


def group_summary(frame: pd.DataFrame) -> pd.DataFrame:
    """Per group: part count, at-risk rows, late rows and parts needing early order."""
    if frame.empty:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)

    df = frame.copy()
    df['group_code'] = df['group_code'].fillna(UNASSIGNED_GROUP_CODE)
    df['is_at_risk'] = df['is_at_risk'].astype(bool)
    df['is_late'] = df['is_late'].astype(bool)

    summary = df.groupby('group_code').agg(
        part_count=('part_code', 'nunique'),
        at_risk_count=('is_at_risk', 'sum'),
        late_count=('is_late', 'sum'),
    )

    early = df[df['needs_early_order'].astype(bool)].groupby('group_code')['part_code'].nunique()
    summary['early_order_count'] = early.reindex(summary.index, fill_value=0)

    summary = summary.reset_index()
    for col in SUMMARY_COLUMNS[1:]:
        summary[col] = summary[col].astype(int)

    return summary.sort_values(['late_count', 'at_risk_count', 'group_code'],
                               ascending=[False, False, True]).reset_index(drop=True)
