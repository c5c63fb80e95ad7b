"""
PARTPULSE NEXUS - Early-Order Risk Detector

Everything is normally ordered once the project passes the order-trigger gate
(DTX, Decision to Execute). A part whose lead time forces the purchase order
before that gate has to be committed early, ahead of the normal workflow.
This module surfaces those parts before they turn into missed deadlines.

Also carries the gate-sequence utilities used by the portfolio view (next
gate, gate progress).
"""

from datetime import date, datetime
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from loguru import logger

from config.settings import EARLY_ORDER_CONFIG, EarlyOrderConfig, LEAD_TIME_CONFIG, LeadTimeConfig

from .errors import SchedulingIssue, unresolvable_risk
from .lead_time import resolve_lead_time, calculate_order_by_date
from .models import (
    Part,
    Phase,
    Gate,
    GateKey,
    GateSequence,
    GateStatus,
    GATE_ORDER,
    to_date,
)


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class EarlyOrderCheck:
    """Result of the early-order check for one part."""
    needs_early_order: bool
    precedes_gate: Optional[GateKey] = None
    must_order_by: Optional[date] = None
    phase: Optional[Phase] = None
    trigger_gate: Optional[GateKey] = None
    reason: str = ""
    issues: List[SchedulingIssue] = field(default_factory=list)

    @property
    def precedes_gate_name(self) -> Optional[str]:
        if self.precedes_gate is None:
            return None
        return Gate(key=self.precedes_gate).name

    def to_dict(self) -> Dict:
        return {
            'needs_early_order': self.needs_early_order,
            'precedes_gate': self.precedes_gate.value if self.precedes_gate else None,
            'must_order_by': self.must_order_by.isoformat() if self.must_order_by else None,
            'phase': self.phase.value if self.phase else None,
            'reason': self.reason,
        }


# =============================================================================
# GATE HELPERS
# =============================================================================

def find_gate_on_or_after(gates: GateSequence, when: date) -> Optional[Gate]:
    """First gate, in program order, dated on or after `when`."""
    for gate in gates:
        if gate.target_date is not None and gate.target_date >= when:
            return gate
    return None


def is_gate_passed(gate: Gate, now: date,
                   config: EarlyOrderConfig = EARLY_ORDER_CONFIG) -> bool:
    """A gate counts as reached once marked passed or once its date is behind us."""
    if gate.status.value in config.passed_statuses or gate.completed_at is not None:
        return True
    return gate.target_date is not None and gate.target_date <= now


def _earliest_order_by(part: Part,
                       lead_time_config: LeadTimeConfig = LEAD_TIME_CONFIG) -> Optional[Tuple[date, Phase]]:
    """Most constraining order-by date across the phases that have targets."""
    candidates = []
    for phase in (Phase.SPRINT, Phase.PRODUCTION):
        target = part.order_for(phase).target_date
        if target is None:
            continue
        breakdown = resolve_lead_time(part, phase, lead_time_config)
        candidates.append((calculate_order_by_date(target, breakdown.effective_days), phase))
    if not candidates:
        return None
    return min(candidates, key=lambda c: c[0])


# =============================================================================
# DETECTOR
# =============================================================================

def check_early_order(part: Part,
                      gates: GateSequence,
                      now: Union[date, datetime],
                      config: EarlyOrderConfig = EARLY_ORDER_CONFIG,
                      lead_time_config: LeadTimeConfig = LEAD_TIME_CONFIG) -> EarlyOrderCheck:
    """
    Flag a part whose order-by date falls before the order-trigger gate.

    needs_early_order is True when the first dated gate on/after the order-by
    date sits at or before the trigger gate in program order and the trigger
    gate has not been passed yet. Undated gate sequences are never flagged.
    """
    today = to_date(now)
    if today is None:
        raise TypeError(f"now must be a date or datetime, got {now!r}")
    trigger_key = GateKey.parse(config.trigger_gate)

    earliest = _earliest_order_by(part, lead_time_config)
    if earliest is None:
        return EarlyOrderCheck(
            needs_early_order=False,
            trigger_gate=trigger_key,
            reason="No target dates set",
        )
    must_order_by, phase = earliest

    if not gates.has_any_date:
        issue = unresolvable_risk("No gate dates set, early-order risk not evaluated", part.code)
        return EarlyOrderCheck(
            needs_early_order=False,
            must_order_by=must_order_by,
            phase=phase,
            trigger_gate=trigger_key,
            reason="No gate dates set",
            issues=[issue],
        )

    precedes = find_gate_on_or_after(gates, must_order_by)
    if precedes is None:
        return EarlyOrderCheck(
            needs_early_order=False,
            must_order_by=must_order_by,
            phase=phase,
            trigger_gate=trigger_key,
            reason="Order-by date falls after every dated gate",
        )

    trigger = gates[trigger_key]
    if is_gate_passed(trigger, today, config):
        return EarlyOrderCheck(
            needs_early_order=False,
            precedes_gate=precedes.key,
            must_order_by=must_order_by,
            phase=phase,
            trigger_gate=trigger_key,
            reason=f"{trigger.name} already passed",
        )

    needs_early = precedes.key.position <= trigger_key.position
    if needs_early:
        reason = f"Must order by {must_order_by.isoformat()}, before {precedes.name}"
        logger.info(f"[{part.code}] early order needed: {reason}")
    else:
        reason = f"Order-by date falls after {trigger.name}"

    return EarlyOrderCheck(
        needs_early_order=needs_early,
        precedes_gate=precedes.key if needs_early else None,
        must_order_by=must_order_by,
        phase=phase,
        trigger_gate=trigger_key,
        reason=reason,
    )


# =============================================================================
# GATE PROGRESS UTILITIES
# =============================================================================

def get_next_gate(gates: GateSequence) -> Optional[Gate]:
    """The in-progress gate, else the first not started, else None."""
    for gate in gates:
        if gate.status == GateStatus.IN_PROGRESS:
            return gate
    for gate in gates:
        if gate.status == GateStatus.NOT_STARTED:
            return gate
    return None


def calculate_gate_progress(gates: GateSequence) -> float:
    """Percentage of gates passed."""
    passed = sum(1 for g in gates if g.status == GateStatus.PASSED)
    return passed / len(GATE_ORDER) * 100


def get_current_gate_name(gates: GateSequence) -> str:
    next_gate = get_next_gate(gates)
    return next_gate.name if next_gate else "Complete"


def get_next_gate_date(gates: GateSequence) -> Optional[date]:
    next_gate = get_next_gate(gates)
    return next_gate.target_date if next_gate else None
