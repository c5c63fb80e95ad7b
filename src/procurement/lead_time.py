"""
PARTPULSE NEXUS - Lead-Time Resolver

Combines a part's base procurement lead time with the transit time of its
freight choice into one effective lead time.

    base days      baseLeadTimeDays, else weeks text x 7, else 30
    transit days   sea (default 35) or air (default 5)
    effective      base + transit

Inputs never cause a failure. Missing values fall back to defaults; negative
or runaway values (infinities included) are clamped into
[0, max_lead_time_days]. Both are reported as SchedulingIssues. Date
arithmetic saturates at the calendar limits, so the timeline always has
something to draw.
"""

import re
import math
from datetime import date, timedelta
from dataclasses import dataclass, field, replace
from typing import List, Optional, Union
from enum import Enum

from config.settings import LEAD_TIME_CONFIG, LeadTimeConfig

from .errors import SchedulingIssue, missing_input, invalid_range
from .models import Part, Phase, FreightType, coerce_phase


# =============================================================================
# ENUMS
# =============================================================================

class BaseLeadSource(Enum):
    """Where the base lead time came from."""
    BASE_DAYS = "base_days"
    WEEKS_TEXT = "weeks_text"
    DEFAULT = "default"


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class LeadTimeBreakdown:
    """Resolved lead time for one part and phase."""
    phase: Phase
    freight_type: FreightType
    base_days: int
    transit_days: int
    base_source: BaseLeadSource = BaseLeadSource.DEFAULT
    issues: List[SchedulingIssue] = field(default_factory=list)

    @property
    def effective_days(self) -> int:
        return self.base_days + self.transit_days

    def to_dict(self) -> dict:
        return {
            'phase': self.phase.value,
            'freight_type': self.freight_type.value,
            'base_days': self.base_days,
            'transit_days': self.transit_days,
            'effective_days': self.effective_days,
            'base_source': self.base_source.value,
        }


# =============================================================================
# CALCULATIONS
# =============================================================================

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')


def parse_lead_time_weeks(text: Optional[str]) -> Optional[int]:
    """
    Leading integer of a free-text weeks field.

    "39 weeks sea, 28 air" -> 39, "12.5" -> 12, "tbc" -> None.
    """
    if not text:
        return None
    match = _LEADING_INT.match(str(text))
    if not match:
        return None
    return int(match.group(1))


def _present(value: Optional[float]) -> bool:
    return value is not None and not math.isnan(value)


def _clamp_days(value: float, field_name: str, part_code: str,
                config: LeadTimeConfig, issues: List[SchedulingIssue]) -> int:
    """Whole days within [0, max_lead_time_days]; infinities land on a bound."""
    if value > config.max_lead_time_days:
        issues.append(invalid_range(field_name, value, config.max_lead_time_days, part_code))
        return config.max_lead_time_days
    if value < 0:
        issues.append(invalid_range(field_name, value, 0, part_code))
        return 0
    return int(round(value))


def resolve_base_days(part: Part,
                      config: LeadTimeConfig = LEAD_TIME_CONFIG) -> tuple:
    """Return (base_days, source, issues)."""
    issues: List[SchedulingIssue] = []

    if _present(part.base_lead_time_days):
        base, source = part.base_lead_time_days, BaseLeadSource.BASE_DAYS
    else:
        weeks = parse_lead_time_weeks(part.production_lead_time_weeks)
        if weeks is not None:
            base, source = weeks * config.days_per_week, BaseLeadSource.WEEKS_TEXT
        else:
            base, source = config.default_base_days, BaseLeadSource.DEFAULT
            issues.append(missing_input('base_lead_time_days', base, part.code))

    base = _clamp_days(base, 'base_lead_time_days', part.code, config, issues)
    return base, source, issues


def resolve_transit_days(part: Part,
                         config: LeadTimeConfig = LEAD_TIME_CONFIG) -> tuple:
    """Return (transit_days, issues) for the part's freight choice."""
    issues: List[SchedulingIssue] = []

    if part.freight_type == FreightType.AIR:
        field_name, raw, default = 'air_freight_days', part.air_freight_days, config.default_air_freight_days
    else:
        field_name, raw, default = 'sea_freight_days', part.sea_freight_days, config.default_sea_freight_days

    if _present(raw):
        transit = raw
    else:
        transit = default
        issues.append(missing_input(field_name, transit, part.code))

    transit = _clamp_days(transit, field_name, part.code, config, issues)
    return transit, issues


def resolve_lead_time(part: Part,
                      phase: Union[str, Phase],
                      config: LeadTimeConfig = LEAD_TIME_CONFIG) -> LeadTimeBreakdown:
    """Resolve base, transit and effective lead time for a part and phase."""
    phase = coerce_phase(phase)

    base, source, base_issues = resolve_base_days(part, config)
    transit, transit_issues = resolve_transit_days(part, config)

    return LeadTimeBreakdown(
        phase=phase,
        freight_type=part.freight_type,
        base_days=base,
        transit_days=transit,
        base_source=source,
        issues=base_issues + transit_issues,
    )


def shift_date(day: date, days: int) -> date:
    """day + days, saturating at date.min / date.max instead of overflowing."""
    try:
        return day + timedelta(days=days)
    except OverflowError:
        return date.max if days > 0 else date.min


def calculate_order_by_date(target_date: date, effective_days: int) -> date:
    """Latest order date that still meets the target, given the lead time."""
    return shift_date(target_date, -effective_days)


def calculate_expected_arrival(order_date: date, effective_days: int) -> date:
    """Arrival date for an order placed on order_date."""
    return shift_date(order_date, effective_days)


def order_by_date(part: Part,
                  phase: Union[str, Phase],
                  breakdown: Optional[LeadTimeBreakdown] = None) -> Optional[date]:
    """Order-by date for a phase, or None when the phase has no target."""
    phase = coerce_phase(phase)
    target = part.order_for(phase).target_date
    if target is None:
        return None
    breakdown = breakdown or resolve_lead_time(part, phase)
    return calculate_order_by_date(target, breakdown.effective_days)


def with_freight_type(part: Part, freight_type: Union[str, FreightType]) -> Part:
    """Copy of the part with its freight choice switched."""
    if not isinstance(freight_type, FreightType):
        freight_type = FreightType(str(freight_type).lower())
    return replace(part, freight_type=freight_type)
