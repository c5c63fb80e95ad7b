"""
PARTPULSE NEXUS - Timeline Geometry Calculator

Horizontal bar geometry for the procurement Gantt view. Each bar runs from the
order-by date to the target date and is split into an order (manufacturing)
segment and a transit (freight) segment:

    |<------ order segment ------>|<-- transit -->|
    order-by                                 target

Geometry and styling are independent: bar_geometry() places the bar,
bar_style() colors it from the order status, and the caller composes the two.
"""

import math
from datetime import date, datetime
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union
from enum import Enum

from config.settings import TIMELINE_CONFIG, TimelineConfig, LEAD_TIME_CONFIG, LeadTimeConfig

from .errors import InvalidScaleError
from .lead_time import (
    LeadTimeBreakdown,
    resolve_lead_time,
    calculate_order_by_date,
    calculate_expected_arrival,
    shift_date,
)
from .models import Part, Phase, GateKey, GateSequence, OrderStatus, coerce_phase, to_date
from .order_status import OrderRecord


# =============================================================================
# ENUMS
# =============================================================================

class ZoomLevel(Enum):
    """Timeline zoom levels."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"
    MULTI_YEAR = "multi-year"

    @property
    def pixels_per_day(self) -> float:
        return TIMELINE_CONFIG.zoom_scales[self.value]

    @property
    def min_bar_width(self) -> float:
        return TIMELINE_CONFIG.min_bar_widths[self.value]


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class BarGeometry:
    """Pixel geometry of one phase bar."""
    start_x: float
    order_segment_width: float
    transit_segment_width: float
    total_width: float
    order_by_date: date
    target_date: date
    clipped: bool = False       # Order-by falls before the timeline start

    @property
    def end_x(self) -> float:
        return self.start_x + self.total_width

    def to_dict(self) -> Dict[str, Any]:
        return {
            'start_x': round(self.start_x, 2),
            'order_segment_width': round(self.order_segment_width, 2),
            'transit_segment_width': round(self.transit_segment_width, 2),
            'total_width': round(self.total_width, 2),
            'order_by_date': self.order_by_date.isoformat(),
            'target_date': self.target_date.isoformat(),
            'clipped': self.clipped,
        }


@dataclass(frozen=True)
class BarStyle:
    """Color and segment opacities for a bar."""
    state: str
    color: str
    order_opacity: float
    transit_opacity: float
    show_late_indicator: bool = False


@dataclass(frozen=True)
class TimelineBounds:
    """Visible date range of the timeline."""
    start: date
    end: date

    @property
    def total_days(self) -> int:
        return (self.end - self.start).days

    def width(self, pixels_per_day: float) -> float:
        return self.total_days * pixels_per_day


@dataclass(frozen=True)
class GateMarker:
    """Vertical marker for a dated gate."""
    key: GateKey
    name: str
    date: date
    x: float


# =============================================================================
# SCALE HELPERS
# =============================================================================

def _check_scale(pixels_per_day: float) -> float:
    if pixels_per_day is None or not pixels_per_day > 0:
        raise InvalidScaleError(pixels_per_day)
    return float(pixels_per_day)


def zoom_level_for_scale(pixels_per_day: float) -> ZoomLevel:
    """Zoom level whose scale is nearest (on a log scale) to pixels_per_day."""
    ppd = _check_scale(pixels_per_day)
    return min(ZoomLevel, key=lambda z: abs(math.log(z.pixels_per_day / ppd)))


def min_bar_width_for_scale(pixels_per_day: float,
                            config: TimelineConfig = TIMELINE_CONFIG) -> float:
    """Minimum total bar width at the nearest zoom level."""
    return config.min_bar_widths[zoom_level_for_scale(pixels_per_day).value]


def days_between(start: Union[date, datetime], end: Union[date, datetime]) -> int:
    """Whole calendar days from start to end (negative when end is earlier)."""
    return (to_date(end) - to_date(start)).days


def date_to_x(value: Union[date, datetime], timeline_start: Union[date, datetime],
              pixels_per_day: float) -> float:
    """X offset of a date, unclipped."""
    return days_between(timeline_start, value) * _check_scale(pixels_per_day)


# =============================================================================
# GEOMETRY
# =============================================================================

def bar_geometry(part: Part,
                 phase: Union[str, Phase],
                 timeline_start: Union[date, datetime],
                 pixels_per_day: float,
                 min_bar_width: Optional[float] = None,
                 breakdown: Optional[LeadTimeBreakdown] = None,
                 config: TimelineConfig = TIMELINE_CONFIG) -> Optional[BarGeometry]:
    """
    Place the bar for one phase of a part.

    Returns None when the phase has no target date; the caller renders a
    "no dates set" placeholder instead. Both segments keep a minimum width and,
    when the minimum bar width kicks in, the order segment absorbs the extra.
    """
    phase = coerce_phase(phase)
    ppd = _check_scale(pixels_per_day)
    start = to_date(timeline_start)
    if start is None:
        raise TypeError(f"timeline_start must be a date, got {timeline_start!r}")

    target = part.order_for(phase).target_date
    if target is None:
        return None

    breakdown = breakdown or resolve_lead_time(part, phase)
    order_by = calculate_order_by_date(target, breakdown.effective_days)
    if min_bar_width is None:
        min_bar_width = min_bar_width_for_scale(ppd, config)

    raw_start = days_between(start, order_by) * ppd
    start_x = max(0.0, raw_start)
    end_x = days_between(start, target) * ppd

    span = max(end_x - start_x, min_bar_width)
    transit_width = max(breakdown.transit_days * ppd, config.min_segment_width)
    order_width = max(span - transit_width, config.min_segment_width)

    return BarGeometry(
        start_x=start_x,
        order_segment_width=order_width,
        transit_segment_width=transit_width,
        total_width=order_width + transit_width,
        order_by_date=order_by,
        target_date=target,
        clipped=raw_start < 0,
    )


def bar_style(record: OrderRecord, config: TimelineConfig = TIMELINE_CONFIG) -> BarStyle:
    """Color from the order record alone; geometry plays no part."""
    if record.status == OrderStatus.NO_TARGET:
        state = 'no_target'
    elif record.status == OrderStatus.RECEIVED:
        state = 'received'
    elif record.is_late:
        state = 'late'
    elif record.status == OrderStatus.ORDERED:
        state = 'ordered'
    else:
        state = 'not_ordered'

    order_opacity, transit_opacity = (
        config.ordered_opacity if record.is_ordered else config.unordered_opacity
    )
    return BarStyle(
        state=state,
        color=config.status_colors[state],
        order_opacity=order_opacity,
        transit_opacity=transit_opacity,
        show_late_indicator=record.is_late,
    )


# =============================================================================
# TIMELINE BOUNDS & MARKERS
# =============================================================================

def _part_dates(part: Part, lead_time_config: LeadTimeConfig = LEAD_TIME_CONFIG) -> List[date]:
    dates: List[date] = []
    for phase in (Phase.SPRINT, Phase.PRODUCTION):
        order = part.order_for(phase)
        if order.target_date is None:
            continue
        effective = resolve_lead_time(part, phase, lead_time_config).effective_days
        order_by = calculate_order_by_date(order.target_date, effective)
        dates.extend([order_by, order.target_date])
        if order.po_date is not None:
            dates.append(order.po_date)
        # Implied arrival keeps the full lead-time bar on screen
        placed = order.po_date or order_by
        dates.append(calculate_expected_arrival(placed, effective))
    return dates


def timeline_bounds(parts: Iterable[Part],
                    gates: Optional[GateSequence],
                    now: Union[date, datetime],
                    config: TimelineConfig = TIMELINE_CONFIG,
                    lead_time_config: LeadTimeConfig = LEAD_TIME_CONFIG) -> TimelineBounds:
    """
    Earliest to latest relevant date, padded by the configured buffers.

    lead_time_config must match the one the order records were built with,
    otherwise the bounds can miss the order-by dates they are meant to hold.
    """
    today = to_date(now)
    if today is None:
        raise TypeError(f"now must be a date or datetime, got {now!r}")

    all_dates = [today]
    for part in parts:
        all_dates.extend(_part_dates(part, lead_time_config))
    if gates is not None:
        all_dates.extend(g.target_date for g in gates.dated_gates)

    return TimelineBounds(
        start=shift_date(min(all_dates), -config.start_buffer_days),
        end=shift_date(max(all_dates), config.end_buffer_days),
    )


def gate_markers(gates: GateSequence,
                 timeline_start: Union[date, datetime],
                 pixels_per_day: float) -> List[GateMarker]:
    """Markers for every dated gate, in program order."""
    ppd = _check_scale(pixels_per_day)
    return [
        GateMarker(key=g.key, name=g.name, date=g.target_date,
                   x=date_to_x(g.target_date, timeline_start, ppd))
        for g in gates.dated_gates
    ]
