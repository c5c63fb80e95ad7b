from datetime import date

import pytest

from config.settings import LeadTimeConfig
from src.procurement.errors import InvalidScaleError
from src.procurement.models import Part, Phase, FreightType, GateSequence
from src.procurement.order_status import evaluate_order_status
from src.procurement.timeline import (
    ZoomLevel,
    bar_geometry,
    bar_style,
    date_to_x,
    days_between,
    gate_markers,
    min_bar_width_for_scale,
    timeline_bounds,
)

from conftest import DAY0, day


@pytest.fixture
def part():
    return Part("NP-1", base_lead_time_days=30).with_order(Phase.SPRINT, target_date=day(100))


class TestScale:
    def test_days_between(self):
        assert days_between(day(0), day(10)) == 10
        assert days_between(day(10), day(0)) == -10

    def test_date_to_x(self):
        assert date_to_x(day(10), DAY0, 4.0) == 40.0

    @pytest.mark.parametrize("ppd,expected", [
        (40.0, 20.0),
        (12.0, 16.0),
        (4.0, 12.0),
        (1.5, 10.0),
        (0.5, 8.0),
        (0.15, 8.0),
        (100.0, 20.0),
        (0.01, 8.0),
    ])
    def test_min_bar_width_for_scale(self, ppd, expected):
        assert min_bar_width_for_scale(ppd) == expected

    def test_zoom_levels(self):
        assert ZoomLevel.WEEK.pixels_per_day == 12.0
        assert ZoomLevel.MULTI_YEAR.min_bar_width == 8.0

    @pytest.mark.parametrize("ppd", [0, -1.0, None])
    def test_non_positive_scale_raises(self, part, ppd):
        with pytest.raises(InvalidScaleError):
            bar_geometry(part, Phase.SPRINT, DAY0, ppd)

    def test_scale_error_is_value_error(self):
        with pytest.raises(ValueError):
            min_bar_width_for_scale(0)


class TestBarGeometry:
    def test_segments_follow_lead_time(self, part):
        geometry = bar_geometry(part, Phase.SPRINT, DAY0, 4.0)
        assert geometry.start_x == 140.0
        assert geometry.order_segment_width == 120.0
        assert geometry.transit_segment_width == 140.0
        assert geometry.total_width == 260.0
        assert geometry.end_x == date_to_x(day(100), DAY0, 4.0)
        assert geometry.order_by_date == day(35)
        assert not geometry.clipped

    def test_no_target_returns_none(self):
        assert bar_geometry(Part("NP-1"), Phase.PRODUCTION, DAY0, 4.0) is None

    def test_start_clipped_to_zero(self, part):
        geometry = bar_geometry(part, Phase.SPRINT, day(50), 4.0)
        assert geometry.start_x == 0.0
        assert geometry.clipped

    def test_minimum_segment_widths(self):
        part = Part("NP-1", base_lead_time_days=0, sea_freight_days=0) \
            .with_order(Phase.SPRINT, target_date=day(100))
        geometry = bar_geometry(part, Phase.SPRINT, DAY0, 0.15)
        assert geometry.order_segment_width >= 4.0
        assert geometry.transit_segment_width >= 4.0
        assert geometry.total_width >= min_bar_width_for_scale(0.15)

    def test_minimum_bar_width_goes_to_order_segment(self):
        part = Part("NP-1", base_lead_time_days=1, freight_type=FreightType.AIR, air_freight_days=20) \
            .with_order(Phase.SPRINT, target_date=day(100))
        geometry = bar_geometry(part, Phase.SPRINT, DAY0, 0.5, min_bar_width=20.0)
        # Effective 21 days * 0.5 = 10.5 px, below the 20 px minimum
        assert geometry.transit_segment_width == 10.0
        assert geometry.order_segment_width == 10.0
        assert geometry.total_width == 20.0

    @pytest.mark.parametrize("ppd", [0.15, 0.5, 1.5, 4.0, 12.0, 40.0])
    def test_segments_sum_to_total(self, part, ppd):
        geometry = bar_geometry(part, Phase.SPRINT, DAY0, ppd)
        assert geometry.order_segment_width + geometry.transit_segment_width == pytest.approx(geometry.total_width)
        assert geometry.order_segment_width >= 4.0
        assert geometry.transit_segment_width >= 4.0


class TestBarStyle:
    def test_late_uses_warning_color(self, part):
        style = bar_style(evaluate_order_status(part, Phase.SPRINT, day(40)))
        assert style.state == 'late'
        assert style.show_late_indicator
        assert (style.order_opacity, style.transit_opacity) == (0.6, 0.3)

    def test_ordered(self, part):
        ordered = part.with_order(Phase.SPRINT, po_number="PO-1")
        style = bar_style(evaluate_order_status(ordered, Phase.SPRINT, day(10)))
        assert style.state == 'ordered'
        assert (style.order_opacity, style.transit_opacity) == (1.0, 0.5)

    def test_received(self, part):
        received = part.with_order(Phase.SPRINT, received=True)
        assert bar_style(evaluate_order_status(received, Phase.SPRINT, day(400))).state == 'received'

    def test_not_ordered_and_no_target(self, part):
        assert bar_style(evaluate_order_status(part, Phase.SPRINT, day(0))).state == 'not_ordered'
        assert bar_style(evaluate_order_status(part, Phase.PRODUCTION, day(0))).state == 'no_target'

    def test_colors_differ_by_state(self, part):
        late = bar_style(evaluate_order_status(part, Phase.SPRINT, day(40)))
        on_time = bar_style(evaluate_order_status(part, Phase.SPRINT, day(0)))
        assert late.color != on_time.color


class TestBoundsAndMarkers:
    def test_bounds_cover_bars_gates_and_today(self, part, dated_gates):
        bounds = timeline_bounds([part], dated_gates, day(40))
        assert bounds.start == day(-7)
        assert bounds.end == day(260 + 14)
        assert bounds.total_days == 281

    def test_bounds_without_parts(self):
        bounds = timeline_bounds([], GateSequence(), day(40))
        assert bounds.start == day(33)
        assert bounds.end == day(54)

    def test_implied_arrival_extends_end(self):
        part = Part("NP-1", base_lead_time_days=30) \
            .with_order(Phase.SPRINT, target_date=day(100), po_number="PO-1", po_date=day(90))
        bounds = timeline_bounds([part], None, day(0))
        assert bounds.end == day(155 + 14)

    def test_bounds_follow_lead_time_config(self, part):
        slow = LeadTimeConfig(default_sea_freight_days=500)
        bounds = timeline_bounds([part], None, day(100), lead_time_config=slow)
        assert bounds.start == day(100 - 530 - 7)

    def test_bounds_saturate_at_calendar_start(self):
        early = Part("NP-1", base_lead_time_days=30).with_order(Phase.SPRINT, target_date=date(1, 1, 10))
        bounds = timeline_bounds([early], None, date(1, 1, 10))
        assert bounds.start == date.min

    def test_gate_markers(self, dated_gates):
        markers = gate_markers(dated_gates, DAY0, 2.0)
        assert len(markers) == 8
        assert markers[3].name == "DTX"
        assert markers[3].x == 120.0
