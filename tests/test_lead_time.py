from datetime import date

import pytest

from config.settings import LeadTimeConfig
from src.procurement.errors import IssueCategory
from src.procurement.lead_time import (
    BaseLeadSource,
    parse_lead_time_weeks,
    resolve_lead_time,
    calculate_order_by_date,
    calculate_expected_arrival,
    order_by_date,
    shift_date,
    with_freight_type,
)
from src.procurement.models import Part, Phase, FreightType

from conftest import day


@pytest.mark.parametrize("text,expected", [
    ("12", 12),
    ("39 weeks sea, 28 air", 39),
    ("  8wks", 8),
    ("12.5", 12),
    ("tbc", None),
    ("", None),
    (None, None),
])
def test_parse_lead_time_weeks(text, expected):
    assert parse_lead_time_weeks(text) == expected


class TestBaseDays:
    def test_base_days_win(self):
        part = Part("NP-1", base_lead_time_days=30, production_lead_time_weeks="10")
        breakdown = resolve_lead_time(part, Phase.SPRINT)
        assert breakdown.base_days == 30
        assert breakdown.base_source == BaseLeadSource.BASE_DAYS

    def test_weeks_fallback(self):
        part = Part("NP-1", production_lead_time_weeks="10 weeks")
        breakdown = resolve_lead_time(part, "production")
        assert breakdown.base_days == 70
        assert breakdown.base_source == BaseLeadSource.WEEKS_TEXT
        assert not any(i.field_name == 'base_lead_time_days' for i in breakdown.issues)

    def test_default_reported_as_missing_input(self):
        breakdown = resolve_lead_time(Part("NP-1"), Phase.SPRINT)
        assert breakdown.base_days == 30
        assert breakdown.base_source == BaseLeadSource.DEFAULT
        categories = {i.field_name: i.category for i in breakdown.issues}
        assert categories['base_lead_time_days'] == IssueCategory.MISSING_INPUT

    def test_negative_is_clamped(self):
        breakdown = resolve_lead_time(Part("NP-1", base_lead_time_days=-10), Phase.SPRINT)
        assert breakdown.base_days == 0
        assert any(i.category == IssueCategory.INVALID_RANGE for i in breakdown.issues)

    def test_zero_is_a_value(self):
        breakdown = resolve_lead_time(Part("NP-1", base_lead_time_days=0), Phase.SPRINT)
        assert breakdown.base_days == 0
        assert breakdown.base_source == BaseLeadSource.BASE_DAYS


class TestTransitDays:
    def test_sea_default(self):
        breakdown = resolve_lead_time(Part("NP-1", base_lead_time_days=30), Phase.SPRINT)
        assert breakdown.transit_days == 35
        assert breakdown.effective_days == 65

    def test_air_default(self):
        part = Part("NP-1", base_lead_time_days=30, freight_type=FreightType.AIR)
        assert resolve_lead_time(part, Phase.SPRINT).effective_days == 35

    def test_explicit_transit(self):
        part = Part("NP-1", base_lead_time_days=30, sea_freight_days=42, air_freight_days=3)
        assert resolve_lead_time(part, Phase.SPRINT).transit_days == 42
        assert resolve_lead_time(with_freight_type(part, "air"), Phase.SPRINT).transit_days == 3

    def test_zero_transit_is_kept(self):
        part = Part("NP-1", base_lead_time_days=30, sea_freight_days=0)
        assert resolve_lead_time(part, Phase.SPRINT).transit_days == 0

    def test_custom_config(self):
        config = LeadTimeConfig(default_base_days=10, default_sea_freight_days=20)
        assert resolve_lead_time(Part("NP-1"), Phase.SPRINT, config).effective_days == 30


class TestOrderBy:
    def test_scenario_a(self):
        part = Part("NP-1", base_lead_time_days=30).with_order(Phase.SPRINT, target_date=day(100))
        assert order_by_date(part, Phase.SPRINT) == day(35)

    def test_scenario_b_air(self):
        part = Part("NP-1", base_lead_time_days=30, freight_type=FreightType.AIR) \
            .with_order(Phase.SPRINT, target_date=day(100))
        assert order_by_date(part, Phase.SPRINT) == day(65)

    def test_no_target(self):
        assert order_by_date(Part("NP-1"), Phase.PRODUCTION) is None

    def test_order_by_plus_lead_time_is_target(self):
        for lead in (0, 1, 65, 400):
            assert calculate_expected_arrival(calculate_order_by_date(day(100), lead), lead) == day(100)

    def test_longer_lead_time_never_later(self):
        short = Part("NP-1", base_lead_time_days=10).with_order(Phase.SPRINT, target_date=day(100))
        long = Part("NP-1", base_lead_time_days=50).with_order(Phase.SPRINT, target_date=day(100))
        assert order_by_date(long, Phase.SPRINT) <= order_by_date(short, Phase.SPRINT)

    def test_switching_to_air_moves_order_by_later(self):
        part = Part("NP-1", base_lead_time_days=30).with_order(Phase.SPRINT, target_date=day(100))
        sea = order_by_date(part, Phase.SPRINT)
        air = order_by_date(with_freight_type(part, FreightType.AIR), Phase.SPRINT)
        assert (air - sea).days == 30


class TestRunawayValues:
    def test_infinite_base_is_capped(self):
        breakdown = resolve_lead_time(Part("NP-1", base_lead_time_days=float("inf")), Phase.SPRINT)
        assert breakdown.base_days == 3650
        issue = next(i for i in breakdown.issues if i.field_name == 'base_lead_time_days')
        assert issue.category == IssueCategory.INVALID_RANGE
        assert issue.applied_value == 3650

    def test_negative_infinity_is_zero(self):
        breakdown = resolve_lead_time(Part("NP-1", base_lead_time_days=float("-inf")), Phase.SPRINT)
        assert breakdown.base_days == 0

    def test_nan_counts_as_absent(self):
        breakdown = resolve_lead_time(Part("NP-1", base_lead_time_days=float("nan")), Phase.SPRINT)
        assert breakdown.base_source == BaseLeadSource.DEFAULT
        assert breakdown.base_days == 30

    def test_huge_weeks_text_is_capped(self):
        breakdown = resolve_lead_time(Part("NP-1", production_lead_time_weeks="99999999"), Phase.SPRINT)
        assert breakdown.base_days == 3650

    def test_huge_transit_is_capped(self):
        part = Part("NP-1", base_lead_time_days=30, sea_freight_days=1_000_000)
        breakdown = resolve_lead_time(part, Phase.SPRINT)
        assert breakdown.transit_days == 3650
        assert any(i.field_name == 'sea_freight_days' and i.category == IssueCategory.INVALID_RANGE
                   for i in breakdown.issues)

    def test_custom_cap(self):
        config = LeadTimeConfig(max_lead_time_days=100)
        breakdown = resolve_lead_time(Part("NP-1", base_lead_time_days=365), Phase.SPRINT, config)
        assert breakdown.base_days == 100

    def test_huge_lead_time_near_calendar_start(self):
        part = Part("NP-1", base_lead_time_days=1_000_000).with_order(Phase.SPRINT, target_date=date(5, 1, 1))
        assert order_by_date(part, Phase.SPRINT) == date.min

    def test_shift_date_saturates(self):
        assert shift_date(date(1, 1, 5), -30) == date.min
        assert shift_date(date.max, 1) == date.max
        assert shift_date(day(0), 10 ** 12) == date.max
        assert calculate_expected_arrival(date(9999, 12, 1), 65) == date.max


@pytest.mark.parametrize("part", [
    Part("NP-1", base_lead_time_days=30),
    Part("NP-1", base_lead_time_days=0, sea_freight_days=0),
    Part("NP-1", production_lead_time_weeks="6 weeks"),
    Part("NP-1"),
    Part("NP-1", base_lead_time_days=-5, sea_freight_days=-1),
    Part("NP-1", base_lead_time_days=float("inf")),
    Part("NP-1", base_lead_time_days=12.6, freight_type=FreightType.AIR, air_freight_days=2),
    Part("NP-1", production_lead_time_weeks="10", freight_type=FreightType.AIR),
], ids=["base", "zeros", "weeks", "default", "negative", "infinite", "fractional-air", "weeks-air"])
@pytest.mark.parametrize("phase", [Phase.SPRINT, Phase.PRODUCTION])
def test_effective_is_base_plus_transit(part, phase):
    breakdown = resolve_lead_time(part, phase)
    assert breakdown.effective_days == breakdown.base_days + breakdown.transit_days
    assert breakdown.base_days >= 0 and breakdown.transit_days >= 0
