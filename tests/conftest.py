"""
Shared fixtures for the procurement scheduling tests.
"""

from datetime import date, timedelta

import pytest

from src.procurement.engine import reset_procurement_scheduler
from src.procurement.models import Part, Phase, GateSequence


DAY0 = date(2025, 1, 1)


def day(n: int) -> date:
    """Calendar date n days after the fixed test epoch."""
    return DAY0 + timedelta(days=n)


@pytest.fixture(autouse=True)
def fresh_scheduler():
    reset_procurement_scheduler()
    yield
    reset_procurement_scheduler()


@pytest.fixture
def make_part():
    """Factory: make_part(sprint_target=..., production_target=..., **part_fields)."""
    def _make(code: str = "NP-001",
              sprint_target=None,
              production_target=None,
              sprint_po=None,
              production_po=None,
              **fields) -> Part:
        part = Part(placeholder_code=code, **fields)
        if sprint_target is not None or sprint_po is not None:
            part = part.with_order(Phase.SPRINT, target_date=sprint_target, po_number=sprint_po)
        if production_target is not None or production_po is not None:
            part = part.with_order(Phase.PRODUCTION, target_date=production_target, po_number=production_po)
        return part
    return _make


@pytest.fixture
def scenario_part(make_part):
    """Target day 100, base 30 days, default sea freight."""
    return make_part(sprint_target=day(100), base_lead_time_days=30,
                     vendor_name="Acme Moulding", group_code="G-100")


@pytest.fixture
def dated_gates():
    return GateSequence.from_dates({
        'briefed': day(0),
        'dti': day(10),
        'da': day(30),
        'dtx': day(60),
        'sprint': day(120),
        'dtl': day(150),
        'massProduction': day(200),
        'dtc': day(260),
    })


@pytest.fixture
def undated_gates():
    return GateSequence()
