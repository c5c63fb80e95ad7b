from datetime import date, datetime

import pandas as pd
import pytest

from src.procurement.errors import InvalidPhaseError
from src.procurement.models import (
    Part,
    Phase,
    FreightType,
    PartStatus,
    Gate,
    GateKey,
    GateStatus,
    GateSequence,
    GATE_ORDER,
    coerce_phase,
    load_parts,
    to_bool,
    to_date,
    to_number,
)


class _Timestamp:
    """Mimics a persistence-layer timestamp wrapper."""

    def __init__(self, value):
        self._value = value

    def toDate(self):
        return self._value


class TestToDate:
    def test_none_and_blank(self):
        assert to_date(None) is None
        assert to_date("") is None
        assert to_date("nan") is None
        assert to_date(pd.NaT) is None

    def test_datetime_truncates_to_day(self):
        assert to_date(datetime(2025, 3, 4, 23, 59)) == date(2025, 3, 4)

    def test_iso_and_day_first_strings(self):
        assert to_date("2025-03-04") == date(2025, 3, 4)
        assert to_date("04/03/2025") == date(2025, 3, 4)
        assert to_date("4 Mar 2025") == date(2025, 3, 4)

    def test_wrappers_and_callables(self):
        assert to_date(_Timestamp(datetime(2025, 3, 4, 8))) == date(2025, 3, 4)
        assert to_date(lambda: date(2025, 3, 4)) == date(2025, 3, 4)
        assert to_date(pd.Timestamp("2025-03-04")) == date(2025, 3, 4)

    def test_seconds_dict(self):
        assert to_date({'seconds': 0}) == date(1970, 1, 1)

    def test_garbage_is_absent_not_epoch(self):
        assert to_date("tbc") is None
        assert to_date(0) is None
        assert to_date(True) is None

    @pytest.mark.parametrize("value", ["today", "now", "Today", " NOW ", "yesterday", "tomorrow"])
    def test_relative_keywords_are_not_dates(self, value):
        assert to_date(value) is None

    def test_out_of_range_seconds_are_absent(self):
        assert to_date({'seconds': 1e20}) is None


class TestScalarCoercion:
    def test_to_number(self):
        assert to_number("1,200") == 1200.0
        assert to_number("") is None
        assert to_number(float("nan")) is None
        assert to_number(False) is None

    @pytest.mark.parametrize("value", [
        float("inf"), float("-inf"), "inf", "-Infinity", "1e400", 10 ** 400,
    ])
    def test_to_number_rejects_non_finite(self, value):
        assert to_number(value) is None

    def test_non_finite_record_values_are_absent(self):
        part = Part.from_record({'placeholderCode': 'NP-1', 'baseLeadTimeDays': 'inf',
                                 'paForecast': float('inf')})
        assert part.base_lead_time_days is None
        assert part.pa_forecast is None

    @pytest.mark.parametrize("value", ["yes", "TRUE", "1", "y", "x", True, 1])
    def test_to_bool_truthy(self, value):
        assert to_bool(value) is True

    @pytest.mark.parametrize("value", ["no", "", None, 0, "maybe"])
    def test_to_bool_falsy(self, value):
        assert to_bool(value) is False


class TestPhase:
    def test_accepts_strings_and_enum(self):
        assert coerce_phase("sprint") == Phase.SPRINT
        assert coerce_phase(" Production ") == Phase.PRODUCTION
        assert coerce_phase(Phase.SPRINT) == Phase.SPRINT

    @pytest.mark.parametrize("value", ["pilot", "", None, 3])
    def test_rejects_anything_else(self, value):
        with pytest.raises(InvalidPhaseError):
            coerce_phase(value)

    def test_invalid_phase_is_value_error(self):
        with pytest.raises(ValueError):
            Part("NP-1").order_for("mass")


class TestPartFromRecord:
    def test_camel_case_record(self):
        part = Part.from_record({
            'id': 'abc',
            'placeholderCode': 'NP-010',
            'finalItemCode': '100-200',
            'status': 'procurement',
            'vendorName': 'Acme',
            'baseLeadTimeDays': '45',
            'freightType': 'AIR',
            'airFreightDays': 7,
            'paForecast': 500,
            'scrapRate': 0.02,
            'sprintTargetDate': '2025-06-01',
            'sprintPoNumber': 'PO-1',
            'sprintReceived': 'yes',
            'sprintQuantity': 20,
            'productionTargetDate': datetime(2025, 9, 1, 12),
        })
        assert part.code == '100-200'
        assert part.status == PartStatus.PROCUREMENT
        assert part.freight_type == FreightType.AIR
        assert part.base_lead_time_days == 45.0
        assert part.sprint.target_date == date(2025, 6, 1)
        assert part.sprint.has_po
        assert part.sprint.received is True
        assert part.sprint.requested_qty == 20.0
        assert part.production.target_date == date(2025, 9, 1)
        assert not part.production.has_po

    def test_defaults(self):
        part = Part.from_record({'placeholder_code': 'NP-011', 'status': 'weird'})
        assert part.status == PartStatus.ADDED
        assert part.freight_type == FreightType.SEA
        assert part.code == 'NP-011'
        assert not part.has_lead_time_input

    def test_blank_po_is_not_a_po(self):
        part = Part.from_record({'placeholderCode': 'NP-012', 'sprintPoNumber': '   '})
        assert not part.sprint.has_po

    def test_load_parts(self):
        parts = load_parts([{'placeholderCode': 'A'}, {'placeholderCode': 'B'}])
        assert [p.code for p in parts] == ['A', 'B']


class TestGates:
    @pytest.mark.parametrize("raw,expected", [
        ("dtx", GateKey.DTX),
        ("DTX", GateKey.DTX),
        ("massProduction", GateKey.MASS_PRODUCTION),
        ("mass_production", GateKey.MASS_PRODUCTION),
        ("design_transfer", GateKey.DTX),
        (GateKey.DA, GateKey.DA),
    ])
    def test_parse(self, raw, expected):
        assert GateKey.parse(raw) == expected

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            GateKey.parse("launch_party")

    def test_sequence_fills_missing_gates_in_order(self):
        gates = GateSequence.from_dates({'dtx': date(2025, 2, 1), 'briefed': date(2025, 1, 1)})
        assert [g.key for g in gates] == GATE_ORDER
        assert len(gates.dated_gates) == 2
        assert gates['dtx'].date == date(2025, 2, 1)
        assert not gates['da'].is_dated

    def test_from_record(self):
        gates = GateSequence.from_record({
            'dtx': {'date': '2025-02-01', 'status': 'passed', 'completedAt': '2025-02-02'},
            'sprint': {'date': None, 'status': 'in_progress'},
            'notAGate': {'date': '2025-01-01'},
        })
        assert gates['dtx'].status == GateStatus.PASSED
        assert gates['dtx'].completed_at == date(2025, 2, 2)
        assert gates['sprint'].status == GateStatus.IN_PROGRESS
        assert gates.has_any_date

    def test_empty_sequence_has_no_dates(self):
        assert not GateSequence().has_any_date
        assert not GateSequence.from_record(None).has_any_date

    def test_gate_names(self):
        gates = GateSequence()
        assert gates['dtx'].name == "DTX"
        assert gates['dtx'].full_name == "Decision to Execute"

    def test_date_reads_target_date(self):
        gate = Gate(key=GateKey.DTX, target_date=date(2025, 2, 1))
        assert gate.date == date(2025, 2, 1)
        assert gate.is_dated
        assert not Gate(key=GateKey.DA).is_dated
