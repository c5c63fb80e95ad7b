"""
PARTPULSE NEXUS - Procurement Data Model

Part, phase order and project gate snapshots consumed by the scheduling
engine, plus the coercion helpers that turn persistence-layer values into
them. Every snapshot is frozen: the engine reads, computes and emits, and
never writes back.

Dates are plain calendar dates. An absent or unparsable value is None and is
never mistaken for epoch zero.
"""

import re
import math
from datetime import datetime, date, timezone
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union
from enum import Enum

import pandas as pd

from .errors import InvalidPhaseError


# =============================================================================
# ENUMS
# =============================================================================

class Phase(Enum):
    """The two procurement cycles tracked per part."""
    SPRINT = "sprint"          # Pilot / early quantity
    PRODUCTION = "production"  # Mass quantity


class FreightType(Enum):
    """Freight choice for the transit leg."""
    SEA = "sea"
    AIR = "air"


class PartStatus(Enum):
    """Workflow stage owned by the kanban board (read-only here)."""
    PENDING = "pending"
    ADDED = "added"
    DESIGN = "design"
    ENGINEERING = "engineering"
    PROCUREMENT = "procurement"
    COMPLETE = "complete"
    ON_HOLD = "on_hold"
    CANCELLED = "cancelled"


class OrderStatus(Enum):
    """Order status for one phase of a part.

    LATE is only produced by OrderRecord.display_status; the primary status
    keeps lateness as a separate flag.
    """
    NO_TARGET = "no_target"
    NOT_ORDERED = "not_ordered"
    ORDERED = "ordered"
    RECEIVED = "received"
    LATE = "late"


class GateKey(Enum):
    """Program gates in program order."""
    BRIEFED = "briefed"
    DTI = "dti"
    DA = "da"
    DTX = "dtx"
    SPRINT = "sprint"
    DTL = "dtl"
    MASS_PRODUCTION = "mass_production"
    DTC = "dtc"

    @property
    def position(self) -> int:
        return GATE_ORDER.index(self)

    @classmethod
    def parse(cls, value: Union[str, 'GateKey']) -> 'GateKey':
        """Accept a key, a camelCase record key or a descriptive alias."""
        if isinstance(value, GateKey):
            return value
        key = str(value).strip()
        if key in GATE_ALIASES:
            return GATE_ALIASES[key]
        for candidate in (key, re.sub(r'(?<=[a-z])(?=[A-Z])', '_', key)):
            normalized = candidate.lower().replace('-', '_').replace(' ', '_')
            if normalized in GATE_ALIASES:
                return GATE_ALIASES[normalized]
            if normalized in cls._value2member_map_:
                return cls(normalized)
        raise ValueError(f"Unknown gate key {value!r}")


class GateStatus(Enum):
    """Gate progress status."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


# =============================================================================
# CONFIGURATION
# =============================================================================

GATE_ORDER: List[GateKey] = [
    GateKey.BRIEFED,
    GateKey.DTI,
    GateKey.DA,
    GateKey.DTX,
    GateKey.SPRINT,
    GateKey.DTL,
    GateKey.MASS_PRODUCTION,
    GateKey.DTC,
]

# key -> (short name, full name, description)
GATE_METADATA: Dict[GateKey, Tuple[str, str, str]] = {
    GateKey.BRIEFED: ("Briefed", "Project Briefed", "Initial project brief approved"),
    GateKey.DTI: ("DTI", "Decision to Initiate", "Go/no-go for project start"),
    GateKey.DA: ("DA", "Design Approval", "Design pens down, drawings complete"),
    GateKey.DTX: ("DTX", "Decision to Execute", "Approve for production preparation"),
    GateKey.SPRINT: ("Sprint", "Sprint MRD", "Test/sprint production run date"),
    GateKey.DTL: ("DTL", "Decision to Launch", "Final approval for mass production"),
    GateKey.MASS_PRODUCTION: ("Mass Prod", "Mass Production", "Full production start date"),
    GateKey.DTC: ("DTC", "Decision to Close", "Project closure and handover"),
}

GATE_ALIASES: Dict[str, GateKey] = {
    'massProduction': GateKey.MASS_PRODUCTION,
    'design_intent': GateKey.DTI,
    'design_approval': GateKey.DA,
    'design_transfer': GateKey.DTX,
    'design_transfer_line': GateKey.DTL,
    'design_transfer_complete': GateKey.DTC,
}

# Known date formats in persistence / spreadsheet data (day-first before month-first)
DATE_FORMATS = [
    "%Y-%m-%d",           # 2024-01-15
    "%Y-%m-%dT%H:%M:%S",  # ISO format
    "%Y-%m-%d %H:%M:%S",  # 2024-01-15 10:30:00
    "%d/%m/%Y",           # 15/01/2024
    "%d-%b-%Y",           # 15-Jan-2024
    "%d %b %Y",           # 15 Jan 2024
]

TRUE_STRINGS = {'yes', 'true', '1', 'y', 'x'}

UNASSIGNED_GROUP_CODE = "UNASSIGNED"


# =============================================================================
# COERCION HELPERS
# =============================================================================

def to_date(value: Any) -> Optional[date]:
    """
    Coerce an optional instant to a calendar date.

    Accepts date/datetime/pandas Timestamps, ISO or day-first strings,
    {'seconds': ...} timestamp dicts, wrappers exposing to_date()/toDate()/
    to_datetime(), and zero-argument callables returning any of those.
    Anything else, including unparsable strings, is None.
    """
    if value is None or isinstance(value, bool):
        return None

    if value is pd.NaT:
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, float) and math.isnan(value):
        return None

    if isinstance(value, (int, float)):
        # A bare number has no unit; treat as unknown
        return None

    if isinstance(value, dict):
        seconds = value.get('seconds', value.get('_seconds'))
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            try:
                return datetime.fromtimestamp(seconds, tz=timezone.utc).date()
            except (OverflowError, OSError, ValueError):
                return None
        return None

    for attr in ('to_date', 'toDate', 'to_datetime', 'to_pydatetime'):
        method = getattr(value, attr, None)
        if callable(method):
            try:
                return to_date(method())
            except (TypeError, ValueError, AttributeError, OverflowError):
                return None

    if callable(value):
        try:
            return to_date(value())
        except (TypeError, ValueError, AttributeError, OverflowError):
            return None

    value_str = str(value).strip()
    if not value_str or value_str.lower() in ('none', 'nan', 'nat', 'null'):
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value_str, fmt).date()
        except ValueError:
            continue

    # Last resort: pandas inference. A string without a digit ("today", "now")
    # never names a fixed date.
    if not any(ch.isdigit() for ch in value_str):
        return None
    try:
        parsed = pd.to_datetime(value_str, errors='coerce', dayfirst=True)
    except (TypeError, ValueError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.date()


def to_number(value: Any) -> Optional[float]:
    """Coerce a numeric-ish value; blanks, garbage, NaN and infinities are None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        else:
            value_str = str(value).strip().replace(',', '')
            if not value_str:
                return None
            number = float(value_str)
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def to_bool(value: Any) -> bool:
    """Truthy flags: real booleans, or yes/true/1/y/x strings."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value == 1
    return str(value).strip().lower() in TRUE_STRINGS


def to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    text = str(value).strip()
    return text or None


def coerce_phase(phase: Union[str, Phase]) -> Phase:
    """Validate the phase argument; anything else is a programming error."""
    if isinstance(phase, Phase):
        return phase
    if isinstance(phase, str):
        try:
            return Phase(phase.strip().lower())
        except ValueError:
            pass
    raise InvalidPhaseError(phase)


def _pick(record: Dict[str, Any], *keys: str) -> Any:
    """First present (non-None) value among candidate keys."""
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return None


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class PhaseOrder:
    """Order facts for one phase of a part."""
    target_date: Optional[date] = None      # Stock in plant target
    po_number: Optional[str] = None
    po_date: Optional[date] = None
    received: bool = False
    received_qty: Optional[float] = None
    requested_qty: Optional[float] = None

    @property
    def has_target(self) -> bool:
        return self.target_date is not None

    @property
    def has_po(self) -> bool:
        return bool(self.po_number and self.po_number.strip())

    @classmethod
    def from_record(cls, record: Dict[str, Any], phase: Phase) -> 'PhaseOrder':
        p = phase.value
        requested_keys = ('sprintQuantity', 'sprint_quantity', 'sprint_requested_qty') \
            if phase == Phase.SPRINT else ('productionRequestedQty', 'production_requested_qty')
        return cls(
            target_date=to_date(_pick(record, f'{p}TargetDate', f'{p}_target_date')),
            po_number=to_text(_pick(record, f'{p}PoNumber', f'{p}_po_number')),
            po_date=to_date(_pick(record, f'{p}PoDate', f'{p}_po_date')),
            received=to_bool(_pick(record, f'{p}Received', f'{p}_received')),
            received_qty=to_number(_pick(record, f'{p}ReceivedQty', f'{p}_received_qty')),
            requested_qty=to_number(_pick(record, *requested_keys)),
        )


@dataclass(frozen=True)
class Part:
    """A trackable procurement unit (snapshot)."""
    placeholder_code: str
    description: str = ""
    final_item_code: Optional[str] = None
    group_code: Optional[str] = None
    part_id: Optional[str] = None
    category: Optional[str] = None
    status: PartStatus = PartStatus.ADDED

    # Vendor
    vendor_code: Optional[str] = None
    vendor_name: Optional[str] = None

    # Lead times
    base_lead_time_days: Optional[float] = None
    production_lead_time_weeks: Optional[str] = None
    freight_type: FreightType = FreightType.SEA
    sea_freight_days: Optional[float] = None
    air_freight_days: Optional[float] = None
    air_premium_cost: Optional[float] = None

    # Production quantities
    pa_forecast: Optional[float] = None
    scrap_rate: Optional[float] = None
    mass_production_quantity: Optional[float] = None

    # Phase orders
    sprint: PhaseOrder = field(default_factory=PhaseOrder)
    production: PhaseOrder = field(default_factory=PhaseOrder)

    # Flags
    order_together: bool = False
    is_new_supplier: bool = False
    is_color_touchpoint: bool = False

    @property
    def code(self) -> str:
        """Final code once assigned, placeholder until then."""
        return self.final_item_code or self.placeholder_code

    @property
    def has_lead_time_input(self) -> bool:
        return self.base_lead_time_days is not None or bool(self.production_lead_time_weeks)

    def order_for(self, phase: Union[str, Phase]) -> PhaseOrder:
        return self.sprint if coerce_phase(phase) == Phase.SPRINT else self.production

    def with_order(self, phase: Union[str, Phase], **changes) -> 'Part':
        """Copy of the part with one phase order changed."""
        phase = coerce_phase(phase)
        updated = replace(self.order_for(phase), **changes)
        return replace(self, **{phase.value: updated})

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> 'Part':
        """Build a snapshot from a persistence record (camelCase or snake_case)."""
        freight = (to_text(_pick(record, 'freightType', 'freight_type')) or 'sea').lower()
        status = (to_text(_pick(record, 'status')) or 'added').lower()
        try:
            part_status = PartStatus(status)
        except ValueError:
            part_status = PartStatus.ADDED
        return cls(
            placeholder_code=to_text(_pick(record, 'placeholderCode', 'placeholder_code', 'code')) or "",
            description=to_text(_pick(record, 'description')) or "",
            final_item_code=to_text(_pick(record, 'finalItemCode', 'final_item_code')),
            group_code=to_text(_pick(record, 'groupCode', 'group_code')),
            part_id=to_text(_pick(record, 'id', 'part_id')),
            category=to_text(_pick(record, 'category')),
            status=part_status,
            vendor_code=to_text(_pick(record, 'vendorCode', 'vendor_code')),
            vendor_name=to_text(_pick(record, 'vendorName', 'vendor_name')),
            base_lead_time_days=to_number(_pick(record, 'baseLeadTimeDays', 'base_lead_time_days')),
            production_lead_time_weeks=to_text(_pick(record, 'productionLeadTimeWeeks', 'production_lead_time_weeks')),
            freight_type=FreightType.AIR if freight == 'air' else FreightType.SEA,
            sea_freight_days=to_number(_pick(record, 'seaFreightDays', 'sea_freight_days')),
            air_freight_days=to_number(_pick(record, 'airFreightDays', 'air_freight_days')),
            air_premium_cost=to_number(_pick(record, 'airPremiumCost', 'air_premium_cost')),
            pa_forecast=to_number(_pick(record, 'paForecast', 'pa_forecast')),
            scrap_rate=to_number(_pick(record, 'scrapRate', 'scrap_rate')),
            mass_production_quantity=to_number(_pick(record, 'massProductionQuantity', 'mass_production_quantity')),
            sprint=PhaseOrder.from_record(record, Phase.SPRINT),
            production=PhaseOrder.from_record(record, Phase.PRODUCTION),
            order_together=to_bool(_pick(record, 'orderTogether', 'order_together')),
            is_new_supplier=to_bool(_pick(record, 'isNewSupplier', 'is_new_supplier')),
            is_color_touchpoint=to_bool(_pick(record, 'isColorTouchpoint', 'is_color_touchpoint')),
        )


@dataclass(frozen=True)
class Gate:
    """A program milestone."""
    key: GateKey
    target_date: Optional[date] = None
    completed_at: Optional[date] = None     # When the gate was passed
    status: GateStatus = GateStatus.NOT_STARTED
    notes: Optional[str] = None

    @property
    def date(self) -> Optional[date]:
        return self.target_date

    @property
    def name(self) -> str:
        return GATE_METADATA[self.key][0]

    @property
    def full_name(self) -> str:
        return GATE_METADATA[self.key][1]

    @property
    def is_dated(self) -> bool:
        return self.target_date is not None


@dataclass(frozen=True)
class GateSequence:
    """The project's ordered gate set; missing gates are undated."""
    gates: Tuple[Gate, ...] = ()

    def __post_init__(self):
        by_key = {g.key: g for g in self.gates}
        ordered = tuple(by_key.get(k, Gate(key=k)) for k in GATE_ORDER)
        object.__setattr__(self, 'gates', ordered)

    def __iter__(self) -> Iterator[Gate]:
        return iter(self.gates)

    def __len__(self) -> int:
        return len(self.gates)

    def __getitem__(self, key: Union[str, GateKey]) -> Gate:
        return self.gates[GateKey.parse(key).position]

    @property
    def dated_gates(self) -> List[Gate]:
        return [g for g in self.gates if g.is_dated]

    @property
    def has_any_date(self) -> bool:
        return any(g.is_dated for g in self.gates)

    @classmethod
    def from_dates(cls, dates: Dict[Union[str, GateKey], Any]) -> 'GateSequence':
        """Shorthand: {gate key: date-ish}."""
        return cls(tuple(Gate(key=GateKey.parse(k), target_date=to_date(v)) for k, v in dates.items()))

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> 'GateSequence':
        """Build from {gateKey: {date, status, completedAt, notes}} records."""
        gates = []
        for raw_key, raw in (record or {}).items():
            try:
                key = GateKey.parse(raw_key)
            except ValueError:
                continue
            if not isinstance(raw, dict):
                gates.append(Gate(key=key, target_date=to_date(raw)))
                continue
            status = (to_text(raw.get('status')) or 'not_started').lower()
            try:
                gate_status = GateStatus(status)
            except ValueError:
                gate_status = GateStatus.NOT_STARTED
            gates.append(Gate(
                key=key,
                target_date=to_date(raw.get('date')),
                status=gate_status,
                completed_at=to_date(_pick(raw, 'completedAt', 'completed_at')),
                notes=to_text(raw.get('notes')),
            ))
        return cls(tuple(gates))


def load_parts(records: Iterable[Dict[str, Any]]) -> List[Part]:
    """Convenience loader for a batch of part records."""
    return [Part.from_record(r) for r in records]
