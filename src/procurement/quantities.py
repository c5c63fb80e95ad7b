"""
PARTPULSE NEXUS - Production Quantity Calculator

Total quantity to commit for the mass-production phase, and the receipt
completeness figures derived from it.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Union

import numpy as np

from config.settings import QUANTITY_CONFIG, QuantityConfig

from .errors import SchedulingIssue, invalid_range
from .models import Part, Phase, coerce_phase


@dataclass(frozen=True)
class QuantityBreakdown:
    """How the total production quantity was reached."""
    total_qty: int
    from_override: bool = False
    pa_forecast: Optional[float] = None
    scrap_rate_applied: Optional[float] = None
    issues: List[SchedulingIssue] = field(default_factory=list)


def _present(value: Optional[float]) -> bool:
    return value is not None and not math.isnan(value)


def _cap_quantity(value: float, field_name: str, part_code: str,
                  config: QuantityConfig, issues: List[SchedulingIssue]) -> float:
    """Quantity within [0, max_quantity]; infinities land on a bound."""
    if value > config.max_quantity:
        issues.append(invalid_range(field_name, value, config.max_quantity, part_code))
        return config.max_quantity
    if value < 0:
        issues.append(invalid_range(field_name, value, 0, part_code))
        return 0.0
    return value


def production_quantity_breakdown(part: Part,
                                  config: QuantityConfig = QUANTITY_CONFIG) -> QuantityBreakdown:
    """Total production quantity with the scrap clamp made visible."""
    issues: List[SchedulingIssue] = []

    if _present(part.mass_production_quantity):
        # Scrap already included by whoever set it
        override = _cap_quantity(part.mass_production_quantity, 'mass_production_quantity',
                                 part.code, config, issues)
        return QuantityBreakdown(total_qty=int(override), from_override=True, issues=issues)

    if not _present(part.pa_forecast):
        return QuantityBreakdown(total_qty=0)

    forecast = _cap_quantity(part.pa_forecast, 'pa_forecast', part.code, config, issues)
    scrap = part.scrap_rate if _present(part.scrap_rate) else 0.0

    if scrap >= 1.0 or scrap > config.max_scrap_rate:
        issues.append(invalid_range('scrap_rate', scrap, config.max_scrap_rate, part.code))
        scrap = config.max_scrap_rate
    elif scrap < config.min_scrap_rate:
        issues.append(invalid_range('scrap_rate', scrap, config.min_scrap_rate, part.code))
        scrap = config.min_scrap_rate

    # Rounded first so float noise (e.g. 96 / 0.96) does not bump the ceiling
    raw = round(forecast / (1.0 - scrap), 9)
    total = int(np.ceil(raw))

    return QuantityBreakdown(
        total_qty=max(total, 0),
        pa_forecast=forecast,
        scrap_rate_applied=scrap,
        issues=issues,
    )


def total_production_qty(part: Part, config: QuantityConfig = QUANTITY_CONFIG) -> int:
    """Quantity to commit for mass production; 0 when nothing is known."""
    return production_quantity_breakdown(part, config).total_qty


def requested_quantity(part: Part, phase: Union[str, Phase],
                       config: QuantityConfig = QUANTITY_CONFIG) -> Optional[float]:
    """Requested quantity for a phase; production falls back to the derived total."""
    phase = coerce_phase(phase)
    requested = part.order_for(phase).requested_qty
    if requested is not None:
        return requested
    if phase == Phase.PRODUCTION:
        total = total_production_qty(part, config)
        return float(total) if total > 0 else None
    return None


def receipt_percent(received_qty: Optional[float], requested_qty: Optional[float]) -> float:
    """Share of the requested quantity received, 0-100."""
    if not received_qty or not requested_qty or requested_qty <= 0:
        return 0.0
    return float(min(100.0, max(0.0, received_qty / requested_qty * 100.0)))


def qty_outstanding(received_qty: Optional[float], requested_qty: Optional[float]) -> float:
    """Quantity still to arrive."""
    if not requested_qty:
        return 0.0
    return float(max(0.0, requested_qty - (received_qty or 0.0)))


def is_receipt_complete(received_qty: Optional[float], requested_qty: Optional[float]) -> bool:
    """A receipt is partial only when both quantities are known and received < requested."""
    if received_qty is None or requested_qty is None:
        return True
    return received_qty >= requested_qty
