"""
PARTPULSE NEXUS - Scheduling Issues & Errors

Missing or out-of-range part data never raises: it degrades to a documented
default and is reported as a SchedulingIssue. Only caller contract violations
(an unknown phase, a non-positive timeline scale) raise.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from enum import Enum

from loguru import logger


# =============================================================================
# ENUMS
# =============================================================================

class IssueCategory(Enum):
    """Classification of data conditions met while scheduling."""
    MISSING_INPUT = "missing_input"          # Default applied
    INVALID_RANGE = "invalid_range"          # Value clamped
    UNRESOLVABLE_RISK = "unresolvable_risk"  # Reported as no risk


class IssueSeverity(Enum):
    """How loudly an issue is surfaced."""
    INFO = "info"
    WARNING = "warning"


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class SchedulingIssue:
    """A caller-visible note about a degraded or clamped input."""
    category: IssueCategory
    field_name: str
    message: str
    severity: IssueSeverity = IssueSeverity.INFO
    original_value: Any = None
    applied_value: Any = None
    part_code: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            'category': self.category.value,
            'field': self.field_name,
            'message': self.message,
            'severity': self.severity.value,
            'original_value': self.original_value,
            'applied_value': self.applied_value,
            'part_code': self.part_code,
        }


# =============================================================================
# EXCEPTIONS
# =============================================================================

class SchedulingContractError(ValueError):
    """Raised when the caller breaks the engine's calling contract."""


class InvalidPhaseError(SchedulingContractError):
    """Phase is not one of sprint / production."""

    def __init__(self, phase: Any):
        self.phase = phase
        super().__init__(f"Unknown order phase {phase!r}; expected 'sprint' or 'production'")


class InvalidScaleError(SchedulingContractError):
    """Timeline scale must be a positive number of pixels per day."""

    def __init__(self, pixels_per_day: Any):
        self.pixels_per_day = pixels_per_day
        super().__init__(f"pixels_per_day must be > 0, got {pixels_per_day!r}")


# =============================================================================
# HELPERS
# =============================================================================

def missing_input(field_name: str, applied_value: Any,
                  part_code: Optional[str] = None) -> SchedulingIssue:
    """Record that a default was used for an absent value."""
    issue = SchedulingIssue(
        category=IssueCategory.MISSING_INPUT,
        field_name=field_name,
        message=f"{field_name} not set, using {applied_value}",
        applied_value=applied_value,
        part_code=part_code,
    )
    logger.debug(f"[{part_code or '-'}] {issue.message}")
    return issue


def invalid_range(field_name: str, original_value: Any, applied_value: Any,
                  part_code: Optional[str] = None) -> SchedulingIssue:
    """Record that an out-of-range value was clamped."""
    issue = SchedulingIssue(
        category=IssueCategory.INVALID_RANGE,
        field_name=field_name,
        message=f"{field_name}={original_value!r} out of range, clamped to {applied_value!r}",
        severity=IssueSeverity.WARNING,
        original_value=original_value,
        applied_value=applied_value,
        part_code=part_code,
    )
    logger.warning(f"[{part_code or '-'}] {issue.message}")
    return issue


def unresolvable_risk(message: str, part_code: Optional[str] = None) -> SchedulingIssue:
    """Record that the early-order check could not be evaluated."""
    issue = SchedulingIssue(
        category=IssueCategory.UNRESOLVABLE_RISK,
        field_name="gates",
        message=message,
        applied_value=False,
        part_code=part_code,
    )
    logger.debug(f"[{part_code or '-'}] {message}")
    return issue
