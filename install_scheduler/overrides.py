"""Override kinds and the audit report of which safety rules were bypassed."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List


class Override(str, Enum):
    CORE_HOURS = "core_hours"
    DAILY_LIMIT = "hours_or_overlap"
    AVAILABILITY = "availability"


# Reporting order used by every OverrideReport
TAG_ORDER = (Override.DAILY_LIMIT, Override.AVAILABILITY, Override.CORE_HOURS)


@dataclass(frozen=True)
class OverrideReport:
    tags: List[str] = field(default_factory=list)

    @property
    def any(self) -> bool:
        return bool(self.tags)

    def to_dict(self) -> dict:
        return {"rule_overrides": list(self.tags)}


def overrides_from_flags(
    override_core_hours: bool = False,
    override_daily_limit: bool = False,
    override_availability: bool = False,
) -> frozenset:
    """
    Convert the three independent override booleans into a set of Override kinds.

    Args:
        override_core_hours: Allow work outside core hours and on non-working days
        override_daily_limit: Bypass the daily hour cap and overlap checks
        override_availability: Bypass installer availability exceptions

    Returns:
        frozenset of Override members
    """
    flags = {
        Override.CORE_HOURS: override_core_hours,
        Override.DAILY_LIMIT: override_daily_limit,
        Override.AVAILABILITY: override_availability,
    }
    return frozenset(kind for kind, enabled in flags.items() if enabled)


def parse_overrides(values: Iterable[str | Override]) -> frozenset:
    """Parse override tags or member names ("core_hours", "DAILY_LIMIT", ...)."""
    parsed = set()
    for value in values:
        if isinstance(value, Override):
            parsed.add(value)
            continue
        token = str(value).strip()
        if token.upper() in Override.__members__:
            parsed.add(Override[token.upper()])
        else:
            parsed.add(Override(token.lower()))
    return frozenset(parsed)


def resolve_overrides(overrides: Iterable[Override]) -> OverrideReport:
    """Return the tags of overrides exercised by a request, in stable order."""
    active = set(overrides)
    return OverrideReport(tags=[kind.value for kind in TAG_ORDER if kind in active])
