"""
Domain: Land plots and their status lifecycle.

Contract excerpts implemented here:
- A plot is uniquely identified by its plot number, compared after trimming
  and uppercasing (so "gb001" and " GB001 " are the same plot).
- Status is the single source of truth for saleability.
- Lifecycle:
  - AVAILABLE/RESERVED -> SOLD: only through a recorded sale.
  - any non-SOLD status -> DISPUTED: administrative.
  - DISPUTED/RESERVED -> AVAILABLE, AVAILABLE -> RESERVED: administrative.
  - SOLD is terminal; no transition out of SOLD is exposed.

This module contains only pure domain entities/value objects: no I/O.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import FrozenSet, Mapping, Optional
from uuid import UUID

from .errors import InvalidInputError, InvalidStateError
from .time import require_utc_timestamp
from .validation import optional_text, require_precision, require_text, to_decimal

_PLOT_NUMBER_PATTERN = re.compile(r"^[A-Z0-9_-]+$")


class SizeUnit(str, Enum):
    ACRES = "ACRES"
    HECTARES = "HECTARES"
    SQ_METERS = "SQ_METERS"


class PlotStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    SOLD = "SOLD"
    DISPUTED = "DISPUTED"
    RESERVED = "RESERVED"


# Statuses from which a sale may be recorded.
SALEABLE_STATUSES: FrozenSet[PlotStatus] = frozenset({PlotStatus.AVAILABLE, PlotStatus.RESERVED})

# Administrative (direct update) transitions. SOLD is reached only via a sale.
_ADMINISTRATIVE_TRANSITIONS: Mapping[PlotStatus, FrozenSet[PlotStatus]] = {
    PlotStatus.AVAILABLE: frozenset({PlotStatus.RESERVED, PlotStatus.DISPUTED}),
    PlotStatus.RESERVED: frozenset({PlotStatus.AVAILABLE, PlotStatus.DISPUTED}),
    PlotStatus.DISPUTED: frozenset({PlotStatus.AVAILABLE}),
    PlotStatus.SOLD: frozenset(),
}


def normalize_plot_number(value: str) -> str:
    """Trim and uppercase a plot number; the stored and compared form."""

    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError("Plot number is required")
    normalized = value.strip().upper()
    if len(normalized) > 50:
        raise InvalidInputError("Plot number must be between 1 and 50 characters")
    if not _PLOT_NUMBER_PATTERN.match(normalized):
        raise InvalidInputError(
            "Plot number can only contain letters, numbers, hyphens, and underscores"
        )
    return normalized


def validate_plot_size(value: object) -> Decimal:
    size = to_decimal("Size", value)
    if size <= 0:
        raise InvalidInputError("Size must be greater than 0")
    return require_precision("Size", size, digits=10, places=2)


def check_administrative_transition(current: PlotStatus, target: PlotStatus) -> None:
    """
    Validate a direct status update.

    Keeping the same status is always allowed. Moving to SOLD is never an
    administrative action, and nothing leaves SOLD.
    """

    if current == target:
        return
    if target == PlotStatus.SOLD:
        raise InvalidStateError("Land plot can only be marked as sold by recording a transaction")
    if current == PlotStatus.SOLD:
        raise InvalidStateError("Land plot is already sold; its status can no longer change")
    if target not in _ADMINISTRATIVE_TRANSITIONS[current]:
        raise InvalidStateError(
            f"Cannot change land plot status from {current.value} to {target.value}"
        )


@dataclass(frozen=True, slots=True)
class LandPlot:
    """A registered parcel of land."""

    plot_id: UUID
    plot_number: str
    location: str
    size: Decimal
    size_unit: SizeUnit
    status: PlotStatus
    owner_name: str
    registration_date: date
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.plot_number != normalize_plot_number(self.plot_number):
            raise InvalidInputError("plot_number must be stored normalized (uppercase, trimmed)")
        require_text("Location", self.location, min_length=2, max_length=200)
        require_text("Owner name", self.owner_name, min_length=2, max_length=100)
        optional_text("Description", self.description, max_length=1000)
        validate_plot_size(self.size)
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)

    @property
    def is_available(self) -> bool:
        return self.status == PlotStatus.AVAILABLE

    @property
    def is_saleable(self) -> bool:
        return self.status in SALEABLE_STATUSES

    @property
    def formatted_size(self) -> str:
        """e.g. "2.5 acres"."""
        return f"{self.size.normalize():f} {self.size_unit.value.lower()}"


__all__ = [
    "SizeUnit",
    "PlotStatus",
    "SALEABLE_STATUSES",
    "LandPlot",
    "normalize_plot_number",
    "validate_plot_size",
    "check_administrative_transition",
]
