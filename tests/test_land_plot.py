"""
Tests for `domain/land_plot.py`.

Covers contract rules:
- Plot numbers are compared and stored trimmed and uppercased.
- Size must be positive.
- Administrative status changes follow the lifecycle; SOLD is reached only
  through a sale and is terminal.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import date
from decimal import Decimal
from uuid import UUID

import pytest

from domain.errors import InvalidInputError, InvalidStateError
from domain.land_plot import (
    LandPlot,
    PlotStatus,
    SizeUnit,
    check_administrative_transition,
    normalize_plot_number,
    validate_plot_size,
)


def _plot(**overrides) -> LandPlot:
    fields = dict(
        plot_id=UUID("00000000-0000-0000-0000-000000000001"),
        plot_number="GB001",
        location="Tamale North District",
        size=Decimal("2.5"),
        size_unit=SizeUnit.ACRES,
        status=PlotStatus.AVAILABLE,
        owner_name="Gbewaa Palace",
        registration_date=date(2025, 1, 1),
    )
    fields.update(overrides)
    return LandPlot(**fields)


def test_plot_number_is_trimmed_and_uppercased() -> None:
    assert normalize_plot_number("  gb001 ") == "GB001"
    assert normalize_plot_number("gb-01_a") == "GB-01_A"


@pytest.mark.parametrize("value", ["", "   ", "GB 001", "GB/001", "A" * 51])
def test_invalid_plot_numbers_are_rejected(value: str) -> None:
    with pytest.raises(InvalidInputError):
        normalize_plot_number(value)


@pytest.mark.parametrize("value", [0, -2, "nope", "1.005", "100000000"])
def test_plot_size_must_be_positive_number(value) -> None:
    with pytest.raises(InvalidInputError):
        validate_plot_size(value)


def test_land_plot_requires_normalized_plot_number() -> None:
    with pytest.raises(InvalidInputError):
        _plot(plot_number="gb001")


def test_land_plot_properties() -> None:
    plot = _plot()

    assert plot.is_available
    assert plot.is_saleable
    assert plot.formatted_size == "2.5 acres"
    assert not _plot(status=PlotStatus.DISPUTED).is_saleable
    assert _plot(status=PlotStatus.RESERVED).is_saleable


def test_land_plot_is_immutable() -> None:
    plot = _plot()

    with pytest.raises(FrozenInstanceError):
        plot.status = PlotStatus.SOLD  # type: ignore[misc]


@pytest.mark.parametrize(
    "current, target",
    [
        (PlotStatus.AVAILABLE, PlotStatus.RESERVED),
        (PlotStatus.AVAILABLE, PlotStatus.DISPUTED),
        (PlotStatus.RESERVED, PlotStatus.AVAILABLE),
        (PlotStatus.RESERVED, PlotStatus.DISPUTED),
        (PlotStatus.DISPUTED, PlotStatus.AVAILABLE),
        (PlotStatus.SOLD, PlotStatus.SOLD),
    ],
)
def test_allowed_administrative_transitions(current: PlotStatus, target: PlotStatus) -> None:
    check_administrative_transition(current, target)


@pytest.mark.parametrize("current", [PlotStatus.AVAILABLE, PlotStatus.RESERVED, PlotStatus.DISPUTED])
def test_sold_cannot_be_set_administratively(current: PlotStatus) -> None:
    with pytest.raises(InvalidStateError, match="recording a transaction"):
        check_administrative_transition(current, PlotStatus.SOLD)


@pytest.mark.parametrize("target", [PlotStatus.AVAILABLE, PlotStatus.RESERVED, PlotStatus.DISPUTED])
def test_nothing_leaves_sold(target: PlotStatus) -> None:
    with pytest.raises(InvalidStateError, match="already sold"):
        check_administrative_transition(PlotStatus.SOLD, target)


def test_disputed_cannot_go_straight_to_reserved() -> None:
    with pytest.raises(InvalidStateError, match="Cannot change"):
        check_administrative_transition(PlotStatus.DISPUTED, PlotStatus.RESERVED)
