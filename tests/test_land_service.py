"""
Tests for `services/land_service.py`.

Covers contract rules:
- Plot numbers are unique case- and whitespace-insensitively (Conflict).
- Listing supports status/location filters, sorting and pagination.
- Administrative updates follow the lifecycle and reject empty patches.
- mark_as_sold: NotFound when absent, InvalidState when already SOLD,
  otherwise SOLD (DISPUTED plots are not blocked at this layer).
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from domain.errors import ConflictError, InvalidInputError, InvalidStateError, NotFoundError
from domain.land_plot import PlotStatus, SizeUnit
from repositories.store import LandPlotQueryFilters
from services.land_service import NewLandPlot


def _new_plot(plot_number: str = "GB001", **overrides) -> NewLandPlot:
    fields = dict(
        plot_number=plot_number,
        location="Tamale North District",
        size=Decimal("2.5"),
        owner_name="Gbewaa Palace",
    )
    fields.update(overrides)
    return NewLandPlot(**fields)


def test_create_land_plot_normalizes_and_defaults(services) -> None:
    plot = services.lands.create_land_plot(_new_plot(" gb001 ", description="  "))

    assert plot.plot_number == "GB001"
    assert plot.status == PlotStatus.AVAILABLE
    assert plot.size_unit == SizeUnit.ACRES
    assert plot.description is None
    assert plot.registration_date is not None
    assert services.lands.get_land_plot_by_id(plot.plot_id) == plot


def test_duplicate_plot_number_conflicts_regardless_of_case(services) -> None:
    """Creating "gb001" then "GB001" fails with Conflict."""

    services.lands.create_land_plot(_new_plot("gb001"))

    with pytest.raises(ConflictError, match="GB001"):
        services.lands.create_land_plot(_new_plot("GB001"))
    with pytest.raises(ConflictError):
        services.lands.create_land_plot(_new_plot("  Gb001"))


@pytest.mark.parametrize(
    "overrides",
    [{"size": 0}, {"location": "x"}, {"owner_name": ""}, {"size_unit": "FEET"}, {"status": "GONE"}],
)
def test_create_land_plot_validates_fields(services, overrides) -> None:
    with pytest.raises(InvalidInputError):
        services.lands.create_land_plot(_new_plot(**overrides))


def test_get_missing_land_plot_is_not_found(services) -> None:
    with pytest.raises(NotFoundError, match="Land plot not found"):
        services.lands.get_land_plot_by_id(uuid4())


def test_listing_filters_sorts_and_paginates(services) -> None:
    for number, location in (("C3", "Tamale North"), ("A1", "Tamale South"), ("B2", "Yendi")):
        services.lands.create_land_plot(_new_plot(number, location=location))
    reserved = services.lands.create_land_plot(_new_plot("D4", status=PlotStatus.RESERVED))

    page = services.lands.get_all_land_plots(page=1, page_size=3)
    assert [plot.plot_number for plot in page.items] == ["A1", "B2", "C3"]
    assert page.pagination.total_items == 4
    assert page.pagination.total_pages == 2
    assert page.pagination.has_next_page
    assert not page.pagination.has_prev_page

    tamale = services.lands.get_all_land_plots(LandPlotQueryFilters(location="tamale"))
    assert {plot.plot_number for plot in tamale.items} == {"A1", "C3", "D4"}

    by_status = services.lands.get_all_land_plots(LandPlotQueryFilters(status=PlotStatus.RESERVED))
    assert [plot.plot_id for plot in by_status.items] == [reserved.plot_id]

    available = services.lands.get_available_land_plots(sort_order="desc")
    assert [plot.plot_number for plot in available.items] == ["C3", "B2", "A1"]


def test_unknown_sort_field_falls_back_to_plot_number(services) -> None:
    for number in ("B", "A"):
        services.lands.create_land_plot(_new_plot(number))

    page = services.lands.get_all_land_plots(sort_by="owner_name; drop table")

    assert [plot.plot_number for plot in page.items] == ["A", "B"]


def test_invalid_paging_is_rejected(services) -> None:
    with pytest.raises(InvalidInputError):
        services.lands.get_all_land_plots(page=0)
    with pytest.raises(InvalidInputError):
        services.lands.get_all_land_plots(page_size=0)


def test_update_land_plot_applies_changes(services) -> None:
    plot = services.lands.create_land_plot(_new_plot())

    updated = services.lands.update_land_plot(
        plot.plot_id, {"location": "  Savelugu ", "status": "RESERVED", "unknown": "x"}
    )

    assert updated.location == "Savelugu"
    assert updated.status == PlotStatus.RESERVED
    assert updated.plot_number == "GB001"


def test_update_land_plot_without_editable_fields_fails(services) -> None:
    plot = services.lands.create_land_plot(_new_plot())

    with pytest.raises(InvalidInputError, match="No valid fields to update"):
        services.lands.update_land_plot(plot.plot_id, {"plot_id": str(uuid4())})


def test_update_cannot_set_sold(services) -> None:
    plot = services.lands.create_land_plot(_new_plot())

    with pytest.raises(InvalidStateError):
        services.lands.update_land_plot(plot.plot_id, {"status": PlotStatus.SOLD})


def test_update_cannot_reopen_sold_plot(services, plot_factory) -> None:
    plot = plot_factory("SOLD1", PlotStatus.SOLD)

    with pytest.raises(InvalidStateError):
        services.lands.update_land_plot(plot.plot_id, {"status": PlotStatus.AVAILABLE})


def test_update_plot_number_conflict(services) -> None:
    services.lands.create_land_plot(_new_plot("GB001"))
    other = services.lands.create_land_plot(_new_plot("GB002"))

    with pytest.raises(ConflictError):
        services.lands.update_land_plot(other.plot_id, {"plot_number": "gb001"})


def test_mark_as_sold(services) -> None:
    plot = services.lands.create_land_plot(_new_plot())

    sold = services.lands.mark_as_sold(plot.plot_id)

    assert sold.status == PlotStatus.SOLD
    with pytest.raises(InvalidStateError, match="already marked as sold"):
        services.lands.mark_as_sold(plot.plot_id)


def test_mark_as_sold_missing_plot(services) -> None:
    with pytest.raises(NotFoundError):
        services.lands.mark_as_sold(uuid4())


def test_mark_as_sold_does_not_block_disputed_plots(services, plot_factory) -> None:
    """The disputed-plot guard lives in transaction recording, not here."""

    plot = plot_factory("DSP1", PlotStatus.DISPUTED)

    assert services.lands.mark_as_sold(plot.plot_id).status == PlotStatus.SOLD


def test_land_plot_statistics(services, plot_factory) -> None:
    plot_factory("A1")
    plot_factory("A2")
    plot_factory("S1", PlotStatus.SOLD)
    plot_factory("D1", PlotStatus.DISPUTED)

    stats = services.lands.get_land_plot_statistics()

    assert stats.total_plots == 4
    assert stats.available_plots == 2
    assert stats.sold_plots == 1
    assert stats.disputed_plots == 1
    assert stats.reserved_plots == 0
