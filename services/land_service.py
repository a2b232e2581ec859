"""
Land service: plot registration, listing and status lifecycle.

Handles:
- Registering plots with unique (case/whitespace-insensitive) plot numbers
- Filtered, paginated listing
- Administrative edits, including guarded status changes
- Marking a plot SOLD (the low-level lifecycle transition)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Mapping, Optional
from uuid import UUID, uuid4

from domain.errors import ConflictError, InvalidInputError, InvalidStateError, NotFoundError
from domain.land_plot import (
    LandPlot,
    PlotStatus,
    SizeUnit,
    check_administrative_transition,
    normalize_plot_number,
    validate_plot_size,
)
from domain.pagination import Page, Pagination, page_window
from domain.time import today_utc, utc_now
from domain.validation import optional_text, require_text
from repositories.store import (
    LAND_PLOT_SORT_FIELDS,
    LandPlotQueryFilters,
    LandPlotRepository,
    SortOrder,
    resolve_sort_field,
)

logger = logging.getLogger(__name__)

_SIZE_UNIT_MESSAGE = "Size unit must be ACRES, HECTARES, or SQ_METERS"
_STATUS_MESSAGE = "Status must be AVAILABLE, SOLD, DISPUTED, or RESERVED"

# Fields accepted by update_land_plot.
_EDITABLE_FIELDS = (
    "plot_number",
    "location",
    "size",
    "size_unit",
    "status",
    "owner_name",
    "description",
    "registration_date",
)


@dataclass(frozen=True, slots=True)
class NewLandPlot:
    """Input for registering a plot."""

    plot_number: str
    location: str
    size: Any
    owner_name: str
    size_unit: SizeUnit = SizeUnit.ACRES
    status: PlotStatus = PlotStatus.AVAILABLE
    description: Optional[str] = None
    registration_date: Optional[date] = None


@dataclass(frozen=True, slots=True)
class LandPlotStatistics:
    total_plots: int
    status_breakdown: Dict[PlotStatus, int] = field(default_factory=dict)

    def count(self, status: PlotStatus) -> int:
        return self.status_breakdown.get(status, 0)

    @property
    def available_plots(self) -> int:
        return self.count(PlotStatus.AVAILABLE)

    @property
    def sold_plots(self) -> int:
        return self.count(PlotStatus.SOLD)

    @property
    def disputed_plots(self) -> int:
        return self.count(PlotStatus.DISPUTED)

    @property
    def reserved_plots(self) -> int:
        return self.count(PlotStatus.RESERVED)


class LandService:
    """Land plot registration and lifecycle operations."""

    def __init__(self, plots: LandPlotRepository) -> None:
        self._plots = plots

    def create_land_plot(self, data: NewLandPlot) -> LandPlot:
        """
        Register a new plot.

        Raises:
            InvalidInputError: field validation failed
            ConflictError: the normalized plot number already exists
        """

        now = utc_now()
        plot = LandPlot(
            plot_id=uuid4(),
            plot_number=normalize_plot_number(data.plot_number),
            location=require_text("Location", data.location, min_length=2, max_length=200),
            size=validate_plot_size(data.size),
            size_unit=_parse_enum(SizeUnit, data.size_unit, _SIZE_UNIT_MESSAGE),
            status=_parse_enum(PlotStatus, data.status, _STATUS_MESSAGE),
            owner_name=require_text("Owner name", data.owner_name, min_length=2, max_length=100),
            description=optional_text("Description", data.description, max_length=1000),
            registration_date=data.registration_date or today_utc(),
            created_at=now,
            updated_at=now,
        )

        # Checked up front for a clean message; the store enforces it as well.
        if self._plots.get_plot_by_number(plot.plot_number) is not None:
            raise ConflictError(f"Plot number {plot.plot_number} already exists")

        created = self._plots.insert_plot(plot)
        logger.info("Registered land plot %s (%s)", created.plot_number, created.plot_id)
        return created

    def get_all_land_plots(
        self,
        filters: Optional[LandPlotQueryFilters] = None,
        page: int = 1,
        page_size: int = 10,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Page[LandPlot]:
        limit, offset = page_window(page, page_size)
        items, total = self._plots.query_plots(
            filters or LandPlotQueryFilters(),
            resolve_sort_field(sort_by, LAND_PLOT_SORT_FIELDS),
            SortOrder.parse(sort_order, SortOrder.ASC),
            limit,
            offset,
        )
        return Page(items=items, pagination=Pagination.build(page, page_size, total))

    def get_available_land_plots(
        self,
        location: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Page[LandPlot]:
        return self.get_all_land_plots(
            LandPlotQueryFilters(status=PlotStatus.AVAILABLE, location=location),
            page=page,
            page_size=page_size,
            sort_by=sort_by,
            sort_order=sort_order,
        )

    def get_land_plot_by_id(self, plot_id: UUID) -> LandPlot:
        plot = self._plots.get_plot_by_id(plot_id)
        if plot is None:
            raise NotFoundError("Land plot not found")
        return plot

    def update_land_plot(self, plot_id: UUID, data: Mapping[str, Any]) -> LandPlot:
        """
        Apply an administrative edit.

        Status changes must follow the administrative lifecycle: a plot is
        never set to SOLD here, and a SOLD plot never changes status.
        """

        plot = self.get_land_plot_by_id(plot_id)
        changes = self._clean_changes(data)
        if not changes:
            raise InvalidInputError("No valid fields to update")

        if "status" in changes:
            check_administrative_transition(plot.status, changes["status"])

        if "plot_number" in changes and changes["plot_number"] != plot.plot_number:
            existing = self._plots.get_plot_by_number(changes["plot_number"])
            if existing is not None and existing.plot_id != plot_id:
                raise ConflictError(f"Plot number {changes['plot_number']} already exists")

        updated = self._plots.update_plot(plot_id, changes)
        if updated is None:
            raise NotFoundError("Land plot not found")

        if updated.status != plot.status:
            logger.info(
                "Land plot %s status changed %s -> %s",
                updated.plot_number,
                plot.status.value,
                updated.status.value,
            )
        return updated

    def mark_as_sold(self, plot_id: UUID) -> LandPlot:
        """
        Transition a plot to SOLD.

        Only SOLD is rejected here; the disputed-plot guard belongs to
        transaction recording.

        Raises:
            NotFoundError: plot does not exist
            InvalidStateError: plot is already SOLD (including a lost race)
        """

        plot = self.get_land_plot_by_id(plot_id)
        if plot.status == PlotStatus.SOLD:
            raise InvalidStateError("Land plot is already marked as sold")

        updated = self._plots.mark_plot_sold(plot_id)
        if updated is None:
            # Another writer sold it between the read and the conditional update.
            raise InvalidStateError("Land plot is already marked as sold")

        logger.info("Land plot %s marked as sold", updated.plot_number)
        return updated

    def get_land_plot_statistics(self) -> LandPlotStatistics:
        counts = self._plots.count_plots_by_status()
        breakdown = {status: counts.get(status, 0) for status in PlotStatus}
        return LandPlotStatistics(total_plots=sum(breakdown.values()), status_breakdown=breakdown)

    @staticmethod
    def _clean_changes(data: Mapping[str, Any]) -> Dict[str, Any]:
        changes: Dict[str, Any] = {}
        for name in _EDITABLE_FIELDS:
            if name not in data or (data[name] is None and name != "description"):
                continue
            value = data[name]
            if name == "plot_number":
                value = normalize_plot_number(value)
            elif name == "location":
                value = require_text("Location", value, min_length=2, max_length=200)
            elif name == "owner_name":
                value = require_text("Owner name", value, min_length=2, max_length=100)
            elif name == "description":
                value = optional_text("Description", value, max_length=1000)
            elif name == "size":
                value = validate_plot_size(value)
            elif name == "size_unit":
                value = _parse_enum(SizeUnit, value, _SIZE_UNIT_MESSAGE)
            elif name == "status":
                value = _parse_enum(PlotStatus, value, _STATUS_MESSAGE)
            changes[name] = value
        return changes


def _parse_enum(enum_type: Any, value: Any, message: str) -> Any:
    try:
        return enum_type(value)
    except ValueError:
        raise InvalidInputError(message) from None


__all__ = ["LandService", "LandPlotStatistics", "NewLandPlot"]
