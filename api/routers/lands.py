"""
Land Plot API Endpoints.

Endpoints for registering, browsing and administering land plots.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import PageParams, get_page_params, get_services, require_permission
from api.models import (
    LandPlotCreateRequest,
    LandPlotListResponse,
    LandPlotResponse,
    LandPlotUpdateRequest,
    LandStatisticsResponse,
    PaginationResponse,
)
from domain.access_policy import Permission
from domain.land_plot import PlotStatus
from domain.pagination import Page
from domain.user import User
from repositories.store import LandPlotQueryFilters
from services.container import RegistryServices
from services.land_service import NewLandPlot

router = APIRouter(prefix="/lands")


def _list_response(page: Page) -> LandPlotListResponse:
    return LandPlotListResponse(
        items=[LandPlotResponse.from_domain(plot) for plot in page.items],
        pagination=PaginationResponse.from_domain(page.pagination),
    )


# Static paths are registered before /{plot_id} so they are not captured by it.

@router.get(
    "/statistics",
    response_model=LandStatisticsResponse,
    summary="Land Plot Statistics",
    description="Total plot count and a count per status."
)
def get_land_statistics(
    _: User = Depends(require_permission(Permission.LAND_READ)),
    services: RegistryServices = Depends(get_services),
):
    stats = services.lands.get_land_plot_statistics()
    return LandStatisticsResponse(
        total_plots=stats.total_plots,
        available_plots=stats.available_plots,
        sold_plots=stats.sold_plots,
        disputed_plots=stats.disputed_plots,
        reserved_plots=stats.reserved_plots,
        status_breakdown={
            plot_status.value: count for plot_status, count in stats.status_breakdown.items()
        },
    )


@router.get("/available", response_model=LandPlotListResponse, summary="Available Land Plots")
def get_available_land_plots(
    location: Optional[str] = Query(None, description="Case-insensitive location substring"),
    paging: PageParams = Depends(get_page_params),
    _: User = Depends(require_permission(Permission.LAND_READ)),
    services: RegistryServices = Depends(get_services),
):
    page = services.lands.get_available_land_plots(
        location=location,
        page=paging.page,
        page_size=paging.page_size,
        sort_by=paging.sort_by,
        sort_order=paging.sort_order,
    )
    return _list_response(page)


@router.post(
    "",
    response_model=LandPlotResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register Land Plot"
)
def create_land_plot(
    request: LandPlotCreateRequest,
    _: User = Depends(require_permission(Permission.LAND_WRITE)),
    services: RegistryServices = Depends(get_services),
):
    """
    Register a new land plot.

    Plot numbers are stored uppercase and must be unique; a duplicate returns 409.
    """
    plot = services.lands.create_land_plot(
        NewLandPlot(
            plot_number=request.plot_number,
            location=request.location,
            size=request.size,
            owner_name=request.owner_name,
            size_unit=request.size_unit,
            status=request.status,
            description=request.description,
            registration_date=request.registration_date,
        )
    )
    return LandPlotResponse.from_domain(plot)


@router.get("", response_model=LandPlotListResponse, summary="List Land Plots")
def get_land_plots(
    status_filter: Optional[PlotStatus] = Query(None, alias="status"),
    location: Optional[str] = Query(None, description="Case-insensitive location substring"),
    paging: PageParams = Depends(get_page_params),
    _: User = Depends(require_permission(Permission.LAND_READ)),
    services: RegistryServices = Depends(get_services),
):
    """
    List land plots with optional filters.

    **Example usage:**
    - `GET /api/v1/lands?status=AVAILABLE&location=north&page=2&limit=20`
    - `GET /api/v1/lands?sort_by=size&sort_order=DESC`
    """
    page = services.lands.get_all_land_plots(
        LandPlotQueryFilters(status=status_filter, location=location),
        page=paging.page,
        page_size=paging.page_size,
        sort_by=paging.sort_by,
        sort_order=paging.sort_order,
    )
    return _list_response(page)


@router.get("/{plot_id}", response_model=LandPlotResponse, summary="Get Land Plot")
def get_land_plot(
    plot_id: UUID,
    _: User = Depends(require_permission(Permission.LAND_READ)),
    services: RegistryServices = Depends(get_services),
):
    return LandPlotResponse.from_domain(services.lands.get_land_plot_by_id(plot_id))


@router.put("/{plot_id}", response_model=LandPlotResponse, summary="Update Land Plot")
def update_land_plot(
    plot_id: UUID,
    request: LandPlotUpdateRequest,
    _: User = Depends(require_permission(Permission.LAND_WRITE)),
    services: RegistryServices = Depends(get_services),
):
    """
    Edit a land plot.

    Status changes follow the administrative lifecycle; SOLD can only be
    reached by recording a transaction and never changes afterwards.
    """
    plot = services.lands.update_land_plot(plot_id, request.model_dump(exclude_unset=True))
    return LandPlotResponse.from_domain(plot)


@router.patch("/{plot_id}/mark-sold", response_model=LandPlotResponse, summary="Mark Plot Sold")
def mark_land_plot_sold(
    plot_id: UUID,
    _: User = Depends(require_permission(Permission.LAND_WRITE)),
    services: RegistryServices = Depends(get_services),
):
    return LandPlotResponse.from_domain(services.lands.mark_as_sold(plot_id))
