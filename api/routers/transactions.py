"""
Transactions API Endpoints.

Endpoints for recording land sales, browsing recorded transactions,
commission previews and sales statistics.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import PageParams, get_page_params, get_services, require_permission
from api.models import (
    CommissionRequest,
    CommissionResponse,
    PaginationResponse,
    TransactionCreateRequest,
    TransactionListResponse,
    TransactionResponse,
    TransactionStatisticsResponse,
    TransactionUpdateRequest,
)
from domain.access_policy import Permission
from domain.pagination import Page
from domain.user import User
from repositories.store import TransactionQueryFilters
from services.container import RegistryServices
from services.statistics_service import DateRange
from services.transaction_service import NewTransaction

router = APIRouter(prefix="/transactions")


def _list_response(page: Page) -> TransactionListResponse:
    return TransactionListResponse(
        items=[TransactionResponse.from_domain(details) for details in page.items],
        pagination=PaginationResponse.from_domain(page.pagination),
    )


def get_transaction_filters(
    buyer_name: Optional[str] = Query(None, description="Case-insensitive buyer name substring"),
    seller_name: Optional[str] = Query(None, description="Case-insensitive seller name substring"),
    plot_number: Optional[str] = Query(None, description="Case-insensitive plot number substring"),
    start_date: Optional[date] = Query(None, description="Earliest transaction date (inclusive)"),
    end_date: Optional[date] = Query(None, description="Latest transaction date (inclusive)"),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
) -> TransactionQueryFilters:
    return TransactionQueryFilters(
        buyer_name=buyer_name,
        seller_name=seller_name,
        plot_number=plot_number,
        start_date=start_date,
        end_date=end_date,
        min_price=min_price,
        max_price=max_price,
    )


@router.post(
    "",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record Sale",
    description="Record the sale of a land plot and mark the plot SOLD atomically."
)
def create_transaction(
    request: TransactionCreateRequest,
    user: User = Depends(require_permission(Permission.TRANSACTION_WRITE)),
    services: RegistryServices = Depends(get_services),
):
    """
    Record a land sale.

    **Process:**
    1. Validates the land plot exists and is neither SOLD nor DISPUTED
    2. Derives the commission from the sale price and rate
       (the configured default rate applies when none is given)
    3. Inserts the transaction and marks the plot SOLD as one unit of work

    If two sales of the same plot race, exactly one succeeds; the other gets
    a 400 "Land plot is already sold".

    **Example request:**
    ```json
    {
      "land_plot_id": "123e4567-e89b-12d3-a456-426614174000",
      "buyer_name": "Yaw Boateng",
      "buyer_contact": "0244123456",
      "seller_name": "Kwame Asante",
      "seller_contact": "0207654321",
      "sale_price": "50000.00",
      "commission_rate": "0.15"
    }
    ```
    """
    details = services.transactions.record_transaction(
        NewTransaction(
            land_plot_id=request.land_plot_id,
            buyer_name=request.buyer_name,
            buyer_contact=request.buyer_contact,
            seller_name=request.seller_name,
            seller_contact=request.seller_contact,
            sale_price=request.sale_price,
            commission_rate=request.commission_rate,
            transaction_date=request.transaction_date,
        ),
        created_by=user.user_id,
    )
    return TransactionResponse.from_domain(details)


@router.get(
    "/stats",
    response_model=TransactionStatisticsResponse,
    summary="Sales Statistics"
)
def get_transaction_statistics(
    start_date: Optional[date] = Query(None, description="Earliest transaction date (inclusive)"),
    end_date: Optional[date] = Query(None, description="Latest transaction date (inclusive)"),
    _: User = Depends(require_permission(Permission.STATISTICS_READ)),
    services: RegistryServices = Depends(get_services),
):
    stats = services.statistics.get_transaction_statistics(
        DateRange(start_date=start_date, end_date=end_date)
    )
    return TransactionStatisticsResponse.from_domain(stats)


@router.get("/recent", response_model=List[TransactionResponse], summary="Recent Transactions")
def get_recent_transactions(
    limit: int = Query(10, ge=1, le=100),
    _: User = Depends(require_permission(Permission.TRANSACTION_READ)),
    services: RegistryServices = Depends(get_services),
):
    return [
        TransactionResponse.from_domain(details)
        for details in services.transactions.get_recent_transactions(limit)
    ]


@router.post(
    "/calculate-commission",
    response_model=CommissionResponse,
    summary="Preview Commission",
    description="Calculate the commission for a prospective sale without recording anything."
)
def calculate_commission(
    request: CommissionRequest,
    _: User = Depends(require_permission(Permission.TRANSACTION_WRITE)),
    services: RegistryServices = Depends(get_services),
):
    breakdown = services.transactions.calculate_commission(
        request.sale_price, request.commission_rate
    )
    return CommissionResponse.from_domain(breakdown)


@router.get("", response_model=TransactionListResponse, summary="List Transactions")
def get_transactions(
    filters: TransactionQueryFilters = Depends(get_transaction_filters),
    paging: PageParams = Depends(get_page_params),
    _: User = Depends(require_permission(Permission.TRANSACTION_READ)),
    services: RegistryServices = Depends(get_services),
):
    """
    List transactions, newest first by default.

    **Example usage:**
    - `GET /api/v1/transactions?buyer_name=yaw&start_date=2024-01-01`
    - `GET /api/v1/transactions?min_price=10000&sort_by=sale_price&sort_order=ASC`
    """
    page = services.transactions.get_all_transactions(
        filters,
        page=paging.page,
        page_size=paging.page_size,
        sort_by=paging.sort_by,
        sort_order=paging.sort_order,
    )
    return _list_response(page)


@router.get(
    "/user/{user_id}",
    response_model=TransactionListResponse,
    summary="Transactions Recorded By User"
)
def get_transactions_by_user(
    user_id: UUID,
    filters: TransactionQueryFilters = Depends(get_transaction_filters),
    paging: PageParams = Depends(get_page_params),
    _: User = Depends(require_permission(Permission.TRANSACTION_READ)),
    services: RegistryServices = Depends(get_services),
):
    page = services.transactions.get_transactions_by_user(
        user_id,
        filters,
        page=paging.page,
        page_size=paging.page_size,
        sort_by=paging.sort_by,
        sort_order=paging.sort_order,
    )
    return _list_response(page)


@router.get("/{transaction_id}", response_model=TransactionResponse, summary="Get Transaction")
def get_transaction(
    transaction_id: UUID,
    _: User = Depends(require_permission(Permission.TRANSACTION_READ)),
    services: RegistryServices = Depends(get_services),
):
    return TransactionResponse.from_domain(
        services.transactions.get_transaction_by_id(transaction_id)
    )


@router.patch("/{transaction_id}", response_model=TransactionResponse, summary="Update Transaction")
def update_transaction(
    transaction_id: UUID,
    request: TransactionUpdateRequest,
    _: User = Depends(require_permission(Permission.TRANSACTION_WRITE)),
    services: RegistryServices = Depends(get_services),
):
    """
    Edit buyer contact, seller contact or receipt path.

    Financial fields, names, the plot and the date cannot be changed; such
    keys are ignored.
    """
    details = services.transactions.update_transaction(
        transaction_id, request.model_dump(exclude_unset=True)
    )
    return TransactionResponse.from_domain(details)
