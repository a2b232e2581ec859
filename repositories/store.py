"""
Entity store contracts.

Services depend on these protocols, not on a concrete backend. Two backends
implement them:
- `repositories.supabase_store` (PostgreSQL through Supabase; production)
- `repositories.memory_store` (in-process; local development and tests)

Repositories enforce storage invariants (uniqueness, referential integrity,
atomic sale recording) but no business workflow.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple
from uuid import UUID

from domain.land_plot import LandPlot, PlotStatus
from domain.statistics import TransactionStatistics
from domain.transaction import Transaction, TransactionDetails
from domain.user import User


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"

    @staticmethod
    def parse(value: Optional[str], default: "SortOrder") -> "SortOrder":
        if not value:
            return default
        try:
            return SortOrder(value.upper())
        except ValueError:
            return default


# Sortable columns; anything else falls back to the first entry of each list.
TRANSACTION_SORT_FIELDS: Tuple[str, ...] = (
    "transaction_date",
    "sale_price",
    "commission_amount",
    "buyer_name",
    "seller_name",
    "created_at",
)
LAND_PLOT_SORT_FIELDS: Tuple[str, ...] = (
    "plot_number",
    "location",
    "size",
    "status",
    "registration_date",
    "created_at",
)


def resolve_sort_field(value: Optional[str], allowed: Tuple[str, ...]) -> str:
    return value if value in allowed else allowed[0]


@dataclass(frozen=True, slots=True)
class LandPlotQueryFilters:
    status: Optional[PlotStatus] = None
    location: Optional[str] = None  # substring, case-insensitive


@dataclass(frozen=True, slots=True)
class TransactionQueryFilters:
    """All bounds are inclusive; text filters are case-insensitive substrings."""

    buyer_name: Optional[str] = None
    seller_name: Optional[str] = None
    plot_number: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    created_by: Optional[UUID] = None


@dataclass(frozen=True, slots=True)
class AtomicSaleResult:
    """Outcome of recording a sale and marking its plot SOLD in one unit of work."""

    success: bool
    transaction_id: Optional[UUID]
    error_code: Optional[str]
    error_message: Optional[str]


# error_code values returned by record_sale_atomic
PLOT_NOT_FOUND = "PLOT_NOT_FOUND"
ALREADY_SOLD = "ALREADY_SOLD"
PLOT_DISPUTED = "PLOT_DISPUTED"


class UserRepository(Protocol):
    def get_user_by_id(self, user_id: UUID) -> Optional[User]: ...

    def get_user_by_email(self, email: str) -> Optional[User]: ...

    def insert_user(self, user: User) -> User: ...

    def update_user(self, user_id: UUID, fields: Mapping[str, Any]) -> Optional[User]: ...


class LandPlotRepository(Protocol):
    def get_plot_by_id(self, plot_id: UUID) -> Optional[LandPlot]: ...

    def get_plot_by_number(self, plot_number: str) -> Optional[LandPlot]: ...

    def insert_plot(self, plot: LandPlot) -> LandPlot: ...

    def update_plot(self, plot_id: UUID, fields: Mapping[str, Any]) -> Optional[LandPlot]: ...

    def query_plots(
        self,
        filters: LandPlotQueryFilters,
        sort_by: str,
        sort_order: SortOrder,
        limit: int,
        offset: int,
    ) -> Tuple[List[LandPlot], int]: ...

    def count_plots_by_status(self) -> Dict[PlotStatus, int]: ...

    def mark_plot_sold(self, plot_id: UUID) -> Optional[LandPlot]:
        """Conditional update: set SOLD where status <> SOLD. None if no row changed."""
        ...


class TransactionRepository(Protocol):
    def record_sale_atomic(self, transaction: Transaction) -> AtomicSaleResult: ...

    def get_transaction_details(self, transaction_id: UUID) -> Optional[TransactionDetails]: ...

    def update_transaction(
        self, transaction_id: UUID, fields: Mapping[str, Any]
    ) -> Optional[Transaction]: ...

    def query_transactions(
        self,
        filters: TransactionQueryFilters,
        sort_by: str,
        sort_order: SortOrder,
        limit: int,
        offset: int,
    ) -> Tuple[List[TransactionDetails], int]: ...

    def get_sale_statistics(
        self, start_date: Optional[date], end_date: Optional[date]
    ) -> TransactionStatistics:
        """Aggregates over transactions dated within the inclusive bounds."""
        ...

    def list_recent_transactions(self, limit: int) -> List[TransactionDetails]: ...


__all__ = [
    "ALREADY_SOLD",
    "PLOT_DISPUTED",
    "PLOT_NOT_FOUND",
    "AtomicSaleResult",
    "LAND_PLOT_SORT_FIELDS",
    "LandPlotQueryFilters",
    "LandPlotRepository",
    "SortOrder",
    "TRANSACTION_SORT_FIELDS",
    "TransactionQueryFilters",
    "TransactionRepository",
    "UserRepository",
    "resolve_sort_field",
]
