"""
In-memory entity store.

Implements the user, land plot and transaction repository protocols in
process, with the same storage invariants as the PostgreSQL schema:
- plot numbers and emails are unique (after normalization)
- transactions reference an existing plot and user
- recording a sale and marking its plot SOLD happen under one lock, so two
  concurrent sales of the same plot cannot both succeed

Used for local development (STORE_BACKEND=memory) and the test suite.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from uuid import UUID

from domain.errors import ConflictError, NotFoundError
from domain.land_plot import LandPlot, PlotStatus, normalize_plot_number
from domain.statistics import SaleFigure, TransactionStatistics, aggregate_sale_figures
from domain.time import utc_now
from domain.transaction import (
    CreatorSummary,
    LandPlotSummary,
    Transaction,
    TransactionDetails,
)
from domain.user import User, normalize_email
from repositories.store import (
    ALREADY_SOLD,
    PLOT_DISPUTED,
    PLOT_NOT_FOUND,
    AtomicSaleResult,
    LandPlotQueryFilters,
    SortOrder,
    TransactionQueryFilters,
)


def _contains(haystack: str, needle: Optional[str]) -> bool:
    return not needle or needle.strip().lower() in haystack.lower()


def _sorted(rows: List[Any], key: Callable[[Any], Any], order: SortOrder) -> List[Any]:
    return sorted(rows, key=key, reverse=order == SortOrder.DESC)


@dataclass
class InMemoryRegistryStore:
    """Thread-safe in-process store for users, land plots and transactions."""

    users: Dict[UUID, User] = field(default_factory=dict)
    plots: Dict[UUID, LandPlot] = field(default_factory=dict)
    transactions: Dict[UUID, Transaction] = field(default_factory=dict)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    # ------------------------------------------------------------------ users

    def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        with self._lock:
            return self.users.get(user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        normalized = email.strip().lower()
        with self._lock:
            for user in self.users.values():
                if user.email == normalized:
                    return user
        return None

    def insert_user(self, user: User) -> User:
        with self._lock:
            if self.get_user_by_email(user.email) is not None:
                raise ConflictError("User with this email already exists")
            self.users[user.user_id] = user
            return user

    def update_user(self, user_id: UUID, fields: Mapping[str, Any]) -> Optional[User]:
        with self._lock:
            user = self.users.get(user_id)
            if user is None:
                return None
            changes = dict(fields)
            if "email" in changes:
                changes["email"] = normalize_email(changes["email"])
                other = self.get_user_by_email(changes["email"])
                if other is not None and other.user_id != user_id:
                    raise ConflictError("User with this email already exists")
            changes.setdefault("updated_at", utc_now())
            updated = replace(user, **changes)
            self.users[user_id] = updated
            return updated

    # ------------------------------------------------------------- land plots

    def get_plot_by_id(self, plot_id: UUID) -> Optional[LandPlot]:
        with self._lock:
            return self.plots.get(plot_id)

    def get_plot_by_number(self, plot_number: str) -> Optional[LandPlot]:
        normalized = normalize_plot_number(plot_number)
        with self._lock:
            for plot in self.plots.values():
                if plot.plot_number == normalized:
                    return plot
        return None

    def insert_plot(self, plot: LandPlot) -> LandPlot:
        with self._lock:
            if self.get_plot_by_number(plot.plot_number) is not None:
                raise ConflictError(f"Plot number {plot.plot_number} already exists")
            self.plots[plot.plot_id] = plot
            return plot

    def update_plot(self, plot_id: UUID, fields: Mapping[str, Any]) -> Optional[LandPlot]:
        with self._lock:
            plot = self.plots.get(plot_id)
            if plot is None:
                return None
            changes = dict(fields)
            if "plot_number" in changes:
                changes["plot_number"] = normalize_plot_number(changes["plot_number"])
                other = self.get_plot_by_number(changes["plot_number"])
                if other is not None and other.plot_id != plot_id:
                    raise ConflictError(f"Plot number {changes['plot_number']} already exists")
            changes.setdefault("updated_at", utc_now())
            updated = replace(plot, **changes)
            self.plots[plot_id] = updated
            return updated

    def query_plots(
        self,
        filters: LandPlotQueryFilters,
        sort_by: str,
        sort_order: SortOrder,
        limit: int,
        offset: int,
    ) -> Tuple[List[LandPlot], int]:
        with self._lock:
            rows = [
                plot
                for plot in self.plots.values()
                if (filters.status is None or plot.status == filters.status)
                and _contains(plot.location, filters.location)
            ]
        rows = _sorted(rows, lambda plot: _sort_value(getattr(plot, sort_by)), sort_order)
        return rows[offset:offset + limit], len(rows)

    def count_plots_by_status(self) -> Dict[PlotStatus, int]:
        counts: Dict[PlotStatus, int] = {}
        with self._lock:
            for plot in self.plots.values():
                counts[plot.status] = counts.get(plot.status, 0) + 1
        return counts

    def mark_plot_sold(self, plot_id: UUID) -> Optional[LandPlot]:
        with self._lock:
            plot = self.plots.get(plot_id)
            if plot is None or plot.status == PlotStatus.SOLD:
                return None
            return self.update_plot(plot_id, {"status": PlotStatus.SOLD})

    # ----------------------------------------------------------- transactions

    def record_sale_atomic(self, transaction: Transaction) -> AtomicSaleResult:
        with self._lock:
            plot = self.plots.get(transaction.land_plot_id)
            if plot is None:
                return AtomicSaleResult(False, None, PLOT_NOT_FOUND, "Land plot not found")
            if plot.status == PlotStatus.SOLD:
                return AtomicSaleResult(False, None, ALREADY_SOLD, "Land plot is already sold")
            if plot.status == PlotStatus.DISPUTED:
                return AtomicSaleResult(False, None, PLOT_DISPUTED, "Cannot sell disputed land plot")
            if transaction.created_by not in self.users:
                raise NotFoundError("User not found")
            if transaction.transaction_id in self.transactions:
                raise ConflictError("Transaction already exists")

            self.transactions[transaction.transaction_id] = transaction
            self.update_plot(plot.plot_id, {"status": PlotStatus.SOLD})
            return AtomicSaleResult(True, transaction.transaction_id, None, None)

    def get_transaction_details(self, transaction_id: UUID) -> Optional[TransactionDetails]:
        with self._lock:
            transaction = self.transactions.get(transaction_id)
            return self._details(transaction) if transaction is not None else None

    def update_transaction(
        self, transaction_id: UUID, fields: Mapping[str, Any]
    ) -> Optional[Transaction]:
        with self._lock:
            transaction = self.transactions.get(transaction_id)
            if transaction is None:
                return None
            updated = transaction.revise(**dict(fields))
            self.transactions[transaction_id] = updated
            return updated

    def query_transactions(
        self,
        filters: TransactionQueryFilters,
        sort_by: str,
        sort_order: SortOrder,
        limit: int,
        offset: int,
    ) -> Tuple[List[TransactionDetails], int]:
        with self._lock:
            rows = [
                self._details(transaction)
                for transaction in self.transactions.values()
                if self._matches(transaction, filters)
            ]
        return aggregate_sale_figures(figures)
        rows = _sorted(
            rows, lambda details: _sort_value(getattr(details.transaction, sort_by)), sort_order
        )
        return rows[offset:offset + limit], len(rows)

    def get_sale_statistics(
        self, start_date: Optional[date], end_date: Optional[date]
    ) -> TransactionStatistics:
        filters = TransactionQueryFilters(start_date=start_date, end_date=end_date)
        with self._lock:
            figures = [
                SaleFigure(
                    sale_price=transaction.sale_price,
                    commission_amount=transaction.commission_amount,
                    transaction_date=transaction.transaction_date,
                )
                for transaction in self.transactions.values()
                if self._matches(transaction, filters)
            ]
        return aggregate_sale_figures(figures)

    def list_recent_transactions(self, limit: int) -> List[TransactionDetails]:
        rows, _ = self.query_transactions(
            TransactionQueryFilters(), "created_at", SortOrder.DESC, limit, 0
        )
        return rows

    # ---------------------------------------------------------------- helpers

    def _matches(self, transaction: Transaction, filters: TransactionQueryFilters) -> bool:
        if not _contains(transaction.buyer_name, filters.buyer_name):
            return False
        if not _contains(transaction.seller_name, filters.seller_name):
            return False
        if filters.plot_number:
            plot = self.plots.get(transaction.land_plot_id)
            if plot is None or not _contains(plot.plot_number, filters.plot_number):
                return False
        if filters.start_date and transaction.transaction_date < filters.start_date:
            return False
        if filters.end_date and transaction.transaction_date > filters.end_date:
            return False
        if filters.min_price is not None and transaction.sale_price < filters.min_price:
            return False
        if filters.max_price is not None and transaction.sale_price > filters.max_price:
            return False
        if filters.created_by is not None and transaction.created_by != filters.created_by:
            return False
        return True

    def _details(self, transaction: Transaction) -> TransactionDetails:
        plot = self.plots.get(transaction.land_plot_id)
        user = self.users.get(transaction.created_by)
        return TransactionDetails(
            transaction=transaction,
            land_plot=LandPlotSummary(
                plot_id=plot.plot_id,
                plot_number=plot.plot_number,
                location=plot.location,
                size=plot.size,
                size_unit=plot.size_unit,
                status=plot.status,
                owner_name=plot.owner_name,
            ) if plot is not None else None,
            creator=CreatorSummary(
                user_id=user.user_id,
                first_name=user.first_name,
                last_name=user.last_name,
                email=user.email,
            ) if user is not None else None,
        )


def _sort_value(value: Any) -> Any:
    """Make strings sort case-insensitively and NULLs sort last."""
    if isinstance(value, str):
        value = value.lower()
    return (value is None, value)


__all__ = ["InMemoryRegistryStore"]
