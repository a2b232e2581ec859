"""
Transaction service for recording land sales.

Handles:
- Validating the plot and recording user before a sale
- Deriving the commission from the sale price and rate
- Recording the sale and marking the plot SOLD as one atomic unit
- Listing, fetching and narrowly editing recorded transactions
- Commission calculation without persistence
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Protocol
from uuid import UUID, uuid4

from domain.errors import InvalidInputError, InvalidStateError, NotFoundError, StoreError
from domain.land_plot import PlotStatus
from domain.pagination import Page, Pagination, page_window
from domain.transaction import (
    UPDATABLE_FIELDS,
    CommissionBreakdown,
    Transaction,
    TransactionDetails,
    validate_commission_rate,
)
from repositories.store import (
    ALREADY_SOLD,
    PLOT_DISPUTED,
    PLOT_NOT_FOUND,
    TRANSACTION_SORT_FIELDS,
    LandPlotRepository,
    SortOrder,
    TransactionQueryFilters,
    TransactionRepository,
    UserRepository,
    resolve_sort_field,
)

logger = logging.getLogger(__name__)

_ALREADY_SOLD_MESSAGE = "Land plot is already sold"
_DISPUTED_MESSAGE = "Cannot sell disputed land plot"


@dataclass(frozen=True, slots=True)
class NewTransaction:
    """
    Raw sale data supplied by the caller.

    commission_rate and transaction_date are optional; the configured default
    rate and today's date are used when they are omitted.
    """

    land_plot_id: UUID
    buyer_name: str
    buyer_contact: str
    seller_name: str
    seller_contact: str
    sale_price: Any
    commission_rate: Optional[Any] = None
    transaction_date: Optional[date] = None


class ReceiptGenerator(Protocol):
    """Produces a receipt document for a recorded sale and returns its storage path."""

    def generate(self, details: TransactionDetails) -> str: ...


class TransactionService:
    """
    Records sales and answers transaction queries.

    The default commission rate is injected at construction so that tests and
    deployments control it explicitly.
    """

    def __init__(
        self,
        transactions: TransactionRepository,
        plots: LandPlotRepository,
        users: UserRepository,
        default_commission_rate: Decimal,
        receipt_generator: Optional[ReceiptGenerator] = None,
    ) -> None:
        self._transactions = transactions
        self._plots = plots
        self._users = users
        self._default_rate = validate_commission_rate(default_commission_rate)
        self._receipts = receipt_generator

    @property
    def default_commission_rate(self) -> Decimal:
        return self._default_rate

    def resolve_commission_rate(self, commission_rate: Optional[Any]) -> Decimal:
        """Caller-supplied rate if given (0 included), else the configured default."""
        if commission_rate is None:
            return self._default_rate
        return validate_commission_rate(commission_rate)

    def record_transaction(self, data: NewTransaction, created_by: UUID) -> TransactionDetails:
        """
        Record a sale of a land plot.

        Process:
        1. Load the plot (NotFound if absent)
        2. Reject a SOLD plot (InvalidState)
        3. Reject a DISPUTED plot (InvalidState)
        4. Load the recording user (NotFound if absent)
        5. Resolve the commission rate
        6. Derive the commission
        7-8. Insert the transaction and mark the plot SOLD in one unit of work;
             a concurrent sale that got there first surfaces as InvalidState
        9. Return the transaction joined with its plot and creator

        A configured receipt generator runs afterwards; its failure is logged
        and never undoes the sale.
        """

        plot = self._plots.get_plot_by_id(data.land_plot_id)
        if plot is None:
            raise NotFoundError("Land plot not found")
        if plot.status == PlotStatus.SOLD:
            raise InvalidStateError(_ALREADY_SOLD_MESSAGE)
        if plot.status == PlotStatus.DISPUTED:
            raise InvalidStateError(_DISPUTED_MESSAGE)

        user = self._users.get_user_by_id(created_by)
        if user is None:
            raise NotFoundError("User not found")

        transaction = Transaction.create(
            land_plot_id=plot.plot_id,
            buyer_name=data.buyer_name,
            buyer_contact=data.buyer_contact,
            seller_name=data.seller_name,
            seller_contact=data.seller_contact,
            sale_price=data.sale_price,
            commission_rate=self.resolve_commission_rate(data.commission_rate),
            transaction_date=data.transaction_date,
            created_by=user.user_id,
            transaction_id=uuid4(),
        )

        result = self._transactions.record_sale_atomic(transaction)
        if not result.success:
            logger.warning(
                "Rejected sale of land plot %s: %s (%s)",
                plot.plot_number,
                result.error_code,
                result.error_message,
            )
            if result.error_code == ALREADY_SOLD:
                raise InvalidStateError(_ALREADY_SOLD_MESSAGE)
            if result.error_code == PLOT_DISPUTED:
                raise InvalidStateError(_DISPUTED_MESSAGE)
            if result.error_code == PLOT_NOT_FOUND:
                raise NotFoundError("Land plot not found")
            raise StoreError(f"Failed to record transaction: {result.error_message}")

        logger.info(
            "Recorded transaction %s for land plot %s: price=%s commission=%s",
            transaction.transaction_id,
            plot.plot_number,
            transaction.sale_price,
            transaction.commission_amount,
        )

        details = self.get_transaction_by_id(transaction.transaction_id)
        if self._receipts is not None:
            details = self._attach_receipt(details)
        return details

    def _attach_receipt(self, details: TransactionDetails) -> TransactionDetails:
        transaction_id = details.transaction.transaction_id
        try:
            path = self._receipts.generate(details)
            self._transactions.update_transaction(transaction_id, {"receipt_path": path})
        except Exception:
            logger.exception("Receipt generation failed for transaction %s", transaction_id)
            return details
        return self.get_transaction_by_id(transaction_id)

    def get_all_transactions(
        self,
        filters: Optional[TransactionQueryFilters] = None,
        page: int = 1,
        page_size: int = 10,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Page[TransactionDetails]:
        """
        List transactions with filtering, sorting and pagination.

        Unknown sort fields fall back to transaction_date; the default order
        is newest first.
        """

        limit, offset = page_window(page, page_size)
        items, total = self._transactions.query_transactions(
            filters or TransactionQueryFilters(),
            resolve_sort_field(sort_by, TRANSACTION_SORT_FIELDS),
            SortOrder.parse(sort_order, SortOrder.DESC),
            limit,
            offset,
        )
        return Page(items=items, pagination=Pagination.build(page, page_size, total))

    def get_transaction_by_id(self, transaction_id: UUID) -> TransactionDetails:
        details = self._transactions.get_transaction_details(transaction_id)
        if details is None:
            raise NotFoundError("Transaction not found")
        return details

    def get_transactions_by_user(
        self,
        user_id: UUID,
        filters: Optional[TransactionQueryFilters] = None,
        **options: Any,
    ) -> Page[TransactionDetails]:
        if self._users.get_user_by_id(user_id) is None:
            raise NotFoundError("User not found")
        base = filters or TransactionQueryFilters()
        scoped = TransactionQueryFilters(
            buyer_name=base.buyer_name,
            seller_name=base.seller_name,
            plot_number=base.plot_number,
            start_date=base.start_date,
            end_date=base.end_date,
            min_price=base.min_price,
            max_price=base.max_price,
            created_by=user_id,
        )
        return self.get_all_transactions(scoped, **options)

    def get_transactions_by_date_range(
        self, start_date: Optional[date], end_date: Optional[date], **options: Any
    ) -> Page[TransactionDetails]:
        if start_date and end_date and start_date > end_date:
            raise InvalidInputError("Start date must not be after end date")
        return self.get_all_transactions(
            TransactionQueryFilters(start_date=start_date, end_date=end_date), **options
        )

    def get_recent_transactions(self, limit: int = 10) -> List[TransactionDetails]:
        if limit < 1:
            raise InvalidInputError("Limit must be at least 1")
        return self._transactions.list_recent_transactions(limit)

    def update_transaction(
        self, transaction_id: UUID, patch: Mapping[str, Any]
    ) -> TransactionDetails:
        """
        Edit the non-financial fields of a transaction.

        Only buyer_contact, seller_contact and receipt_path are kept from the
        patch; everything else is dropped silently.
        """

        cleaned: Dict[str, Any] = {
            key: value for key, value in patch.items() if key in UPDATABLE_FIELDS
        }

        if self._transactions.get_transaction_details(transaction_id) is None:
            raise NotFoundError("Transaction not found")
        if not cleaned:
            raise InvalidInputError("No valid fields to update")

        updated = self._transactions.update_transaction(transaction_id, cleaned)
        if updated is None:
            raise NotFoundError("Transaction not found")

        logger.info(
            "Updated transaction %s fields: %s", transaction_id, ", ".join(sorted(cleaned))
        )
        return self.get_transaction_by_id(transaction_id)

    def calculate_commission(
        self, sale_price: Any, commission_rate: Optional[Any] = None
    ) -> CommissionBreakdown:
        """Commission breakdown for a prospective sale; nothing is persisted."""
        return CommissionBreakdown.calculate(sale_price, self.resolve_commission_rate(commission_rate))


__all__ = [
    "NewTransaction",
    "ReceiptGenerator",
    "TransactionService",
]
