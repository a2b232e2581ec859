"""
Domain: Sale transactions and commission derivation.

Contract excerpts implemented here:
- A Transaction is an immutable record of one completed sale of one plot.
- commission_amount = round(sale_price * commission_rate, 2) and is a derived
  field: it is computed by `compute_commission`, never supplied independently,
  and recomputed whenever sale_price or commission_rate changes.
- sale_price > 0 with at most 2 decimal places; commission_rate in [0, 1]
  with at most 4, matching the stored column scales.
- After creation only non-financial fields may change
  (buyer contact, seller contact, receipt path).

This module contains only pure domain entities/value objects: no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, FrozenSet, Optional
from uuid import UUID, uuid4

from .errors import InvalidInputError
from .land_plot import PlotStatus, SizeUnit
from .time import require_utc_timestamp, today_utc, utc_now
from .validation import optional_text, require_precision, require_text, to_decimal

_CENTS = Decimal("0.01")

# Column scales in database/schema.sql: numeric(12, 2) and numeric(5, 4).
_PRICE_DIGITS, _PRICE_PLACES = 12, 2
_RATE_DIGITS, _RATE_PLACES = 5, 4

# Fields a caller may change after a transaction has been recorded.
UPDATABLE_FIELDS: FrozenSet[str] = frozenset({"buyer_contact", "seller_contact", "receipt_path"})


def validate_sale_price(value: Any) -> Decimal:
    price = to_decimal("Sale price", value)
    if price <= 0:
        raise InvalidInputError("Sale price must be greater than 0")
    return require_precision("Sale price", price, digits=_PRICE_DIGITS, places=_PRICE_PLACES)


def validate_commission_rate(value: Any) -> Decimal:
    rate = to_decimal("Commission rate", value)
    if rate < 0:
        raise InvalidInputError("Commission rate cannot be negative")
    if rate > 1:
        raise InvalidInputError("Commission rate cannot exceed 100%")
    return require_precision("Commission rate", rate, digits=_RATE_DIGITS, places=_RATE_PLACES)


def compute_commission(sale_price: Any, commission_rate: Any) -> Decimal:
    """
    Derive the commission for a sale.

    Rounded half-up to cents. This is the only place the commission is
    computed; every creation and revision path goes through it.
    """

    price = validate_sale_price(sale_price)
    rate = validate_commission_rate(commission_rate)
    return (price * rate).quantize(_CENTS, rounding=ROUND_HALF_UP)


def format_percentage(rate: Decimal) -> str:
    """0.15 -> "15.00%"."""
    return f"{(rate * 100).quantize(_CENTS, rounding=ROUND_HALF_UP)}%"


def format_amount(amount: Decimal, currency: str = "GHS") -> str:
    """50000 -> "GHS 50,000.00"."""
    return f"{currency} {amount.quantize(_CENTS, rounding=ROUND_HALF_UP):,}"


@dataclass(frozen=True, slots=True)
class CommissionBreakdown:
    """Result of a commission calculation; nothing is persisted."""

    sale_price: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    net_amount: Decimal
    commission_percentage: str

    @staticmethod
    def calculate(sale_price: Any, commission_rate: Any) -> "CommissionBreakdown":
        price = validate_sale_price(sale_price)
        rate = validate_commission_rate(commission_rate)
        commission = compute_commission(price, rate)
        return CommissionBreakdown(
            sale_price=price,
            commission_rate=rate,
            commission_amount=commission,
            net_amount=(price - commission).quantize(_CENTS, rounding=ROUND_HALF_UP),
            commission_percentage=format_percentage(rate),
        )


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    Immutable record of one completed sale.

    Use `Transaction.create` to build a new sale (it derives the commission)
    and `revise` to produce an edited copy.
    """

    transaction_id: UUID
    land_plot_id: UUID
    buyer_name: str
    buyer_contact: str
    seller_name: str
    seller_contact: str
    sale_price: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    transaction_date: date
    created_by: UUID
    receipt_path: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        require_text("Buyer name", self.buyer_name, min_length=2, max_length=100)
        require_text("Buyer contact", self.buyer_contact, min_length=10, max_length=50)
        require_text("Seller name", self.seller_name, min_length=2, max_length=100)
        require_text("Seller contact", self.seller_contact, min_length=10, max_length=50)
        optional_text("Receipt path", self.receipt_path, max_length=500)
        if self.commission_amount != compute_commission(self.sale_price, self.commission_rate):
            raise InvalidInputError(
                "commission_amount must equal round(sale_price * commission_rate, 2)"
            )
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)

    @staticmethod
    def create(
        *,
        land_plot_id: UUID,
        buyer_name: str,
        buyer_contact: str,
        seller_name: str,
        seller_contact: str,
        sale_price: Any,
        commission_rate: Any,
        created_by: UUID,
        transaction_date: Optional[date] = None,
        transaction_id: Optional[UUID] = None,
        created_at: Optional[datetime] = None,
    ) -> "Transaction":
        """Build a new sale record, trimming text and deriving the commission."""

        price = validate_sale_price(sale_price)
        rate = validate_commission_rate(commission_rate)
        now = created_at or utc_now()
        return Transaction(
            transaction_id=transaction_id or uuid4(),
            land_plot_id=land_plot_id,
            buyer_name=require_text("Buyer name", buyer_name, min_length=2, max_length=100),
            buyer_contact=require_text("Buyer contact", buyer_contact, min_length=10, max_length=50),
            seller_name=require_text("Seller name", seller_name, min_length=2, max_length=100),
            seller_contact=require_text("Seller contact", seller_contact, min_length=10, max_length=50),
            sale_price=price,
            commission_rate=rate,
            commission_amount=compute_commission(price, rate),
            transaction_date=transaction_date or today_utc(),
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )

    def revise(self, **changes: Any) -> "Transaction":
        """
        Return an edited copy.

        Text fields are trimmed; the commission is re-derived whenever the
        sale price or rate is among the changes.
        """

        for name in ("buyer_name", "buyer_contact", "seller_name", "seller_contact"):
            if name in changes and isinstance(changes[name], str):
                changes[name] = changes[name].strip()
        if "receipt_path" in changes:
            changes["receipt_path"] = optional_text(
                "Receipt path", changes["receipt_path"], max_length=500
            )
        if "sale_price" in changes or "commission_rate" in changes:
            price = validate_sale_price(changes.get("sale_price", self.sale_price))
            rate = validate_commission_rate(changes.get("commission_rate", self.commission_rate))
            changes["sale_price"] = price
            changes["commission_rate"] = rate
            changes["commission_amount"] = compute_commission(price, rate)
        changes.setdefault("updated_at", utc_now())
        return replace(self, **changes)

    @property
    def net_amount(self) -> Decimal:
        return self.sale_price - self.commission_amount

    @property
    def commission_percentage(self) -> str:
        return format_percentage(self.commission_rate)


@dataclass(frozen=True, slots=True)
class LandPlotSummary:
    """Plot columns joined onto transaction reads."""

    plot_id: UUID
    plot_number: str
    location: str
    size: Decimal
    size_unit: SizeUnit
    status: PlotStatus
    owner_name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class CreatorSummary:
    """The recording user's public fields."""

    user_id: UUID
    first_name: str
    last_name: str
    email: str


@dataclass(frozen=True, slots=True)
class TransactionDetails:
    """A transaction joined with its plot and creating user."""

    transaction: Transaction
    land_plot: Optional[LandPlotSummary]
    creator: Optional[CreatorSummary]


__all__ = [
    "UPDATABLE_FIELDS",
    "CommissionBreakdown",
    "CreatorSummary",
    "LandPlotSummary",
    "Transaction",
    "TransactionDetails",
    "compute_commission",
    "format_amount",
    "format_percentage",
    "validate_commission_rate",
    "validate_sale_price",
]
