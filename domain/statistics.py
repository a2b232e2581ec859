"""
Domain: transaction statistics (pure aggregation).

Aggregates never come back as None: an empty set of sales produces zeros and
an empty monthly breakdown.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List

_ZERO = Decimal("0.00")
_CENTS = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class SaleFigure:
    """The columns of a transaction that statistics need."""

    sale_price: Decimal
    commission_amount: Decimal
    transaction_date: date


@dataclass(frozen=True, slots=True)
class MonthlyBreakdown:
    month: str  # "YYYY-MM"
    transactions: int
    revenue: Decimal
    commission: Decimal


@dataclass(frozen=True, slots=True)
class TransactionStatistics:
    total_transactions: int = 0
    total_revenue: Decimal = _ZERO
    total_commission: Decimal = _ZERO
    average_price: Decimal = _ZERO
    min_price: Decimal = _ZERO
    max_price: Decimal = _ZERO
    net_revenue: Decimal = _ZERO
    monthly_breakdown: List[MonthlyBreakdown] = field(default_factory=list)


def month_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def aggregate_sale_figures(figures: Iterable[SaleFigure]) -> TransactionStatistics:
    """
    Compute count, revenue, commission, average/min/max price, net revenue
    and a per-month breakdown (newest month first).
    """

    rows = list(figures)
    if not rows:
        return TransactionStatistics()

    prices = [row.sale_price for row in rows]
    total_revenue = sum(prices, _ZERO)
    total_commission = sum((row.commission_amount for row in rows), _ZERO)

    counts: Dict[str, int] = defaultdict(int)
    revenue: Dict[str, Decimal] = defaultdict(lambda: _ZERO)
    commission: Dict[str, Decimal] = defaultdict(lambda: _ZERO)
    for row in rows:
        key = month_key(row.transaction_date)
        counts[key] += 1
        revenue[key] += row.sale_price
        commission[key] += row.commission_amount

    monthly = [
        MonthlyBreakdown(
            month=key,
            transactions=counts[key],
            revenue=revenue[key],
            commission=commission[key],
        )
        for key in sorted(counts, reverse=True)
    ]

    return TransactionStatistics(
        total_transactions=len(rows),
        total_revenue=total_revenue,
        total_commission=total_commission,
        average_price=(total_revenue / len(rows)).quantize(_CENTS, rounding=ROUND_HALF_UP),
        min_price=min(prices),
        max_price=max(prices),
        net_revenue=total_revenue - total_commission,
        monthly_breakdown=monthly,
    )


__all__ = [
    "SaleFigure",
    "MonthlyBreakdown",
    "TransactionStatistics",
    "aggregate_sale_figures",
    "month_key",
]
