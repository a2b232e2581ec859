"""
Tests for `domain/statistics.py` and `services/statistics_service.py`.

Covers contract rules:
- Empty input yields all-zero aggregates and an empty breakdown, never None.
- Revenue, commission, average/min/max and net revenue over the set.
- Monthly breakdown keyed YYYY-MM, newest month first.
- Date-range filtering is inclusive.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from domain.errors import InvalidInputError
from domain.statistics import SaleFigure, aggregate_sale_figures
from services.statistics_service import DateRange
from services.transaction_service import NewTransaction


def _figure(price: str, commission: str, day: date) -> SaleFigure:
    return SaleFigure(Decimal(price), Decimal(commission), day)


def test_empty_set_returns_zeros() -> None:
    stats = aggregate_sale_figures([])

    assert stats.total_transactions == 0
    for value in (
        stats.total_revenue,
        stats.total_commission,
        stats.average_price,
        stats.min_price,
        stats.max_price,
        stats.net_revenue,
    ):
        assert value == Decimal("0")
        assert value is not None
    assert stats.monthly_breakdown == []


def test_aggregates_and_monthly_breakdown() -> None:
    stats = aggregate_sale_figures(
        [
            _figure("50000", "5000", date(2025, 1, 10)),
            _figure("20000", "2000", date(2025, 1, 20)),
            _figure("10000", "1500", date(2025, 3, 5)),
        ]
    )

    assert stats.total_transactions == 3
    assert stats.total_revenue == Decimal("80000")
    assert stats.total_commission == Decimal("8500")
    assert stats.average_price == Decimal("26666.67")
    assert stats.min_price == Decimal("10000")
    assert stats.max_price == Decimal("50000")
    assert stats.net_revenue == Decimal("71500")

    assert [row.month for row in stats.monthly_breakdown] == ["2025-03", "2025-01"]
    january = stats.monthly_breakdown[1]
    assert january.transactions == 2
    assert january.revenue == Decimal("70000")
    assert january.commission == Decimal("7000")


def test_date_range_rejects_inverted_bounds() -> None:
    with pytest.raises(InvalidInputError):
        DateRange(start_date=date(2025, 2, 1), end_date=date(2025, 1, 1))


def test_service_on_empty_store_returns_zeros(services) -> None:
    stats = services.statistics.get_transaction_statistics()

    assert stats.total_transactions == 0
    assert stats.total_revenue == Decimal("0")
    assert stats.monthly_breakdown == []


def test_service_filters_by_inclusive_date_range(services, staff, plot_factory) -> None:
    for number, day, price in (
        ("P1", date(2025, 1, 1), 10000),
        ("P2", date(2025, 1, 31), 20000),
        ("P3", date(2025, 2, 1), 40000),
    ):
        plot = plot_factory(number)
        services.transactions.record_transaction(
            NewTransaction(
                land_plot_id=plot.plot_id,
                buyer_name="John Buyer",
                buyer_contact="+233241234567",
                seller_name="Jane Seller",
                seller_contact="+233201234567",
                sale_price=price,
                transaction_date=day,
            ),
            staff.user_id,
        )

    january = services.statistics.get_transaction_statistics(
        DateRange(start_date=date(2025, 1, 1), end_date=date(2025, 1, 31))
    )
    everything = services.statistics.get_transaction_statistics()

    assert january.total_transactions == 2
    assert january.total_revenue == Decimal("30000")
    assert january.total_commission == Decimal("3000.00")
    assert everything.total_transactions == 3
    assert everything.max_price == Decimal("40000")
