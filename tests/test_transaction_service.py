"""
Tests for `services/transaction_service.py`.

Covers contract rules:
- Recording a sale derives the commission, marks the plot SOLD and returns
  the transaction joined with its plot and creator.
- SOLD and DISPUTED plots are rejected with InvalidState; nothing is written.
- Missing plot or user is NotFound.
- Two concurrent sales of one plot: exactly one wins, the other is InvalidState.
- A receipt generator failure never undoes the sale.
- Listing filters, sorting and pagination; whitelist-only updates.
"""

from __future__ import annotations

import logging
import threading
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from domain.errors import InvalidInputError, InvalidStateError, NotFoundError
from domain.land_plot import PlotStatus
from repositories.store import TransactionQueryFilters
from services.transaction_service import NewTransaction, TransactionService


def _sale(plot_id, **overrides) -> NewTransaction:
    fields = dict(
        land_plot_id=plot_id,
        buyer_name="John Buyer",
        buyer_contact="+233241234567",
        seller_name="Jane Seller",
        seller_contact="+233201234567",
        sale_price=50000,
        commission_rate=Decimal("0.10"),
    )
    fields.update(overrides)
    return NewTransaction(**fields)


def test_record_transaction_scenario(services, store, staff, available_plot) -> None:
    """P1 sold for 50000 at 10%: commission 5000.00, date set, plot SOLD."""

    details = services.transactions.record_transaction(_sale(available_plot.plot_id), staff.user_id)
    tx = details.transaction

    assert tx.commission_amount == Decimal("5000.00")
    assert tx.net_amount == Decimal("45000.00")
    assert tx.transaction_date is not None
    assert tx.created_by == staff.user_id
    assert store.get_plot_by_id(available_plot.plot_id).status == PlotStatus.SOLD
    assert details.land_plot.plot_number == available_plot.plot_number
    assert details.creator.email == staff.email
    assert [t.land_plot_id for t in store.transactions.values()] == [available_plot.plot_id]


def test_second_sale_of_same_plot_is_already_sold(services, store, staff, available_plot) -> None:
    services.transactions.record_transaction(_sale(available_plot.plot_id), staff.user_id)

    with pytest.raises(InvalidStateError, match="already sold"):
        services.transactions.record_transaction(_sale(available_plot.plot_id), staff.user_id)
    assert len(store.transactions) == 1


def test_reserved_plot_can_be_sold(services, store, staff, plot_factory) -> None:
    plot = plot_factory("R1", PlotStatus.RESERVED)

    services.transactions.record_transaction(_sale(plot.plot_id), staff.user_id)

    assert store.get_plot_by_id(plot.plot_id).status == PlotStatus.SOLD


@pytest.mark.parametrize(
    "status, message",
    [(PlotStatus.SOLD, "already sold"), (PlotStatus.DISPUTED, "disputed")],
)
def test_unsaleable_plot_is_rejected_regardless_of_input(
    services, store, staff, plot_factory, status, message
) -> None:
    plot = plot_factory("X1", status)

    with pytest.raises(InvalidStateError, match=message):
        services.transactions.record_transaction(
            _sale(plot.plot_id, sale_price=-5, buyer_contact="bad"), staff.user_id
        )
    assert store.transactions == {}
    assert store.get_plot_by_id(plot.plot_id).status == status


def test_missing_plot_is_not_found(services, staff) -> None:
    with pytest.raises(NotFoundError, match="Land plot not found"):
        services.transactions.record_transaction(_sale(uuid4()), staff.user_id)


def test_missing_user_is_not_found(services, store, available_plot) -> None:
    with pytest.raises(NotFoundError, match="User not found"):
        services.transactions.record_transaction(_sale(available_plot.plot_id), uuid4())
    assert store.get_plot_by_id(available_plot.plot_id).status == PlotStatus.AVAILABLE


def test_invalid_input_writes_nothing(services, store, staff, available_plot) -> None:
    with pytest.raises(InvalidInputError, match="greater than 0"):
        services.transactions.record_transaction(
            _sale(available_plot.plot_id, sale_price=0), staff.user_id
        )
    assert store.transactions == {}
    assert store.get_plot_by_id(available_plot.plot_id).status == PlotStatus.AVAILABLE


def test_rate_beyond_stored_precision_writes_nothing(services, store, staff, available_plot) -> None:
    with pytest.raises(InvalidInputError, match="4 decimal places"):
        services.transactions.record_transaction(
            _sale(available_plot.plot_id, commission_rate=Decimal("0.12345")), staff.user_id
        )
    assert store.transactions == {}
    assert store.get_plot_by_id(available_plot.plot_id).status == PlotStatus.AVAILABLE


def test_default_rate_applies_only_when_rate_is_omitted(store, staff, plot_factory) -> None:
    engine = TransactionService(store, store, store, Decimal("0.07"))
    first = plot_factory("A1")
    second = plot_factory("A2")

    defaulted = engine.record_transaction(
        _sale(first.plot_id, commission_rate=None, sale_price=1000), staff.user_id
    )
    zero = engine.record_transaction(
        _sale(second.plot_id, commission_rate=0, sale_price=1000), staff.user_id
    )

    assert defaulted.transaction.commission_rate == Decimal("0.07")
    assert defaulted.transaction.commission_amount == Decimal("70.00")
    assert zero.transaction.commission_rate == Decimal("0")
    assert zero.transaction.commission_amount == Decimal("0.00")


def test_concurrent_sales_of_one_plot_exactly_one_wins(services, store, staff, available_plot) -> None:
    barrier = threading.Barrier(2)
    outcomes = []

    def attempt(buyer: str) -> None:
        barrier.wait()
        try:
            services.transactions.record_transaction(
                _sale(available_plot.plot_id, buyer_name=buyer), staff.user_id
            )
            outcomes.append("ok")
        except InvalidStateError as e:
            outcomes.append(e.message)

    threads = [threading.Thread(target=attempt, args=(name,)) for name in ("Buyer One", "Buyer Two")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(outcomes) == ["Land plot is already sold", "ok"]
    assert len(store.transactions) == 1
    assert store.get_plot_by_id(available_plot.plot_id).status == PlotStatus.SOLD


def test_losing_race_at_store_level_maps_to_invalid_state(
    services, store, staff, available_plot, monkeypatch
) -> None:
    """A plot sold between the status check and the atomic write."""

    original = store.record_sale_atomic

    def sell_first(transaction):
        store.update_plot(available_plot.plot_id, {"status": PlotStatus.SOLD})
        return original(transaction)

    monkeypatch.setattr(store, "record_sale_atomic", sell_first)

    with pytest.raises(InvalidStateError, match="already sold"):
        services.transactions.record_transaction(_sale(available_plot.plot_id), staff.user_id)
    assert store.transactions == {}


class _Receipts:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls = []

    def generate(self, details):
        self.calls.append(details.transaction.transaction_id)
        if self.fail:
            raise OSError("disk full")
        return f"receipts/{details.transaction.transaction_id}.pdf"


def test_receipt_path_is_recorded(store, staff, available_plot) -> None:
    receipts = _Receipts()
    engine = TransactionService(store, store, store, Decimal("0.10"), receipt_generator=receipts)

    details = engine.record_transaction(_sale(available_plot.plot_id), staff.user_id)

    assert receipts.calls == [details.transaction.transaction_id]
    assert details.transaction.receipt_path == f"receipts/{details.transaction.transaction_id}.pdf"


def test_receipt_failure_keeps_the_sale(store, staff, available_plot, caplog) -> None:
    engine = TransactionService(
        store, store, store, Decimal("0.10"), receipt_generator=_Receipts(fail=True)
    )

    with caplog.at_level(logging.ERROR):
        details = engine.record_transaction(_sale(available_plot.plot_id), staff.user_id)

    assert details.transaction.receipt_path is None
    assert details.transaction.transaction_id in store.transactions
    assert store.get_plot_by_id(available_plot.plot_id).status == PlotStatus.SOLD
    assert "Receipt generation failed" in caplog.text


def _seed(services, staff, plot_factory) -> None:
    rows = [
        ("T1", "Alice Mensah", "Kofi Owusu", 30000, date(2025, 1, 5)),
        ("T2", "Bob Asante", "Kofi Owusu", 60000, date(2025, 2, 10)),
        ("T3", "alice boateng", "Ama Serwaa", 90000, date(2025, 3, 15)),
    ]
    for number, buyer, seller, price, day in rows:
        plot = plot_factory(number)
        services.transactions.record_transaction(
            _sale(plot.plot_id, buyer_name=buyer, seller_name=seller, sale_price=price, transaction_date=day),
            staff.user_id,
        )


def test_listing_defaults_to_newest_first(services, staff, plot_factory) -> None:
    _seed(services, staff, plot_factory)

    page = services.transactions.get_all_transactions()

    assert [d.transaction.transaction_date for d in page.items] == [
        date(2025, 3, 15),
        date(2025, 2, 10),
        date(2025, 1, 5),
    ]
    assert page.pagination.total_items == 3
    assert page.pagination.total_pages == 1


@pytest.mark.parametrize(
    "filters, expected_plots",
    [
        (TransactionQueryFilters(buyer_name="ALICE"), {"T1", "T3"}),
        (TransactionQueryFilters(seller_name="kofi"), {"T1", "T2"}),
        (TransactionQueryFilters(plot_number="t2"), {"T2"}),
        (TransactionQueryFilters(start_date=date(2025, 2, 10), end_date=date(2025, 3, 15)), {"T2", "T3"}),
        (TransactionQueryFilters(min_price=Decimal("30000"), max_price=Decimal("60000")), {"T1", "T2"}),
    ],
)
def test_listing_filters(services, staff, plot_factory, filters, expected_plots) -> None:
    _seed(services, staff, plot_factory)

    page = services.transactions.get_all_transactions(filters)

    assert {d.land_plot.plot_number for d in page.items} == expected_plots


def test_listing_sort_and_pagination(services, staff, plot_factory) -> None:
    _seed(services, staff, plot_factory)

    first = services.transactions.get_all_transactions(
        page=1, page_size=2, sort_by="sale_price", sort_order="ASC"
    )
    second = services.transactions.get_all_transactions(
        page=2, page_size=2, sort_by="sale_price", sort_order="ASC"
    )
    fallback = services.transactions.get_all_transactions(sort_by="nonsense", sort_order="ASC")

    assert [d.transaction.sale_price for d in first.items] == [Decimal("30000"), Decimal("60000")]
    assert [d.transaction.sale_price for d in second.items] == [Decimal("90000")]
    assert first.pagination.total_pages == 2
    assert first.pagination.has_next_page and not first.pagination.has_prev_page
    assert second.pagination.has_prev_page and not second.pagination.has_next_page
    assert fallback.items[0].transaction.transaction_date == date(2025, 1, 5)


def test_listing_tolerates_large_page_size(services, staff, plot_factory) -> None:
    _seed(services, staff, plot_factory)

    page = services.transactions.get_all_transactions(page_size=10_000)

    assert len(page.items) == 3
    assert page.pagination.total_pages == 1


def test_transactions_by_user(services, staff, admin, plot_factory) -> None:
    _seed(services, staff, plot_factory)

    mine = services.transactions.get_transactions_by_user(staff.user_id)
    theirs = services.transactions.get_transactions_by_user(admin.user_id)

    assert mine.pagination.total_items == 3
    assert theirs.items == []
    with pytest.raises(NotFoundError, match="User not found"):
        services.transactions.get_transactions_by_user(uuid4())


def test_transactions_by_date_range(services, staff, plot_factory) -> None:
    _seed(services, staff, plot_factory)

    page = services.transactions.get_transactions_by_date_range(date(2025, 1, 1), date(2025, 1, 31))

    assert [d.land_plot.plot_number for d in page.items] == ["T1"]


def test_recent_transactions(services, staff, plot_factory) -> None:
    _seed(services, staff, plot_factory)

    assert len(services.transactions.get_recent_transactions(2)) == 2


def test_get_transaction_by_id(services, staff, available_plot) -> None:
    recorded = services.transactions.record_transaction(_sale(available_plot.plot_id), staff.user_id)

    fetched = services.transactions.get_transaction_by_id(recorded.transaction.transaction_id)

    assert fetched == recorded
    with pytest.raises(NotFoundError, match="Transaction not found"):
        services.transactions.get_transaction_by_id(uuid4())


def test_update_transaction_keeps_only_whitelisted_fields(services, staff, available_plot) -> None:
    recorded = services.transactions.record_transaction(_sale(available_plot.plot_id), staff.user_id)
    tx_id = recorded.transaction.transaction_id

    updated = services.transactions.update_transaction(
        tx_id,
        {"buyer_contact": " +233249999999 ", "sale_price": 1, "commission_amount": 0},
    )

    assert updated.transaction.buyer_contact == "+233249999999"
    assert updated.transaction.sale_price == Decimal("50000")
    assert updated.transaction.commission_amount == Decimal("5000.00")


def test_update_transaction_with_only_unknown_fields_fails(services, staff, available_plot) -> None:
    recorded = services.transactions.record_transaction(_sale(available_plot.plot_id), staff.user_id)

    with pytest.raises(InvalidInputError, match="No valid fields to update"):
        services.transactions.update_transaction(
            recorded.transaction.transaction_id, {"sale_price": 1, "buyer_name": "Someone"}
        )


def test_update_unknown_transaction_is_not_found(services) -> None:
    with pytest.raises(NotFoundError, match="Transaction not found"):
        services.transactions.update_transaction(uuid4(), {"buyer_contact": "+233249999999"})


def test_calculate_commission(services) -> None:
    breakdown = services.transactions.calculate_commission(100000, Decimal("0.15"))
    defaulted = services.transactions.calculate_commission(100000)

    assert breakdown.commission_amount == Decimal("15000")
    assert breakdown.net_amount == Decimal("85000")
    assert breakdown.commission_percentage == "15.00%"
    assert defaulted.commission_rate == Decimal("0.10")
    assert defaulted.commission_amount == Decimal("10000")
    with pytest.raises(InvalidInputError):
        services.transactions.calculate_commission(0)
