"""
Tests for `repositories/memory_store.py`.

Covers contract rules:
- Emails and plot numbers are unique after normalization.
- record_sale_atomic inserts the transaction and marks the plot SOLD together,
  and reports (without writing) when the plot is missing, sold or disputed.
- mark_plot_sold is a conditional update.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from uuid import uuid4

import pytest

from domain.errors import ConflictError, NotFoundError
from domain.land_plot import PlotStatus
from domain.transaction import Transaction
from repositories.store import ALREADY_SOLD, PLOT_DISPUTED, PLOT_NOT_FOUND


def _transaction(plot_id, user_id) -> Transaction:
    return Transaction.create(
        land_plot_id=plot_id,
        buyer_name="John Buyer",
        buyer_contact="+233241234567",
        seller_name="Jane Seller",
        seller_contact="+233201234567",
        sale_price=Decimal("1000"),
        commission_rate=Decimal("0.10"),
        created_by=user_id,
    )


def test_duplicate_email_conflicts(store, staff) -> None:
    with pytest.raises(ConflictError):
        store.insert_user(replace(staff, user_id=uuid4()))


def test_plot_lookup_by_number_is_normalized(store, plot_factory) -> None:
    plot = plot_factory("GB001")

    assert store.get_plot_by_number(" gb001 ") == plot
    with pytest.raises(ConflictError):
        store.insert_plot(replace(plot, plot_id=uuid4()))


def test_record_sale_atomic_success(store, staff, available_plot) -> None:
    tx = _transaction(available_plot.plot_id, staff.user_id)

    result = store.record_sale_atomic(tx)

    assert result.success
    assert result.transaction_id == tx.transaction_id
    assert store.transactions[tx.transaction_id] == tx
    assert store.get_plot_by_id(available_plot.plot_id).status == PlotStatus.SOLD


@pytest.mark.parametrize(
    "status, code",
    [(PlotStatus.SOLD, ALREADY_SOLD), (PlotStatus.DISPUTED, PLOT_DISPUTED)],
)
def test_record_sale_atomic_refuses_unsaleable_plots(store, staff, plot_factory, status, code) -> None:
    plot = plot_factory("X1", status)

    result = store.record_sale_atomic(_transaction(plot.plot_id, staff.user_id))

    assert not result.success
    assert result.error_code == code
    assert store.transactions == {}


def test_record_sale_atomic_missing_plot(store, staff) -> None:
    result = store.record_sale_atomic(_transaction(uuid4(), staff.user_id))

    assert result.error_code == PLOT_NOT_FOUND


def test_record_sale_atomic_missing_user_writes_nothing(store, available_plot) -> None:
    with pytest.raises(NotFoundError):
        store.record_sale_atomic(_transaction(available_plot.plot_id, uuid4()))
    assert store.transactions == {}
    assert store.get_plot_by_id(available_plot.plot_id).status == PlotStatus.AVAILABLE


def test_mark_plot_sold_is_conditional(store, available_plot) -> None:
    assert store.mark_plot_sold(available_plot.plot_id).status == PlotStatus.SOLD
    assert store.mark_plot_sold(available_plot.plot_id) is None
    assert store.mark_plot_sold(uuid4()) is None
