"""
Service wiring.

Builds the land, transaction, statistics and auth services over one entity
store. The store backend is chosen by `Settings.store_backend`; callers (the
API, scripts and tests) may pass a store explicitly instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from repositories.memory_store import InMemoryRegistryStore
from services.auth_service import AuthService
from services.land_service import LandService
from services.settings import Settings
from services.statistics_service import StatisticsService
from services.transaction_service import ReceiptGenerator, TransactionService

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RegistryServices:
    settings: Settings
    lands: LandService
    transactions: TransactionService
    statistics: StatisticsService
    auth: AuthService


@dataclass(frozen=True, slots=True)
class _SupabaseStore:
    users: Any
    plots: Any
    transactions: Any


def _supabase_store() -> _SupabaseStore:
    # Imported lazily so the memory backend never needs Supabase credentials.
    from repositories.client import get_supabase
    from repositories.supabase_store import (
        SupabaseLandPlotRepository,
        SupabaseTransactionRepository,
        SupabaseUserRepository,
    )

    client = get_supabase()
    return _SupabaseStore(
        users=SupabaseUserRepository(client),
        plots=SupabaseLandPlotRepository(client),
        transactions=SupabaseTransactionRepository(client),
    )


def build_services(
    settings: Settings,
    store: Optional[InMemoryRegistryStore] = None,
    receipt_generator: Optional[ReceiptGenerator] = None,
) -> RegistryServices:
    """
    Wire the services over a store.

    With no explicit store, STORE_BACKEND=memory gets a fresh in-memory store
    and anything else connects to Supabase.
    """

    if store is not None:
        users = plots = transactions = store
    elif settings.store_backend == "memory":
        logger.warning("Using the in-memory store; data is lost on restart")
        users = plots = transactions = InMemoryRegistryStore()
    else:
        backend = _supabase_store()
        users, plots, transactions = backend.users, backend.plots, backend.transactions

    return RegistryServices(
        settings=settings,
        lands=LandService(plots),
        transactions=TransactionService(
            transactions,
            plots,
            users,
            settings.default_commission_rate,
            receipt_generator=receipt_generator,
        ),
        statistics=StatisticsService(transactions),
        auth=AuthService(users, settings),
    )


__all__ = ["RegistryServices", "build_services"]
