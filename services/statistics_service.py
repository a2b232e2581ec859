"""
Statistics service: read-only sales aggregates.

Counts, revenue, commission, average/min/max price, net revenue and a
per-month breakdown over an optional inclusive date range. Never mutates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from domain.errors import InvalidInputError
from domain.statistics import TransactionStatistics
from repositories.store import TransactionRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive date bounds; either side may be open."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def __post_init__(self) -> None:
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise InvalidInputError("Start date must not be after end date")


class StatisticsService:
    def __init__(self, transactions: TransactionRepository) -> None:
        self._transactions = transactions

    def get_transaction_statistics(
        self, date_range: Optional[DateRange] = None
    ) -> TransactionStatistics:
        bounds = date_range or DateRange()
        stats = self._transactions.get_sale_statistics(bounds.start_date, bounds.end_date)
        logger.debug(
            "Aggregated %d transactions between %s and %s",
            stats.total_transactions,
            bounds.start_date,
            bounds.end_date,
        )
        return stats


__all__ = ["DateRange", "StatisticsService"]
