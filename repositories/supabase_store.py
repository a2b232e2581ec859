"""
Supabase-backed repositories (persistence).

These classes provide *only* persistence operations for users, land plots and
transactions. Business workflow (status checks, commission derivation) lives in
the services; storage invariants live in `database/schema.sql`:
- unique indexes on upper(trim(plot_number)) and lower(email)
- foreign keys from transactions to land_plots and users
- `record_transaction_atomic()`, which locks the plot row (FOR UPDATE),
  re-checks its status, inserts the transaction and marks the plot SOLD in a
  single database transaction
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from domain.errors import ConflictError, StoreError
from domain.land_plot import LandPlot, PlotStatus, SizeUnit, normalize_plot_number
from domain.statistics import MonthlyBreakdown, TransactionStatistics
from domain.time import require_utc_timestamp, utc_now
from domain.transaction import (
    CreatorSummary,
    LandPlotSummary,
    Transaction,
    TransactionDetails,
)
from domain.user import Role, User, normalize_email
from repositories.store import (
    AtomicSaleResult,
    LandPlotQueryFilters,
    SortOrder,
    TransactionQueryFilters,
)

logger = logging.getLogger(__name__)

# Supabase table names. Keep these aligned with database/schema.sql.
_USERS_TABLE: str = "users"
_PLOTS_TABLE: str = "land_plots"
_TRANSACTIONS_TABLE: str = "transactions"

# PostgreSQL unique_violation
_UNIQUE_VIOLATION = "23505"

_PLOT_SUMMARY_COLUMNS = "plot_id, plot_number, location, size, size_unit, status, owner_name"
_CREATOR_COLUMNS = "user_id, first_name, last_name, email"

# Domain field name -> column name, where they differ.
_TIMESTAMP_COLUMNS = {"created_at": "created_at_utc", "updated_at": "updated_at_utc"}


def _to_iso_utc(dt: datetime, *, name: str) -> str:
    """Serialize a UTC datetime to ISO-8601 (timezone-aware, offset 0)."""

    require_utc_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()


def _parse_utc_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a Supabase timestamp into a timezone-aware UTC datetime.

    Supabase commonly returns ISO-8601 strings, sometimes with a trailing 'Z'.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _serialize(value: Any) -> Any:
    """Convert domain values into JSON-friendly column values."""

    if isinstance(value, datetime):
        return _to_iso_utc(value, name="timestamp")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, (PlotStatus, SizeUnit, Role)):
        return value.value
    return value


def _to_payload(fields: Mapping[str, Any]) -> Dict[str, Any]:
    return {_TIMESTAMP_COLUMNS.get(key, key): _serialize(value) for key, value in fields.items()}


def _execute(query: Any, action: str) -> Any:
    """
    Execute a PostgREST query, mapping driver failures onto domain errors.

    Unique violations become ConflictError; anything else becomes StoreError.
    """

    try:
        response = query.execute()
    except APIError as e:
        if str(getattr(e, "code", "")) == _UNIQUE_VIOLATION:
            raise ConflictError(f"Failed to {action}: duplicate value") from e
        raise StoreError(f"Failed to {action}: {e}") from e

    error = getattr(response, "error", None)
    if error:
        if str(getattr(error, "code", None)) == _UNIQUE_VIOLATION:
            raise ConflictError(f"Failed to {action}: duplicate value")
        raise StoreError(f"Failed to {action}: {error}")
    return response


def _rows(response: Any) -> List[Mapping[str, Any]]:
    return getattr(response, "data", None) or []


def _row_to_user(row: Mapping[str, Any]) -> User:
    return User(
        user_id=UUID(str(row["user_id"])),
        email=str(row["email"]),
        password_hash=str(row["password_hash"]),
        role=Role(str(row["role"])),
        first_name=str(row["first_name"]),
        last_name=str(row["last_name"]),
        created_at=_parse_utc_datetime(row.get("created_at_utc")),
        updated_at=_parse_utc_datetime(row.get("updated_at_utc")),
    )


def _row_to_plot(row: Mapping[str, Any]) -> LandPlot:
    return LandPlot(
        plot_id=UUID(str(row["plot_id"])),
        plot_number=str(row["plot_number"]),
        location=str(row["location"]),
        size=Decimal(str(row["size"])),
        size_unit=SizeUnit(str(row["size_unit"])),
        status=PlotStatus(str(row["status"])),
        owner_name=str(row["owner_name"]),
        description=row.get("description"),
        registration_date=_parse_date(row["registration_date"]),
        created_at=_parse_utc_datetime(row.get("created_at_utc")),
        updated_at=_parse_utc_datetime(row.get("updated_at_utc")),
    )


def _row_to_transaction(row: Mapping[str, Any]) -> Transaction:
    return Transaction(
        transaction_id=UUID(str(row["transaction_id"])),
        land_plot_id=UUID(str(row["land_plot_id"])),
        buyer_name=str(row["buyer_name"]),
        buyer_contact=str(row["buyer_contact"]),
        seller_name=str(row["seller_name"]),
        seller_contact=str(row["seller_contact"]),
        sale_price=Decimal(str(row["sale_price"])),
        commission_rate=Decimal(str(row["commission_rate"])),
        commission_amount=Decimal(str(row["commission_amount"])),
        transaction_date=_parse_date(row["transaction_date"]),
        created_by=UUID(str(row["created_by"])),
        receipt_path=row.get("receipt_path"),
        created_at=_parse_utc_datetime(row.get("created_at_utc")),
        updated_at=_parse_utc_datetime(row.get("updated_at_utc")),
    )


def _row_to_details(row: Mapping[str, Any]) -> TransactionDetails:
    plot = row.get("land_plots")
    creator = row.get("users")
    return TransactionDetails(
        transaction=_row_to_transaction(row),
        land_plot=LandPlotSummary(
            plot_id=UUID(str(plot["plot_id"])),
            plot_number=str(plot["plot_number"]),
            location=str(plot["location"]),
            size=Decimal(str(plot["size"])),
            size_unit=SizeUnit(str(plot["size_unit"])),
            status=PlotStatus(str(plot["status"])),
            owner_name=plot.get("owner_name"),
        ) if plot else None,
        creator=CreatorSummary(
            user_id=UUID(str(creator["user_id"])),
            first_name=str(creator["first_name"]),
            last_name=str(creator["last_name"]),
            email=str(creator["email"]),
        ) if creator else None,
    )


def _money(value: Any) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0.00")


def _row_to_statistics(payload: Mapping[str, Any]) -> TransactionStatistics:
    total_revenue = _money(payload.get("total_revenue"))
    total_commission = _money(payload.get("total_commission"))
    return TransactionStatistics(
        total_transactions=int(payload.get("total_transactions") or 0),
        total_revenue=total_revenue,
        total_commission=total_commission,
        average_price=_money(payload.get("average_price")),
        min_price=_money(payload.get("min_price")),
        max_price=_money(payload.get("max_price")),
        net_revenue=total_revenue - total_commission,
        monthly_breakdown=[
            MonthlyBreakdown(
                month=str(month["month"]),
                transactions=int(month["transactions"]),
                revenue=_money(month["revenue"]),
                commission=_money(month["commission"]),
            )
            for month in payload.get("monthly_breakdown") or []
        ],
    )


class SupabaseUserRepository:
    """Persistence for registry users."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        response = _execute(
            self._client.table(_USERS_TABLE).select("*").eq("user_id", str(user_id)).limit(1),
            "fetch user",
        )
        rows = _rows(response)
        return _row_to_user(rows[0]) if rows else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        response = _execute(
            self._client.table(_USERS_TABLE)
            .select("*")
            .eq("email", email.strip().lower())
            .limit(1),
            "fetch user",
        )
        rows = _rows(response)
        return _row_to_user(rows[0]) if rows else None

    def insert_user(self, user: User) -> User:
        payload = _to_payload({
            "user_id": user.user_id,
            "email": user.email,
            "password_hash": user.password_hash,
            "role": user.role,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "created_at": user.created_at or utc_now(),
            "updated_at": user.updated_at or utc_now(),
        })
        try:
            _execute(self._client.table(_USERS_TABLE).insert(payload), "create user")
        except ConflictError:
            raise ConflictError("User with this email already exists") from None
        return user

    def update_user(self, user_id: UUID, fields: Mapping[str, Any]) -> Optional[User]:
        changes = dict(fields)
        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
        changes.setdefault("updated_at", utc_now())
        try:
            response = _execute(
                self._client.table(_USERS_TABLE)
                .update(_to_payload(changes))
                .eq("user_id", str(user_id)),
                "update user",
            )
        except ConflictError:
            raise ConflictError("User with this email already exists") from None
        rows = _rows(response)
        return _row_to_user(rows[0]) if rows else None


class SupabaseLandPlotRepository:
    """Persistence for land plots."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def get_plot_by_id(self, plot_id: UUID) -> Optional[LandPlot]:
        response = _execute(
            self._client.table(_PLOTS_TABLE).select("*").eq("plot_id", str(plot_id)).limit(1),
            "fetch land plot",
        )
        rows = _rows(response)
        return _row_to_plot(rows[0]) if rows else None

    def get_plot_by_number(self, plot_number: str) -> Optional[LandPlot]:
        response = _execute(
            self._client.table(_PLOTS_TABLE)
            .select("*")
            .eq("plot_number", normalize_plot_number(plot_number))
            .limit(1),
            "fetch land plot",
        )
        rows = _rows(response)
        return _row_to_plot(rows[0]) if rows else None

    def insert_plot(self, plot: LandPlot) -> LandPlot:
        payload = _to_payload({
            "plot_id": plot.plot_id,
            "plot_number": plot.plot_number,
            "location": plot.location,
            "size": plot.size,
            "size_unit": plot.size_unit,
            "status": plot.status,
            "owner_name": plot.owner_name,
            "description": plot.description,
            "registration_date": plot.registration_date,
            "created_at": plot.created_at or utc_now(),
            "updated_at": plot.updated_at or utc_now(),
        })
        try:
            _execute(self._client.table(_PLOTS_TABLE).insert(payload), "create land plot")
        except ConflictError:
            raise ConflictError(f"Plot number {plot.plot_number} already exists") from None
        return plot

    def update_plot(self, plot_id: UUID, fields: Mapping[str, Any]) -> Optional[LandPlot]:
        changes = dict(fields)
        if "plot_number" in changes:
            changes["plot_number"] = normalize_plot_number(changes["plot_number"])
        changes.setdefault("updated_at", utc_now())
        try:
            response = _execute(
                self._client.table(_PLOTS_TABLE)
                .update(_to_payload(changes))
                .eq("plot_id", str(plot_id)),
                "update land plot",
            )
        except ConflictError:
            raise ConflictError(f"Plot number {changes.get('plot_number')} already exists") from None
        rows = _rows(response)
        return _row_to_plot(rows[0]) if rows else None

    def query_plots(
        self,
        filters: LandPlotQueryFilters,
        sort_by: str,
        sort_order: SortOrder,
        limit: int,
        offset: int,
    ) -> Tuple[List[LandPlot], int]:
        query = self._client.table(_PLOTS_TABLE).select("*", count="exact")

        if filters.status is not None:
            query = query.eq("status", filters.status.value)
        if filters.location:
            query = query.ilike("location", f"%{filters.location.strip()}%")

        column = _TIMESTAMP_COLUMNS.get(sort_by, sort_by)
        query = query.order(column, desc=sort_order == SortOrder.DESC)
        query = query.order("plot_id")
        query = query.range(offset, offset + limit - 1)

        response = _execute(query, "query land plots")
        total = getattr(response, "count", None) or 0
        return [_row_to_plot(row) for row in _rows(response)], total

    def count_plots_by_status(self) -> Dict[PlotStatus, int]:
        counts: Dict[PlotStatus, int] = {}
        for status in PlotStatus:
            response = _execute(
                self._client.table(_PLOTS_TABLE)
                .select("plot_id", count="exact")
                .eq("status", status.value)
                .limit(1),
                "count land plots",
            )
            counts[status] = getattr(response, "count", None) or 0
        return counts

    def mark_plot_sold(self, plot_id: UUID) -> Optional[LandPlot]:
        # Conditional update: only a plot that is not already SOLD changes.
        response = _execute(
            self._client.table(_PLOTS_TABLE)
            .update(_to_payload({"status": PlotStatus.SOLD, "updated_at": utc_now()}))
            .eq("plot_id", str(plot_id))
            .neq("status", PlotStatus.SOLD.value),
            "mark land plot sold",
        )
        rows = _rows(response)
        return _row_to_plot(rows[0]) if rows else None


class SupabaseTransactionRepository:
    """Persistence for sale transactions."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def _select_details(self, *, plot_inner: bool = False, count: Optional[str] = None) -> Any:
        plots = "land_plots!inner" if plot_inner else "land_plots"
        columns = f"*, {plots}({_PLOT_SUMMARY_COLUMNS}), users({_CREATOR_COLUMNS})"
        table = self._client.table(_TRANSACTIONS_TABLE)
        return table.select(columns, count=count) if count else table.select(columns)

    def record_sale_atomic(self, transaction: Transaction) -> AtomicSaleResult:
        """
        Record a sale via the `record_transaction_atomic` PostgreSQL function.

        The function:
        - Locks the plot row (FOR UPDATE)
        - Rejects a missing, SOLD or DISPUTED plot
        - Inserts the transaction
        - Marks the plot SOLD
        All in a single database transaction; nothing is written on rejection.
        """

        params = {
            "p_transaction_id": str(transaction.transaction_id),
            "p_land_plot_id": str(transaction.land_plot_id),
            "p_buyer_name": transaction.buyer_name,
            "p_buyer_contact": transaction.buyer_contact,
            "p_seller_name": transaction.seller_name,
            "p_seller_contact": transaction.seller_contact,
            "p_sale_price": str(transaction.sale_price),
            "p_commission_rate": str(transaction.commission_rate),
            "p_commission_amount": str(transaction.commission_amount),
            "p_transaction_date": transaction.transaction_date.isoformat(),
            "p_created_by": str(transaction.created_by),
            "p_created_at": _to_iso_utc(transaction.created_at or utc_now(), name="created_at"),
        }

        try:
            response = self._client.rpc("record_transaction_atomic", params).execute()
        except APIError as e:
            # A function result can arrive as the APIError body.
            payload = e.json() if callable(getattr(e, "json", None)) else {}
            if isinstance(payload, dict) and "success" in payload:
                return self._to_result(payload)
            raise StoreError(f"Failed to record transaction: {e}") from e

        error = getattr(response, "error", None)
        if error:
            raise StoreError(f"Failed to record transaction: {error}")
        return self._to_result(getattr(response, "data", None) or {})

    @staticmethod
    def _to_result(payload: Mapping[str, Any]) -> AtomicSaleResult:
        if payload.get("success"):
            return AtomicSaleResult(
                success=True,
                transaction_id=UUID(str(payload["transaction_id"])),
                error_code=None,
                error_message=None,
            )
        return AtomicSaleResult(
            success=False,
            transaction_id=None,
            error_code=payload.get("error"),
            error_message=payload.get("message"),
        )

    def get_transaction_details(self, transaction_id: UUID) -> Optional[TransactionDetails]:
        response = _execute(
            self._select_details().eq("transaction_id", str(transaction_id)).limit(1),
            "fetch transaction",
        )
        rows = _rows(response)
        return _row_to_details(rows[0]) if rows else None

    def update_transaction(
        self, transaction_id: UUID, fields: Mapping[str, Any]
    ) -> Optional[Transaction]:
        current = self.get_transaction_details(transaction_id)
        if current is None:
            return None

        # revise() validates the fields and re-derives the commission if needed.
        revised = current.transaction.revise(**dict(fields))
        changes = {name: getattr(revised, name) for name in fields}
        changes["updated_at"] = revised.updated_at
        if "sale_price" in fields or "commission_rate" in fields:
            changes["commission_amount"] = revised.commission_amount

        response = _execute(
            self._client.table(_TRANSACTIONS_TABLE)
            .update(_to_payload(changes))
            .eq("transaction_id", str(transaction_id)),
            "update transaction",
        )
        rows = _rows(response)
        return _row_to_transaction(rows[0]) if rows else None

    def query_transactions(
        self,
        filters: TransactionQueryFilters,
        sort_by: str,
        sort_order: SortOrder,
        limit: int,
        offset: int,
    ) -> Tuple[List[TransactionDetails], int]:
        query = self._select_details(plot_inner=bool(filters.plot_number), count="exact")
        query = self._apply_filters(query, filters)

        column = _TIMESTAMP_COLUMNS.get(sort_by, sort_by)
        query = query.order(column, desc=sort_order == SortOrder.DESC)
        query = query.order("transaction_id")
        query = query.range(offset, offset + limit - 1)

        response = _execute(query, "query transactions")
        total = getattr(response, "count", None) or 0
        return [_row_to_details(row) for row in _rows(response)], total

    def get_sale_statistics(
        self, start_date: Optional[date], end_date: Optional[date]
    ) -> TransactionStatistics:
        """Aggregate in the database via the `transaction_statistics` function."""

        params = {
            "p_start": start_date.isoformat() if start_date else None,
            "p_end": end_date.isoformat() if end_date else None,
        }
        response = _execute(
            self._client.rpc("transaction_statistics", params),
            "load transaction statistics",
        )
        stats = _row_to_statistics(getattr(response, "data", None) or {})
        logger.debug("Loaded statistics for %d transactions", stats.total_transactions)
        return stats

    def list_recent_transactions(self, limit: int) -> List[TransactionDetails]:
        response = _execute(
            self._select_details()
            .order("created_at_utc", desc=True)
            .order("transaction_id")
            .limit(limit),
            "list recent transactions",
        )
        return [_row_to_details(row) for row in _rows(response)]

    @staticmethod
    def _apply_filters(query: Any, filters: TransactionQueryFilters) -> Any:
        if filters.buyer_name:
            query = query.ilike("buyer_name", f"%{filters.buyer_name.strip()}%")
        if filters.seller_name:
            query = query.ilike("seller_name", f"%{filters.seller_name.strip()}%")
        if filters.plot_number:
            query = query.ilike("land_plots.plot_number", f"%{filters.plot_number.strip()}%")
        if filters.start_date:
            query = query.gte("transaction_date", filters.start_date.isoformat())
        if filters.end_date:
            query = query.lte("transaction_date", filters.end_date.isoformat())
        if filters.min_price is not None:
            query = query.gte("sale_price", str(filters.min_price))
        if filters.max_price is not None:
            query = query.lte("sale_price", str(filters.max_price))
        if filters.created_by is not None:
            query = query.eq("created_by", str(filters.created_by))
        return query


__all__ = [
    "SupabaseUserRepository",
    "SupabaseLandPlotRepository",
    "SupabaseTransactionRepository",
]
