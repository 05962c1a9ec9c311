"""
operations/store.py -- SQLAlchemy-backed persistence for orders, tables and stock.

Uses SQLAlchemy Core (not ORM) so the dataclasses in operations/models.py
remain the domain representation, same as auth/store.py.

Pattern: Repository + Data Mapper. OperationsStore exposes the inserts and
status changes the floor screens need plus the aggregate queries behind the
dashboard. The _row_to_* functions are the mappers.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = OperationsStore()                          # SQLite default
    store = OperationsStore("postgresql://u:pw@host/db")
    table_id = store.create_table(RestaurantTable(table_number="T1", capacity=4))
    store.set_table_status(table_id, "occupied")
    stats = store.dashboard_stats()
    store.close()
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Float, Integer, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import URL, Engine

from core.config import DEFAULT_DB_URL
from core.database import connect, create_store_engine
from operations.models import (
    ORDER_STATUSES,
    TABLE_STATUSES,
    DashboardStats,
    InventoryItem,
    Order,
    RestaurantTable,
)

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_orders = Table(
    "orders",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("order_number", String(30), nullable=False, unique=True),
    Column("user_id", Integer, nullable=False),
    Column("table_id", Integer),
    Column("branch_id", Integer),
    Column("order_type", String(20), nullable=False, server_default="dine_in"),
    Column("status", String(20), nullable=False, server_default="pending"),
    Column("subtotal", Float, nullable=False, server_default="0"),
    Column("tax_amount", Float, nullable=False, server_default="0"),
    Column("discount_amount", Float, nullable=False, server_default="0"),
    Column("total_amount", Float, nullable=False, server_default="0"),
    Column("special_instructions", Text),
    Column("created_at", String(32), nullable=False),
    Column("completed_at", String(32)),
)

_tables = Table(
    "restaurant_tables",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("table_number", String(10), nullable=False),
    Column("capacity", Integer, nullable=False),
    Column("status", String(20), nullable=False, server_default="available"),
    Column("location", String(50)),
    Column("branch_id", Integer),
    Column("is_active", Integer, nullable=False, server_default="1"),
)

_inventory = Table(
    "inventory",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False),
    Column("quantity", Float, nullable=False, server_default="0"),
    Column("reorder_level", Float, nullable=False, server_default="0"),
    Column("unit", String(20), nullable=False, server_default="unit"),
    Column("branch_id", Integer),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _start_of_day_iso(now: datetime) -> str:
    """Midnight UTC of the day containing now, in the same ISO form the store writes."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OperationsStore:
    def __init__(self, db_url: str | URL = DEFAULT_DB_URL) -> None:
        self.engine: Engine = create_store_engine(db_url)
        with connect(self.engine) as conn:
            metadata.create_all(conn)
            conn.commit()

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def create_order(self, order: Order) -> int:
        """Insert an order and return its ID.

        created_at defaults to now; pass an explicit ISO value to backfill.
        """
        if order.status not in ORDER_STATUSES:
            raise ValueError(f"Unknown order status: {order.status!r}")
        with connect(self.engine) as conn:
            result = conn.execute(
                _orders.insert().values(
                    order_number=order.order_number,
                    user_id=order.user_id,
                    table_id=order.table_id,
                    branch_id=order.branch_id,
                    order_type=order.order_type,
                    status=order.status,
                    subtotal=order.subtotal,
                    tax_amount=order.tax_amount,
                    discount_amount=order.discount_amount,
                    total_amount=order.total_amount,
                    special_instructions=order.special_instructions,
                    created_at=order.created_at or _now_iso(),
                    completed_at=order.completed_at,
                )
            )
            conn.commit()
        return result.inserted_primary_key[0]

    def get_order(self, order_id: int) -> Order | None:
        with connect(self.engine) as conn:
            row = conn.execute(_orders.select().where(_orders.c.id == order_id)).fetchone()
        return _row_to_order(row) if row is not None else None

    def update_order_status(self, order_id: int, status: str) -> bool:
        """Move an order to status. Completing an order stamps completed_at."""
        if status not in ORDER_STATUSES:
            raise ValueError(f"Unknown order status: {status!r}")
        values = {"status": status}
        if status == "completed":
            values["completed_at"] = _now_iso()
        with connect(self.engine) as conn:
            result = conn.execute(_orders.update().where(_orders.c.id == order_id).values(**values))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def create_table(self, table: RestaurantTable) -> int:
        if table.status not in TABLE_STATUSES:
            raise ValueError(f"Unknown table status: {table.status!r}")
        with connect(self.engine) as conn:
            result = conn.execute(
                _tables.insert().values(
                    table_number=table.table_number,
                    capacity=table.capacity,
                    status=table.status,
                    location=table.location,
                    branch_id=table.branch_id,
                    is_active=1 if table.is_active else 0,
                )
            )
            conn.commit()
        return result.inserted_primary_key[0]

    def list_tables(self) -> list[RestaurantTable]:
        with connect(self.engine) as conn:
            rows = conn.execute(_tables.select().order_by(_tables.c.table_number)).fetchall()
        return [_row_to_table(r) for r in rows]

    def set_table_status(self, table_id: int, status: str) -> bool:
        if status not in TABLE_STATUSES:
            raise ValueError(f"Unknown table status: {status!r}")
        with connect(self.engine) as conn:
            result = conn.execute(_tables.update().where(_tables.c.id == table_id).values(status=status))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    def create_inventory_item(self, item: InventoryItem) -> int:
        with connect(self.engine) as conn:
            result = conn.execute(
                _inventory.insert().values(
                    name=item.name,
                    quantity=item.quantity,
                    reorder_level=item.reorder_level,
                    unit=item.unit,
                    branch_id=item.branch_id,
                    updated_at=_now_iso(),
                )
            )
            conn.commit()
        return result.inserted_primary_key[0]

    def adjust_stock(self, item_id: int, delta: float) -> bool:
        """Add delta (negative to consume) to an item's quantity."""
        with connect(self.engine) as conn:
            result = conn.execute(
                _inventory.update()
                .where(_inventory.c.id == item_id)
                .values(quantity=_inventory.c.quantity + delta, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def list_low_stock(self) -> list[InventoryItem]:
        """Items at or below their reorder level, lowest quantity first."""
        with connect(self.engine) as conn:
            rows = conn.execute(
                _inventory.select()
                .where(_inventory.c.quantity <= _inventory.c.reorder_level)
                .order_by(_inventory.c.quantity, _inventory.c.name)
            ).fetchall()
        return [_row_to_inventory(r) for r in rows]

    # ------------------------------------------------------------------
    # Dashboard aggregates
    # ------------------------------------------------------------------

    def dashboard_stats(self, now: datetime | None = None) -> DashboardStats:
        """Compute the dashboard snapshot in one connection.

        orders_today   -- orders created since midnight UTC, any status
        revenue_today  -- sum of total_amount for those orders, excluding cancelled
        active_tables  -- tables currently "occupied"
        low_stock_items -- inventory rows with quantity <= reorder_level

        Blocking. The UI must call this off its dispatcher thread (see
        operations.dashboard.refresh_dashboard).
        """
        since = _start_of_day_iso(now or datetime.now(timezone.utc))
        with connect(self.engine) as conn:
            orders_today = conn.execute(
                select(func.count()).select_from(_orders).where(_orders.c.created_at >= since)
            ).scalar()
            revenue_today = conn.execute(
                select(func.coalesce(func.sum(_orders.c.total_amount), 0)).where(
                    (_orders.c.created_at >= since) & (_orders.c.status != "cancelled")
                )
            ).scalar()
            active_tables = conn.execute(
                select(func.count()).select_from(_tables).where(_tables.c.status == "occupied")
            ).scalar()
            low_stock = conn.execute(
                select(func.count())
                .select_from(_inventory)
                .where(_inventory.c.quantity <= _inventory.c.reorder_level)
            ).scalar()
        return DashboardStats(
            orders_today=orders_today or 0,
            revenue_today=round(float(revenue_today or 0), 2),
            active_tables=active_tables or 0,
            low_stock_items=low_stock or 0,
        )

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_order(row) -> Order:
    return Order(
        id=row.id,
        order_number=row.order_number,
        user_id=row.user_id,
        table_id=row.table_id,
        branch_id=row.branch_id,
        order_type=row.order_type,
        status=row.status,
        subtotal=row.subtotal,
        tax_amount=row.tax_amount,
        discount_amount=row.discount_amount,
        total_amount=row.total_amount,
        special_instructions=row.special_instructions,
        created_at=row.created_at,
        completed_at=row.completed_at,
    )


def _row_to_table(row) -> RestaurantTable:
    return RestaurantTable(
        id=row.id,
        table_number=row.table_number,
        capacity=row.capacity,
        status=row.status,
        location=row.location,
        branch_id=row.branch_id,
        is_active=bool(row.is_active),
    )


def _row_to_inventory(row) -> InventoryItem:
    return InventoryItem(
        id=row.id,
        name=row.name,
        quantity=row.quantity,
        reorder_level=row.reorder_level,
        unit=row.unit,
        branch_id=row.branch_id,
        updated_at=row.updated_at,
    )
