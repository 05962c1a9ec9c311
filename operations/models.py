"""
operations/models.py -- Domain dataclasses for orders, tables and stock.

Pure data containers. Queries and aggregates live in operations/store.py.
Rows reference each other by id (order.table_id, order.user_id); nothing
holds a back-pointer to its parent.
"""

from __future__ import annotations

from dataclasses import dataclass

ORDER_STATUSES = ("pending", "preparing", "served", "completed", "cancelled")
TABLE_STATUSES = ("available", "occupied", "reserved", "cleaning")


@dataclass
class Order:
    """A customer order.

    subtotal, tax_amount, discount_amount and total_amount are in the
    configured currency. total = subtotal + tax - discount, see
    operations.billing.compute_totals.

    id is None before the record is written to the database.
    """

    order_number: str
    user_id: int
    order_type: str = "dine_in"  # "dine_in" | "takeaway" | "delivery"
    status: str = "pending"
    table_id: int | None = None
    branch_id: int | None = None
    subtotal: float = 0.0
    tax_amount: float = 0.0
    discount_amount: float = 0.0
    total_amount: float = 0.0
    special_instructions: str | None = None
    id: int | None = None
    created_at: str = ""  # ISO 8601, set by store on insert
    completed_at: str | None = None


@dataclass
class RestaurantTable:
    table_number: str
    capacity: int
    status: str = "available"
    location: str | None = None
    branch_id: int | None = None
    is_active: bool = True
    id: int | None = None


@dataclass
class InventoryItem:
    """Stock level of one ingredient.

    An item is "low" when quantity has fallen to or below reorder_level.
    """

    name: str
    quantity: float
    reorder_level: float
    unit: str = "unit"
    branch_id: int | None = None
    id: int | None = None
    updated_at: str = ""


@dataclass
class DashboardStats:
    """Snapshot shown on the dashboard panel."""

    orders_today: int = 0
    revenue_today: float = 0.0
    active_tables: int = 0
    low_stock_items: int = 0
