"""
console/menu.py -- Main menu definition and permission gating.

Each entry names the permission that makes it visible. Entries with no
permission are shown to every logged-in user. Visibility is decided only by
SessionState.has_permission(); there is no role-name shortcut.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from auth.session import SessionState


@dataclass(frozen=True)
class MenuEntry:
    key: str
    label: str
    permission: str | None = None


MAIN_MENU: tuple[MenuEntry, ...] = (
    MenuEntry("dashboard", "Dashboard"),
    MenuEntry("orders", "Orders", "orders.view"),
    MenuEntry("tables", "Tables", "tables.view"),
    MenuEntry("menu", "Menu Catalog", "menu.view"),
    MenuEntry("inventory", "Inventory", "inventory.view"),
    MenuEntry("purchase_orders", "Purchase Orders", "purchase_orders.view"),
    MenuEntry("reports", "Reports", "reports.view"),
    MenuEntry("users", "Staff Accounts", "users.manage"),
    MenuEntry("password", "Change Password"),
    MenuEntry("logout", "Logout"),
)


def visible_entries(session: SessionState, menu: tuple[MenuEntry, ...] = MAIN_MENU) -> list[MenuEntry]:
    """Return the entries the current user may see, in menu order.

    Logged-out sessions see nothing.
    """
    if not session.is_logged_in():
        return []
    return [e for e in menu if e.permission is None or session.has_permission(e.permission)]
