"""
console/seed.py -- Default roles and demo accounts for a fresh database.

The admin role is granted "*" -- that grant, not the role's name, is what
gives administrators every permission.

Seeding is idempotent: existing roles and usernames are left untouched.
"""

from __future__ import annotations

import logging

from auth.errors import DuplicateEmailError, DuplicateUsernameError
from auth.models import Role, User
from auth.service import AuthService

logger = logging.getLogger("backoffice.console.seed")

DEFAULT_ROLES: tuple[Role, ...] = (
    Role(name="admin", description="Full administrative access", permissions=["*"]),
    Role(
        name="manager",
        description="Runs the floor, menu, stock and purchasing",
        permissions=[
            "orders.*",
            "tables.*",
            "menu.*",
            "inventory.*",
            "purchase_orders.*",
            "reports.*",
            "users.view",
        ],
    ),
    Role(name="staff", description="Front-of-house staff", permissions=["orders.*", "tables.*", "menu.view"]),
    Role(
        name="kitchen",
        description="Kitchen staff",
        permissions=["orders.view", "orders.update_status", "inventory.view"],
    ),
)

DEMO_PASSWORD = "password123"

# (username, email, full name, role)
DEMO_USERS: tuple[tuple[str, str, str, str], ...] = (
    ("admin", "admin@restaurant.local", "System Administrator", "admin"),
    ("manager1", "manager1@restaurant.local", "Morgan Manager", "manager"),
    ("staff1", "staff1@restaurant.local", "Sam Server", "staff"),
    ("kitchen1", "kitchen1@restaurant.local", "Kai Cook", "kitchen"),
)


def seed_roles(auth: AuthService) -> dict[str, int]:
    """Create any missing default roles. Returns {role name: role id}."""
    ids: dict[str, int] = {}
    for template in DEFAULT_ROLES:
        existing = auth.store.get_role_by_name(template.name)
        if existing is not None:
            ids[template.name] = existing.id
            continue
        role = Role(name=template.name, description=template.description, permissions=list(template.permissions))
        ids[template.name] = auth.store.create_role(role)
        logger.info("Created role %r", role.name)
    return ids


def seed_demo_users(auth: AuthService, password: str = DEMO_PASSWORD) -> list[str]:
    """Register the demo accounts that do not exist yet. Returns the usernames created."""
    role_ids = seed_roles(auth)
    created: list[str] = []
    for username, email, full_name, role_name in DEMO_USERS:
        user = User(username=username, email=email, full_name=full_name, role_id=role_ids[role_name])
        try:
            auth.register(user, password)
        except (DuplicateUsernameError, DuplicateEmailError):
            continue
        created.append(username)
    return created
