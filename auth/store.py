"""
auth/store.py -- SQLAlchemy Core persistence layer for staff accounts.

Pattern: Repository + Data Mapper. UserStore is the repository for users,
roles and branches; the _row_to_* functions are the mappers. The auth
service and UI never touch SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Errors:
  Every SQLAlchemyError is re-raised as PersistenceUnavailableError with the
  driver exception chained as __cause__. Nothing is retried.

Resource handling:
  Each method acquires its own connection in a `with` block, so the
  connection is returned to the pool on the error path as well.

Role permissions are stored as a JSON array in roles.permissions, preserving
list order for round trips.

Layer rule: no imports from operations/ or console/.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import URL, Engine

from auth.models import USER_STATUSES, Branch, Role, User
from core.config import DEFAULT_DB_URL
from core.database import connect, create_store_engine

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_roles = Table(
    "roles",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(50), nullable=False, unique=True),
    Column("description", Text),
    Column("permissions", Text, nullable=False, server_default="[]"),  # JSON array
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_branches = Table(
    "branches",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False),
    Column("address", Text),
    Column("phone", String(30)),
    Column("created_at", String(32), nullable=False),
)

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(50), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("full_name", String(100), nullable=False, server_default=""),
    Column("phone", String(30)),
    Column("role_id", Integer, ForeignKey("roles.id"), nullable=False),
    Column("branch_id", Integer, ForeignKey("branches.id")),
    Column("status", String(20), nullable=False, server_default="active"),
    Column("last_login", String(32)),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

# Columns update_user() may touch. Anything else is rejected before SQL runs.
_USER_UPDATABLE = frozenset({"username", "email", "full_name", "phone", "role_id", "branch_id", "status"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _user_select():
    return select(_users, _branches.c.name.label("branch_name")).select_from(
        _users.outerjoin(_branches, _users.c.branch_id == _branches.c.id)
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User, Role and Branch entities.

    Usage:
        store = UserStore()
        role_id = store.create_role(Role(name="staff", permissions=["orders.*"]))
        store.create_user(User(username="staff1", email="s@x.io", role_id=role_id,
                               password_hash=hash_password("secret")))
        user = store.get_by_username("staff1")
        store.close()
    """

    def __init__(self, db_url: str | URL = DEFAULT_DB_URL) -> None:
        self.engine: Engine = create_store_engine(db_url)
        with connect(self.engine) as conn:
            _metadata.create_all(conn)
            conn.commit()

    # ------------------------------------------------------------------
    # Role queries
    # ------------------------------------------------------------------

    def create_role(self, role: Role) -> int:
        """Insert a role and return its ID. Also sets role.id.

        A duplicate name violates the UNIQUE constraint and surfaces as
        PersistenceUnavailableError.
        """
        now = _now_iso()
        with connect(self.engine) as conn:
            result = conn.execute(
                _roles.insert().values(
                    name=role.name,
                    description=role.description,
                    permissions=json.dumps(role.permissions),
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        role.id = result.inserted_primary_key[0]
        return role.id

    def get_role(self, role_id: int) -> Role | None:
        with connect(self.engine) as conn:
            row = conn.execute(_roles.select().where(_roles.c.id == role_id)).fetchone()
        return _row_to_role(row) if row is not None else None

    def get_role_by_name(self, name: str) -> Role | None:
        with connect(self.engine) as conn:
            row = conn.execute(_roles.select().where(_roles.c.name == name)).fetchone()
        return _row_to_role(row) if row is not None else None

    def list_roles(self) -> list[Role]:
        with connect(self.engine) as conn:
            rows = conn.execute(_roles.select().order_by(_roles.c.name)).fetchall()
        return [_row_to_role(r) for r in rows]

    def update_role(self, role: Role) -> bool:
        """Write name, description and permissions back. False if role.id is unknown."""
        with connect(self.engine) as conn:
            result = conn.execute(
                _roles.update()
                .where(_roles.c.id == role.id)
                .values(
                    name=role.name,
                    description=role.description,
                    permissions=json.dumps(role.permissions),
                    updated_at=_now_iso(),
                )
            )
            conn.commit()
        return result.rowcount > 0

    def delete_role(self, role_id: int) -> bool:
        with connect(self.engine) as conn:
            result = conn.execute(_roles.delete().where(_roles.c.id == role_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Branch queries
    # ------------------------------------------------------------------

    def create_branch(self, branch: Branch) -> int:
        with connect(self.engine) as conn:
            result = conn.execute(
                _branches.insert().values(
                    name=branch.name,
                    address=branch.address,
                    phone=branch.phone,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
        branch.id = result.inserted_primary_key[0]
        return branch.id

    def get_branch(self, branch_id: int) -> Branch | None:
        with connect(self.engine) as conn:
            row = conn.execute(_branches.select().where(_branches.c.id == branch_id)).fetchone()
        return _row_to_branch(row) if row is not None else None

    def list_branches(self) -> list[Branch]:
        with connect(self.engine) as conn:
            rows = conn.execute(_branches.select().order_by(_branches.c.name)).fetchall()
        return [_row_to_branch(r) for r in rows]

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def has_users(self) -> bool:
        return self.count_users() > 0

    def count_users(self) -> int:
        with connect(self.engine) as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned ID.

        role_id falls back to user.role.id. password_hash must already be a
        bcrypt digest -- the store never hashes.
        """
        role_id = user.role_id if user.role_id is not None else (user.role.id if user.role else None)
        if role_id is None:
            raise ValueError("A user must reference a role")
        if not user.password_hash:
            raise ValueError("A user must have a password hash")
        now = _now_iso()
        with connect(self.engine) as conn:
            result = conn.execute(
                _users.insert().values(
                    username=user.username,
                    email=user.email,
                    password_hash=user.password_hash,
                    full_name=user.full_name or "",
                    phone=user.phone,
                    role_id=role_id,
                    branch_id=user.branch_id,
                    status=user.status or "active",
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return result.inserted_primary_key[0]

    def get_by_id(self, user_id: int) -> User | None:
        return self._fetch_one(_users.c.id == user_id)

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive)."""
        return self._fetch_one(_users.c.username == username)

    def get_by_email(self, email: str) -> User | None:
        return self._fetch_one(_users.c.email == email)

    def list_users(self) -> list[User]:
        """Return all users, newest first."""
        return self._fetch_all(None, _users.c.created_at.desc(), _users.c.id.desc())

    def list_by_role(self, role_id: int) -> list[User]:
        return self._fetch_all(_users.c.role_id == role_id, _users.c.full_name)

    def list_by_branch(self, branch_id: int) -> list[User]:
        return self._fetch_all(_users.c.branch_id == branch_id, _users.c.full_name)

    def list_by_status(self, status: str) -> list[User]:
        return self._fetch_all(_users.c.status == status, _users.c.full_name)

    def username_exists(self, username: str) -> bool:
        with connect(self.engine) as conn:
            count = conn.execute(
                select(func.count()).select_from(_users).where(_users.c.username == username)
            ).scalar()
        return (count or 0) > 0

    def email_exists(self, email: str) -> bool:
        with connect(self.engine) as conn:
            count = conn.execute(select(func.count()).select_from(_users).where(_users.c.email == email)).scalar()
        return (count or 0) > 0

    def update_user(self, user_id: int, **fields) -> bool:
        """Update profile fields on an existing user.

        Accepted fields: username, email, full_name, phone, role_id, branch_id,
        status. Unknown keys or an unknown status raise ValueError before any
        SQL runs. Returns False if user_id was not found.
        """
        unknown = set(fields) - _USER_UPDATABLE
        if unknown:
            raise ValueError(f"Unknown user fields: {sorted(unknown)!r}")
        if "status" in fields and fields["status"] not in USER_STATUSES:
            raise ValueError(f"Unknown user status: {fields['status']!r}")
        if not fields:
            return self.get_by_id(user_id) is not None
        with connect(self.engine) as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user_id).values(updated_at=_now_iso(), **fields)
            )
            conn.commit()
        return result.rowcount > 0

    def update_password(self, user_id: int, password_hash: str) -> bool:
        with connect(self.engine) as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == user_id)
                .values(password_hash=password_hash, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def update_last_login(self, user_id: int) -> bool:
        """Stamp the current UTC time as last_login. Called after every successful login."""
        with connect(self.engine) as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(last_login=_now_iso()))
            conn.commit()
        return result.rowcount > 0

    def delete_user(self, user_id: int) -> bool:
        """Permanently delete a user record. The auth core never calls this."""
        with connect(self.engine) as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fetch_one(self, condition) -> User | None:
        with connect(self.engine) as conn:
            row = conn.execute(_user_select().where(condition)).fetchone()
            if row is None:
                return None
            role_row = conn.execute(_roles.select().where(_roles.c.id == row.role_id)).fetchone()
        return _row_to_user(row, _row_to_role(role_row) if role_row is not None else None)

    def _fetch_all(self, condition, *order_by) -> list[User]:
        stmt = _user_select()
        if condition is not None:
            stmt = stmt.where(condition)
        with connect(self.engine) as conn:
            rows = conn.execute(stmt.order_by(*order_by)).fetchall()
            role_rows = {r.id: r for r in conn.execute(_roles.select()).fetchall()}
        # Each user gets its own Role instance so edits never alias.
        return [
            _row_to_user(r, _row_to_role(role_rows[r.role_id]) if r.role_id in role_rows else None) for r in rows
        ]


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _load_permissions(raw: str | None) -> list[str]:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        return []
    if not isinstance(value, list):
        return []
    return [str(p) for p in value if str(p)]


def _row_to_role(row) -> Role:
    return Role(
        id=row.id,
        name=row.name,
        description=row.description or "",
        permissions=_load_permissions(row.permissions),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_branch(row) -> Branch:
    return Branch(
        id=row.id,
        name=row.name,
        address=row.address,
        phone=row.phone,
        created_at=row.created_at,
    )


def _row_to_user(row, role: Role | None) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        password_hash=row.password_hash,
        full_name=row.full_name or "",
        phone=row.phone,
        role_id=row.role_id,
        role=role,
        branch_id=row.branch_id,
        branch_name=row.branch_name,
        status=row.status,
        last_login=row.last_login,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
