"""
auth/models.py -- Domain dataclasses for staff accounts and roles.

Pattern: Data class. These carry domain shape; the store, token issuer and
auth service do the work. Role is the one exception with behaviour: its
permission helpers are thin wrappers over auth.permissions.

A User embeds its Role by value (loaded by role_id) rather than holding a
shared mutable reference, so two users of the same role never alias. The
branch is referenced by id, with the display name carried alongside.

Layer rule: no imports from operations/ or console/.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from auth import permissions

# User.status values
STATUS_ACTIVE = "active"
STATUS_INACTIVE = "inactive"
STATUS_SUSPENDED = "suspended"
USER_STATUSES = (STATUS_ACTIVE, STATUS_INACTIVE, STATUS_SUSPENDED)


@dataclass
class Role:
    """A named bundle of permission grants.

    permissions is kept as a list for stable persistence order, but mutators
    maintain set semantics: adding an existing grant is a no-op.
    """

    name: str
    description: str = ""
    permissions: list[str] = field(default_factory=list)
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def has_permission(self, name: str) -> bool:
        return permissions.has_permission(self.permissions, name)

    def add_permission(self, grant: str) -> None:
        """Add a grant if not already present.

        Raises ValueError for strings that are not "*", an exact dotted name,
        or a "prefix.*" pattern.
        """
        if not permissions.is_valid_grant(grant):
            raise ValueError(f"Invalid permission grant: {grant!r}")
        if grant not in self.permissions:
            self.permissions.append(grant)

    def remove_permission(self, grant: str) -> None:
        if grant in self.permissions:
            self.permissions.remove(grant)


@dataclass
class Branch:
    """A physical restaurant location staff can be assigned to."""

    name: str
    address: str | None = None
    phone: str | None = None
    id: int | None = None
    created_at: str | None = None


@dataclass
class User:
    """A staff account.

    password_hash is a bcrypt digest and never leaves the auth core.
    role_id is the persisted reference; role is the resolved Role, filled in
    by the store on every read. token is transient: set by
    AuthService.authenticate() and never written to the database.
    """

    username: str
    email: str
    role_id: int | None = None
    full_name: str = ""
    phone: str | None = None
    password_hash: str | None = None
    status: str = STATUS_ACTIVE  # "active" | "inactive" | "suspended"
    role: Role | None = None
    branch_id: int | None = None
    branch_name: str | None = None
    id: int | None = None
    last_login: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    token: str | None = field(default=None, repr=False)

    @property
    def role_name(self) -> str:
        return self.role.name if self.role is not None else ""

    def is_active(self) -> bool:
        return (self.status or "").lower() == STATUS_ACTIVE

    def has_role(self, role_name: str) -> bool:
        return self.role is not None and self.role.name.lower() == role_name.lower()

    def has_permission(self, name: str) -> bool:
        return self.role is not None and self.role.has_permission(name)
