"""Unit tests for auth/permissions.py and the Role permission helpers.

Covers:
- "*" grants every permission
- exact grants match only themselves
- "prefix.*" grants match names under that prefix only
- empty grant lists grant nothing; role names carry no power of their own
- is_valid_grant() and Role.add_permission() / remove_permission()
"""

import pytest

from auth.models import Role, User
from auth.permissions import has_permission, is_valid_grant

# ---------------------------------------------------------------------------
# TestHasPermission
# ---------------------------------------------------------------------------


class TestHasPermission:
    def test_wildcard_grants_everything(self) -> None:
        assert has_permission(["*"], "orders.create") is True
        assert has_permission(["*"], "users.manage") is True

    def test_exact_match(self) -> None:
        assert has_permission(["orders.view"], "orders.view") is True
        assert has_permission(["orders.view"], "orders.create") is False

    def test_prefix_wildcard(self) -> None:
        assert has_permission(["orders.*"], "orders.create") is True
        assert has_permission(["orders.*"], "orders.update_status") is True
        assert has_permission(["orders.*"], "menu.create") is False

    def test_prefix_requires_dot_boundary(self) -> None:
        """"order.*" must not match "orders.view"."""
        assert has_permission(["order.*"], "orders.view") is False

    def test_prefix_does_not_match_bare_prefix(self) -> None:
        assert has_permission(["orders.*"], "orders") is False

    def test_empty_grants(self) -> None:
        assert has_permission([], "orders.view") is False

    def test_accepts_any_iterable(self) -> None:
        assert has_permission(iter(["menu.*"]), "menu.view") is True


# ---------------------------------------------------------------------------
# TestIsValidGrant
# ---------------------------------------------------------------------------


class TestIsValidGrant:
    @pytest.mark.parametrize("grant", ["*", "orders.view", "orders.*", "reports.sales.daily"])
    def test_valid(self, grant) -> None:
        assert is_valid_grant(grant) is True

    @pytest.mark.parametrize("grant", ["", " ", "orders. view", "*.view", "orders*", ".*", "orders.", " orders.view"])
    def test_invalid(self, grant) -> None:
        assert is_valid_grant(grant) is False


# ---------------------------------------------------------------------------
# TestRolePermissions
# ---------------------------------------------------------------------------


class TestRolePermissions:
    def test_add_is_idempotent(self) -> None:
        role = Role(name="staff")
        role.add_permission("orders.*")
        role.add_permission("orders.*")
        assert role.permissions == ["orders.*"]

    def test_add_rejects_invalid_grant(self) -> None:
        role = Role(name="staff")
        with pytest.raises(ValueError):
            role.add_permission("orders view")

    def test_remove(self) -> None:
        role = Role(name="staff", permissions=["orders.*", "menu.view"])
        role.remove_permission("orders.*")
        role.remove_permission("not-there")
        assert role.permissions == ["menu.view"]
        assert role.has_permission("orders.create") is False

    def test_admin_name_alone_grants_nothing(self) -> None:
        """Administrators get everything through "*", not through the role name."""
        user = User(username="root", email="root@x.io", role=Role(name="admin", permissions=[]))
        assert user.has_permission("orders.view") is False

    def test_user_without_role(self) -> None:
        user = User(username="nobody", email="n@x.io")
        assert user.has_permission("orders.view") is False
        assert user.has_role("staff") is False
        assert user.role_name == ""

    def test_has_role_is_case_insensitive(self) -> None:
        user = User(username="m", email="m@x.io", role=Role(name="Manager"))
        assert user.has_role("manager") is True
        assert user.has_role("MANAGER") is True
