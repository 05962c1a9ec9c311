"""Integration tests for auth/service.py against an in-memory store.

Covers:
- authenticate(): success path (token, session, last_login), unknown user,
  wrong password, inactive and suspended accounts
- unknown-user and wrong-password failures are indistinguishable
- last_login failures are logged, not raised
- logout() clears the session and is idempotent
- register(): duplicate username checked before duplicate email
- change_password(): wrong current password, unknown user, success
- passwords over the 72-byte bcrypt limit are refused without writing
"""

import logging

import pytest

from auth.errors import (
    AccountInactiveError,
    DuplicateEmailError,
    DuplicateUsernameError,
    InvalidCredentialsError,
    PasswordTooLongError,
    PersistenceUnavailableError,
    UserNotFoundError,
)
from auth.models import User
from auth.passwords import verify_password

# ---------------------------------------------------------------------------
# TestAuthenticate
# ---------------------------------------------------------------------------


class TestAuthenticate:
    def test_staff_login_succeeds(self, auth, issuer) -> None:
        user = auth.authenticate("staff1", "password123")
        assert user.username == "staff1"
        assert user.role_name == "staff"
        assert user.token is not None
        assert issuer.is_valid(user.token) is True
        assert issuer.username_of(user.token) == "staff1"
        assert auth.is_logged_in() is True
        assert auth.current_user() is user
        assert auth.session.current_token() == user.token

    def test_login_stamps_last_login(self, auth, user_store) -> None:
        assert user_store.get_by_username("staff1").last_login is None
        auth.authenticate("staff1", "password123")
        assert user_store.get_by_username("staff1").last_login is not None

    def test_staff_permissions_after_login(self, auth) -> None:
        auth.authenticate("staff1", "password123")
        assert auth.has_permission("orders.create") is True
        assert auth.has_permission("users.manage") is False
        assert auth.has_role("staff") is True

    def test_admin_has_every_permission(self, auth) -> None:
        auth.authenticate("admin", "password123")
        assert auth.has_permission("users.manage") is True
        assert auth.has_permission("anything.at_all") is True

    def test_wrong_password(self, auth) -> None:
        with pytest.raises(InvalidCredentialsError):
            auth.authenticate("staff1", "wrong")
        assert auth.is_logged_in() is False

    def test_unknown_username(self, auth) -> None:
        with pytest.raises(InvalidCredentialsError):
            auth.authenticate("ghost", "password123")
        assert auth.is_logged_in() is False

    def test_unknown_and_wrong_password_look_the_same(self, auth) -> None:
        with pytest.raises(InvalidCredentialsError) as unknown:
            auth.authenticate("ghost", "password123")
        with pytest.raises(InvalidCredentialsError) as wrong:
            auth.authenticate("staff1", "wrong")
        assert type(unknown.value) is type(wrong.value)
        assert str(unknown.value) == str(wrong.value)

    def test_username_is_case_sensitive(self, auth) -> None:
        with pytest.raises(InvalidCredentialsError):
            auth.authenticate("STAFF1", "password123")

    @pytest.mark.parametrize("status", ["inactive", "suspended"])
    def test_non_active_account_refused(self, auth, user_store, status) -> None:
        user = user_store.get_by_username("staff1")
        user_store.update_user(user.id, status=status)
        with pytest.raises(AccountInactiveError):
            auth.authenticate("staff1", "password123")
        assert auth.is_logged_in() is False

    def test_status_checked_before_password(self, auth, user_store) -> None:
        """A suspended account reports inactive even with the wrong password."""
        user = user_store.get_by_username("staff1")
        user_store.update_user(user.id, status="suspended")
        with pytest.raises(AccountInactiveError):
            auth.authenticate("staff1", "wrong")

    def test_last_login_failure_does_not_block_login(self, auth, monkeypatch, caplog) -> None:
        def broken(user_id):
            raise PersistenceUnavailableError("disk full")

        monkeypatch.setattr(auth.store, "update_last_login", broken)
        with caplog.at_level(logging.WARNING, logger="backoffice.auth"):
            user = auth.authenticate("staff1", "password123")
        assert auth.is_logged_in() is True
        assert user.token is not None
        assert "last login" in caplog.text


# ---------------------------------------------------------------------------
# TestLogout
# ---------------------------------------------------------------------------


class TestLogout:
    def test_logout_clears_session(self, auth) -> None:
        auth.authenticate("staff1", "password123")
        auth.logout()
        assert auth.is_logged_in() is False
        assert auth.current_user() is None
        assert auth.has_permission("orders.view") is False

    def test_logout_when_anonymous(self, auth) -> None:
        auth.logout()
        auth.logout()
        assert auth.is_logged_in() is False


# ---------------------------------------------------------------------------
# TestRegister
# ---------------------------------------------------------------------------


class TestRegister:
    def _new_user(self, user_store, **overrides) -> User:
        values = dict(
            username="waiter2",
            email="waiter2@restaurant.local",
            full_name="Wren Waiter",
            role_id=user_store.get_role_by_name("staff").id,
        )
        values.update(overrides)
        return User(**values)

    def test_register_creates_active_account(self, auth, user_store) -> None:
        user = self._new_user(user_store, status="inactive")
        new_id = auth.register(user, "Secret123!")
        assert user.id == new_id
        assert user.status == "active"
        stored = user_store.get_by_id(new_id)
        assert stored.username == "waiter2"
        assert stored.status == "active"
        assert stored.role_name == "staff"

    def test_password_is_hashed(self, auth, user_store) -> None:
        new_id = auth.register(self._new_user(user_store), "Secret123!")
        stored = user_store.get_by_id(new_id)
        assert stored.password_hash != "Secret123!"
        assert verify_password("Secret123!", stored.password_hash) is True

    def test_registered_user_can_log_in(self, auth, user_store) -> None:
        auth.register(self._new_user(user_store), "Secret123!")
        assert auth.authenticate("waiter2", "Secret123!").username == "waiter2"

    def test_duplicate_username(self, auth, user_store) -> None:
        with pytest.raises(DuplicateUsernameError):
            auth.register(self._new_user(user_store, username="staff1"), "Secret123!")

    def test_duplicate_email(self, auth, user_store) -> None:
        with pytest.raises(DuplicateEmailError):
            auth.register(self._new_user(user_store, email="staff1@restaurant.local"), "Secret123!")

    def test_username_checked_before_email(self, auth, user_store) -> None:
        user = self._new_user(user_store, username="staff1", email="staff1@restaurant.local")
        with pytest.raises(DuplicateUsernameError):
            auth.register(user, "Secret123!")

    def test_failed_register_writes_nothing(self, auth, user_store) -> None:
        before = user_store.count_users()
        with pytest.raises(DuplicateEmailError):
            auth.register(self._new_user(user_store, email="admin@restaurant.local"), "Secret123!")
        assert user_store.count_users() == before

    def test_overlong_password_refused(self, auth, user_store) -> None:
        before = user_store.count_users()
        with pytest.raises(PasswordTooLongError, match="72 bytes"):
            auth.register(self._new_user(user_store), "A1!" + "x" * 80)
        assert user_store.count_users() == before
        assert user_store.get_by_username("waiter2") is None


# ---------------------------------------------------------------------------
# TestChangePassword
# ---------------------------------------------------------------------------


class TestChangePassword:
    def test_change_then_login_with_new_password(self, auth, user_store) -> None:
        user_id = user_store.get_by_username("staff1").id
        auth.change_password(user_id, "password123", "NewPass123!")
        with pytest.raises(InvalidCredentialsError):
            auth.authenticate("staff1", "password123")
        assert auth.authenticate("staff1", "NewPass123!").username == "staff1"

    def test_wrong_current_password(self, auth, user_store) -> None:
        user_id = user_store.get_by_username("staff1").id
        with pytest.raises(InvalidCredentialsError, match="Current password is incorrect"):
            auth.change_password(user_id, "nope", "NewPass123!")
        assert auth.authenticate("staff1", "password123").username == "staff1"

    def test_unknown_user(self, auth) -> None:
        with pytest.raises(UserNotFoundError):
            auth.change_password(9999, "password123", "NewPass123!")

    def test_existing_token_survives_password_change(self, auth, issuer, user_store) -> None:
        token = auth.authenticate("staff1", "password123").token
        auth.change_password(user_store.get_by_username("staff1").id, "password123", "NewPass123!")
        assert issuer.is_valid(token) is True

    def test_overlong_new_password_refused(self, auth, user_store) -> None:
        user_id = user_store.get_by_username("staff1").id
        with pytest.raises(PasswordTooLongError):
            auth.change_password(user_id, "password123", "N3w!" + "y" * 80)
        assert auth.authenticate("staff1", "password123").username == "staff1"

    def test_multibyte_password_counted_in_bytes(self, auth, user_store) -> None:
        """37 two-byte characters is 74 bytes."""
        user_id = user_store.get_by_username("staff1").id
        with pytest.raises(PasswordTooLongError):
            auth.change_password(user_id, "password123", "é" * 37)
