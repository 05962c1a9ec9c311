"""Unit tests for auth/validation.py -- registration form checks.

Covers:
- username, email and phone format rules
- registration_errors() collects every problem, and none for a valid form
"""

import pytest

from auth.validation import (
    MAX_PASSWORD_LENGTH,
    is_valid_email,
    is_valid_phone,
    is_valid_username,
    registration_errors,
)


class TestFieldFormats:
    @pytest.mark.parametrize("username", ["abc", "staff_1", "A" * 20])
    def test_valid_usernames(self, username) -> None:
        assert is_valid_username(username) is True

    @pytest.mark.parametrize("username", [None, "", "ab", "A" * 21, "has space", "dash-ed", "dot.ted"])
    def test_invalid_usernames(self, username) -> None:
        assert is_valid_username(username) is False

    @pytest.mark.parametrize("email", ["staff1@restaurant.local", "first.last+tag@mail.example.com"])
    def test_valid_emails(self, email) -> None:
        assert is_valid_email(email) is True

    @pytest.mark.parametrize("email", [None, "", "no-at-sign", "a@b", "a@b.c", "spaces in@x.com"])
    def test_invalid_emails(self, email) -> None:
        assert is_valid_email(email) is False

    @pytest.mark.parametrize("phone", ["5551234567", "+15551234567", "(555) 123-4567", "+91 98765 43210"])
    def test_valid_phones(self, phone) -> None:
        assert is_valid_phone(phone) is True

    @pytest.mark.parametrize("phone", [None, "", "12345", "555-CALL-NOW", "+1234567890123456"])
    def test_invalid_phones(self, phone) -> None:
        assert is_valid_phone(phone) is False


class TestRegistrationErrors:
    def test_valid_form(self) -> None:
        assert registration_errors("waiter2", "waiter2@restaurant.local", "Secret123!") == []

    def test_phone_is_optional(self) -> None:
        assert registration_errors("waiter2", "waiter2@restaurant.local", "Secret123!", phone=None) == []

    def test_collects_every_problem(self) -> None:
        errors = registration_errors("x", "not-an-email", "", phone="123")
        assert len(errors) == 4

    def test_password_byte_limit(self) -> None:
        errors = registration_errors("waiter2", "waiter2@restaurant.local", "é" * MAX_PASSWORD_LENGTH)
        assert errors == [f"Password must be at most {MAX_PASSWORD_LENGTH} bytes."]
