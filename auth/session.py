"""
auth/session.py -- The client's "who is logged in" record.

One SessionState exists per running client. The entry point constructs it
and hands it to the AuthService and the UI; nothing reaches it through a
global.

Concurrency: no locking. A single logical actor (the person at the
terminal) drives the session from the UI dispatcher. Background tasks must
not touch it. A multi-window or multi-threaded client would need a mutex
here.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from auth.tokens import Clock, utcnow

if TYPE_CHECKING:
    from auth.models import User
    from core.config import Settings


class SessionState:
    """Holds the current user, token, and activity timestamps.

    login() overwrites whatever was there; there is no multi-session support.
    current_user() counts as activity and pushes the idle deadline forward.
    """

    def __init__(self, timeout_ms: int = 1_800_000, clock: Clock = utcnow) -> None:
        self._timeout = timedelta(milliseconds=timeout_ms)
        self._clock = clock
        self._user: User | None = None
        self._token: str | None = None
        self._login_time: datetime | None = None
        self._last_activity: datetime | None = None

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = utcnow) -> "SessionState":
        return cls(settings.session_timeout, clock=clock)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def login(self, user: User, token: str) -> None:
        now = self._clock()
        self._user = user
        self._token = token
        self._login_time = now
        self._last_activity = now

    def logout(self) -> None:
        self._user = None
        self._token = None
        self._login_time = None
        self._last_activity = None

    def is_logged_in(self) -> bool:
        return self._user is not None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def current_user(self) -> User | None:
        """Return the logged-in user and record the read as activity."""
        self.touch()
        return self._user

    def current_token(self) -> str | None:
        return self._token

    def touch(self) -> None:
        if self._user is not None:
            self._last_activity = self._clock()

    @property
    def login_time(self) -> datetime | None:
        return self._login_time

    @property
    def last_activity(self) -> datetime | None:
        return self._last_activity

    @property
    def timeout(self) -> timedelta:
        return self._timeout

    # ------------------------------------------------------------------
    # Authorization
    # ------------------------------------------------------------------

    def has_permission(self, name: str) -> bool:
        return self._user is not None and self._user.has_permission(name)

    def has_role(self, role_name: str) -> bool:
        return self._user is not None and self._user.has_role(role_name)

    def is_session_expired(self) -> bool:
        """True if nobody is logged in or the idle timeout has passed."""
        if self._last_activity is None:
            return True
        return self._clock() - self._last_activity > self._timeout
