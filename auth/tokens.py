"""
auth/tokens.py -- Signed, time-limited session tokens.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with jwt.secret and carry
       user_id, username (also the "sub" claim), email, role name, branch id,
       issued-at and expiry. Nothing is persisted; a token can only be
       reconstructed by validating its signature.

  validate() checks the signature, the claim shape and expiry: a token whose
       exp is not strictly after the issuer clock yields None, as do the
       accessors. is_valid() is validate() as a bool.

  Canonical encoding: each segment must re-encode to exactly the same
       base64url text. The last character of a segment carries unused bits
       the decoder ignores, so without this check some one-character edits
       would still verify.

  Failures never raise. Any malformed, tampered or unparsable token comes
       back as None / False -- invalid tokens are an expected condition.

  Secret and TTL are fixed when the issuer is constructed. Build one issuer
       per process from Settings and pass it to the AuthService.

Layer rule: no imports from operations/ or console/. Import from core/ is
allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from jose import JWTError, jwt
from jose.utils import base64url_decode, base64url_encode

if TYPE_CHECKING:
    from auth.models import User
    from core.config import Settings

logger = logging.getLogger("backoffice.auth.tokens")

_ALGORITHM = "HS256"

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_canonical_segment(segment: str) -> bool:
    """True if segment is unpadded base64url that re-encodes to the same text."""
    try:
        raw = base64url_decode(segment.encode("ascii"))
    except ValueError:  # includes UnicodeEncodeError and binascii.Error
        return False
    return base64url_encode(raw).decode("ascii") == segment


@dataclass(frozen=True)
class TokenClaims:
    """Decoded view of a session token."""

    user_id: int
    username: str
    email: str
    role: str
    branch_id: int
    issued_at: datetime
    expires_at: datetime


class TokenIssuer:
    """Issues and validates HS256 session tokens.

    Usage:
        issuer = TokenIssuer.from_settings(settings)
        token = issuer.issue(user)
        claims = issuer.validate(token)   # TokenClaims or None
        issuer.is_valid(token)            # signature ok and not expired
    """

    def __init__(self, secret_key: str, expiration_ms: int = 86_400_000, clock: Clock = utcnow) -> None:
        if not secret_key:
            raise ValueError("secret_key is required")
        if expiration_ms <= 0:
            raise ValueError("expiration_ms must be positive")
        self._secret_key = secret_key
        self._ttl = timedelta(milliseconds=expiration_ms)
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = utcnow) -> "TokenIssuer":
        return cls(settings.jwt_secret, settings.jwt_expiration, clock=clock)

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    # ------------------------------------------------------------------
    # Encode
    # ------------------------------------------------------------------

    def issue(self, user: User) -> str:
        """Encode a signed token for user, expiring TTL from now.

        Unbranched users carry branch_id 0; role-less users carry role "".
        """
        now = self._clock()
        payload = {
            "sub": user.username,
            "user_id": user.id,
            "username": user.username,
            "email": user.email,
            "role": user.role_name,
            "branch_id": user.branch_id or 0,
            "iat": now,
            "exp": now + self._ttl,
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    # ------------------------------------------------------------------
    # Decode
    # ------------------------------------------------------------------

    def validate(self, token: str | None) -> TokenClaims | None:
        """Verify encoding, signature and expiry and return the claims, or None on any failure.

        jose's own exp check reads the wall clock, so it is disabled and expiry
        is compared against the issuer clock instead.
        """
        if not isinstance(token, str) or not token:
            return None
        segments = token.split(".")
        if len(segments) != 3 or not all(_is_canonical_segment(s) for s in segments):
            return None
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[_ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError:
            return None
        try:
            claims = TokenClaims(
                user_id=int(payload["user_id"]),
                username=str(payload["username"]),
                email=str(payload.get("email") or ""),
                role=str(payload.get("role") or ""),
                branch_id=int(payload.get("branch_id") or 0),
                issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc),
                expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
            )
        except (KeyError, TypeError, ValueError, OverflowError, OSError):
            logger.debug("Token signature valid but claims malformed")
            return None
        if claims.expires_at <= self._clock():
            return None
        return claims

    def is_valid(self, token: str | None) -> bool:
        return self.validate(token) is not None

    def username_of(self, token: str | None) -> str | None:
        claims = self.validate(token)
        return claims.username if claims is not None else None

    def user_id_of(self, token: str | None) -> int | None:
        claims = self.validate(token)
        return claims.user_id if claims is not None else None

    def role_of(self, token: str | None) -> str | None:
        claims = self.validate(token)
        return claims.role if claims is not None else None
