"""Signed bearer tokens.

Uses HMAC-SHA256 signing with Python stdlib. A token is
``base64url(json_payload).base64url(signature)``; nothing is stored
server-side, so logout is the client discarding its token.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

from galleria.lib.exceptions import Unauthorized

if TYPE_CHECKING:
    from galleria.db.models import User

logger = logging.getLogger(__name__)

TOKEN_TTL = 24 * 60 * 60

Clock = Callable[[], float]


def create_signed_token(
    payload: dict, secret: str, expires_in: int, now: float | None = None
) -> str:
    """Create a base64url-encoded, HMAC-signed JSON payload with expiration.

    Args:
        payload: Dictionary to encode in the token.
        secret: HMAC signing secret.
        expires_in: Token lifetime in seconds.
        now: Issue time as a Unix timestamp; defaults to the current time.

    Returns:
        URL-safe base64 string: ``base64(json_payload).base64(signature)``
    """
    issued_at = int(time.time() if now is None else now)
    payload = {**payload, "iat": issued_at, "exp": issued_at + expires_in}
    payload_bytes = json.dumps(payload, separators=(",", ":")).encode()
    payload_b64 = base64.urlsafe_b64encode(payload_bytes).decode()

    sig = hmac.new(secret.encode(), payload_b64.encode(), hashlib.sha256).digest()
    sig_b64 = base64.urlsafe_b64encode(sig).decode()

    return f"{payload_b64}.{sig_b64}"


def verify_signed_token(token: str, secret: str, now: float | None = None) -> dict | None:
    """Verify and decode a signed token.

    Returns:
        Decoded payload dict, or ``None`` if the token is invalid, expired,
        or has been tampered with.
    """
    parts = token.split(".")
    if len(parts) != 2:
        return None

    payload_b64, sig_b64 = parts

    expected_sig = hmac.new(secret.encode(), payload_b64.encode(), hashlib.sha256).digest()
    try:
        actual_sig = base64.urlsafe_b64decode(sig_b64)
    except (binascii.Error, ValueError):
        return None

    if not hmac.compare_digest(expected_sig, actual_sig):
        return None

    try:
        payload = json.loads(base64.urlsafe_b64decode(payload_b64))
    except (binascii.Error, ValueError):
        return None

    if not isinstance(payload, dict):
        return None

    exp = payload.get("exp")
    current = time.time() if now is None else now
    if not isinstance(exp, (int, float)) or current >= exp:
        return None

    return payload


@dataclass(frozen=True)
class TokenClaims:
    """The identity asserted by a verified token."""

    user_id: UUID
    email: str
    username: str
    issued_at: int
    expires_at: int

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    @classmethod
    def from_payload(cls, payload: dict) -> TokenClaims:
        """Build claims from a decoded payload. Raises ValueError on bad shape."""
        try:
            return cls(
                user_id=UUID(str(payload["sub"])),
                email=str(payload["email"]),
                username=str(payload["username"]),
                issued_at=int(payload["iat"]),
                expires_at=int(payload["exp"]),
            )
        except (KeyError, TypeError) as exc:
            raise ValueError("Token payload is missing required claims") from exc


class TokenService:
    """Issues and verifies bearer tokens with a process-wide secret."""

    def __init__(self, secret: str, ttl: int = TOKEN_TTL, clock: Clock = time.time) -> None:
        if not secret:
            raise ValueError("TokenService requires a non-empty secret")
        self._secret = secret
        self._ttl = ttl
        self._clock = clock

    @property
    def ttl(self) -> int:
        return self._ttl

    def issue(self, user: User) -> str:
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "username": user.username,
        }
        return create_signed_token(payload, self._secret, self._ttl, now=self._clock())

    def verify(self, token: str) -> TokenClaims:
        """Return the claims of a valid token.

        Raises:
            Unauthorized: Malformed, tampered, incomplete or expired token.
        """
        now = self._clock()
        payload = verify_signed_token(token, self._secret, now=now)
        if payload is None:
            raise Unauthorized("Invalid or expired token")

        try:
            claims = TokenClaims.from_payload(payload)
        except ValueError as exc:
            raise Unauthorized("Invalid or expired token") from exc

        if claims.is_expired(now):
            raise Unauthorized("Invalid or expired token")
        return claims
