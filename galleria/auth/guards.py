"""Ownership gate and bearer token resolution for request handlers."""

from __future__ import annotations

from typing import Any, Protocol
from uuid import UUID

from litestar import Request

from galleria.auth.tokens import TokenClaims, TokenService
from galleria.lib.exceptions import Forbidden, NotFound, Unauthorized

BEARER_PREFIX = "bearer "


class Owned(Protocol):
    user_id: UUID


def can_mutate(acting_user_id: UUID, owner_id: UUID) -> bool:
    """True iff the acting user owns the resource."""
    return acting_user_id == owner_id


def ensure_owner(resource: Owned | None, acting_user_id: UUID, kind: str = "Resource") -> Any:
    """Return *resource* if it exists and belongs to *acting_user_id*.

    Existence is checked first so a missing id is always ``NotFound``, never
    ``Forbidden``.

    Raises:
        NotFound: The resource does not exist.
        Forbidden: The resource belongs to someone else.
    """
    if resource is None:
        raise NotFound(f"{kind} not found")
    if not can_mutate(acting_user_id, resource.user_id):
        raise Forbidden(f"You do not own this {kind.lower()}")
    return resource


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("authorization", "")
    if not header.lower().startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


def _token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def resolve_current_user(request: Request) -> TokenClaims:
    """Claims of the request's bearer token.

    Raises:
        Unauthorized: No bearer token, or the token does not verify.
    """
    token = _bearer_token(request)
    if token is None:
        raise Unauthorized("Authorization header required")
    return _token_service(request).verify(token)


def optional_current_user(request: Request) -> TokenClaims | None:
    """Claims when a valid token is sent, else None. Used by public routes."""
    token = _bearer_token(request)
    if token is None:
        return None
    try:
        return _token_service(request).verify(token)
    except Unauthorized:
        return None
