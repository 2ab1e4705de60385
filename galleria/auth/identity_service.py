"""Account lifecycle: registration, login, profile, password and deactivation."""

from __future__ import annotations

import asyncio
import logging
from uuid import UUID

from galleria.auth.passwords import PasswordHasher
from galleria.auth.tokens import TokenService
from galleria.db.models import User
from galleria.db.repositories.base import UserRepository
from galleria.lib.exceptions import (
    EmailExists,
    Forbidden,
    InvalidCredentials,
    InvalidInput,
    NotFound,
    UsernameExists,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
USERNAME_LENGTH = (3, 20)

_UNSET = object()


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_username(username: str) -> str:
    return username.strip().lower()


class IdentityService:
    def __init__(
        self,
        users: UserRepository,
        tokens: TokenService,
        hasher: PasswordHasher,
    ) -> None:
        self.users = users
        self.tokens = tokens
        self.hasher = hasher

    async def _hash(self, password: str) -> str:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidInput(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return await asyncio.to_thread(self.hasher.hash, password)

    async def _check(self, password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(self.hasher.verify, password, password_hash)

    async def _require(self, user_id: UUID) -> User:
        user = await self.users.get(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def register(
        self,
        email: str,
        username: str,
        password: str,
        first_name: str = "",
        last_name: str = "",
    ) -> User:
        """Create an active account.

        Raises:
            InvalidInput: Malformed email, username or too-short password.
            EmailExists: The email is taken (checked before the username).
            UsernameExists: The username is taken.
        """
        email = normalize_email(email)
        username = normalize_username(username)

        if "@" not in email.strip("@"):
            raise InvalidInput("A valid email address is required")
        low, high = USERNAME_LENGTH
        if not low <= len(username) <= high:
            raise InvalidInput(f"Username must be {low}-{high} characters")

        if await self.users.get_by_email(email) is not None:
            raise EmailExists()
        if await self.users.get_by_username(username) is not None:
            raise UsernameExists()

        user = User(
            email=email,
            username=username,
            password_hash=await self._hash(password),
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            avatar="",
            is_active=True,
        )
        user = await self.users.add(user)
        logger.info("Registered user %s (%s)", user.id, username)
        return user

    async def login(self, email: str, password: str) -> tuple[User, str]:
        """Authenticate and issue a token.

        Unknown email and wrong password look the same to the caller. The
        active flag is consulted only once the password has matched.
        """
        user = await self.users.get_by_email(normalize_email(email))
        if user is None or not await self._check(password, user.password_hash):
            logger.info("Failed login attempt")
            raise InvalidCredentials()

        if not user.is_active:
            raise Forbidden("Account is deactivated")

        return user, self.issue_token(user)

    def issue_token(self, user: User) -> str:
        return self.tokens.issue(user)

    async def get_profile(self, user_id: UUID) -> User:
        return await self._require(user_id)

    async def update_profile(
        self,
        user_id: UUID,
        first_name=_UNSET,
        last_name=_UNSET,
        avatar=_UNSET,
    ) -> User:
        """Update display fields; arguments left unset (or ``None``) are untouched."""
        user = await self._require(user_id)
        if first_name is not _UNSET and first_name is not None:
            user.first_name = first_name.strip()
        if last_name is not _UNSET and last_name is not None:
            user.last_name = last_name.strip()
        if avatar is not _UNSET and avatar is not None:
            user.avatar = avatar.strip()
        return await self.users.update(user)

    async def change_password(self, user_id: UUID, old_password: str, new_password: str) -> None:
        """Replace the password hash after checking the current password."""
        user = await self._require(user_id)
        if not await self._check(old_password, user.password_hash):
            raise InvalidCredentials("Current password is incorrect")

        user.password_hash = await self._hash(new_password)
        await self.users.update(user)
        logger.info("Password changed for user %s", user_id)

    async def deactivate(self, user_id: UUID) -> User:
        """Turn off login for the account.

        Tokens already issued keep working until they expire.
        """
        user = await self._require(user_id)
        user.is_active = False
        user = await self.users.update(user)
        logger.info("Deactivated user %s", user_id)
        return user
