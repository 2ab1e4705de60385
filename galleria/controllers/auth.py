"""Registration, login and the signed-in user's account."""

from __future__ import annotations

from litestar import Controller, Request, get, post, put
from sqlalchemy.ext.asyncio import AsyncSession

from galleria.auth.guards import resolve_current_user
from galleria.controllers.helpers import get_identity_service
from galleria.controllers.schemas import (
    AuthOut,
    LoginRequest,
    MessageOut,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    UserOut,
)


class AuthController(Controller):
    path = "/auth"

    @post("/register", status_code=201)
    async def register(
        self, request: Request, db_session: AsyncSession, data: RegisterRequest
    ) -> AuthOut:
        """Create an account and sign it in."""
        identity = get_identity_service(request, db_session)
        user = await identity.register(
            email=data.email,
            username=data.username,
            password=data.password,
            first_name=data.first_name,
            last_name=data.last_name,
        )
        return AuthOut(
            user=UserOut.model_validate(user),
            token=identity.issue_token(user),
            expires_in=identity.tokens.ttl,
        )

    @post("/login", status_code=200)
    async def login(
        self, request: Request, db_session: AsyncSession, data: LoginRequest
    ) -> AuthOut:
        identity = get_identity_service(request, db_session)
        user, token = await identity.login(data.email, data.password)
        return AuthOut(
            user=UserOut.model_validate(user),
            token=token,
            expires_in=identity.tokens.ttl,
        )


class AccountController(Controller):
    """Endpoints acting on the bearer of the token."""

    path = "/api"

    @get("/profile")
    async def get_profile(self, request: Request, db_session: AsyncSession) -> UserOut:
        claims = resolve_current_user(request)
        user = await get_identity_service(request, db_session).get_profile(claims.user_id)
        return UserOut.model_validate(user)

    @put("/profile")
    async def update_profile(
        self, request: Request, db_session: AsyncSession, data: ProfileUpdateRequest
    ) -> UserOut:
        claims = resolve_current_user(request)
        user = await get_identity_service(request, db_session).update_profile(
            claims.user_id,
            first_name=data.first_name,
            last_name=data.last_name,
            avatar=data.avatar,
        )
        return UserOut.model_validate(user)

    @put("/password")
    async def change_password(
        self, request: Request, db_session: AsyncSession, data: PasswordChangeRequest
    ) -> MessageOut:
        claims = resolve_current_user(request)
        await get_identity_service(request, db_session).change_password(
            claims.user_id, data.old_password, data.new_password
        )
        return MessageOut(message="Password updated successfully")

    @post("/account/deactivate", status_code=200)
    async def deactivate(self, request: Request, db_session: AsyncSession) -> MessageOut:
        """Disable login for the account; issued tokens run out on their own."""
        claims = resolve_current_user(request)
        await get_identity_service(request, db_session).deactivate(claims.user_id)
        return MessageOut(message="Account deactivated")
