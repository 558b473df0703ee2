import logging
from typing import Optional

import httpx
from pymongo.database import Database

from app.core.exceptions import (
    AppError,
    AuthenticationError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from app.dtos import AuthResult, UpdateProfileRequest, UserResponse
from app.repositories.profile import ProfileRepository
from app.services.identity_provider import IdentityProvider, IdentityProviderError

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: Database, identity: Optional[IdentityProvider] = None):
        self.db = db
        self.identity = identity or IdentityProvider()
        self.profile_repo = ProfileRepository(db)

    async def register_user(
        self, email: str, password: str, full_name: Optional[str] = None
    ) -> AuthResult:
        try:
            user, session = await self.identity.sign_up(
                email, password, metadata={"full_name": full_name}
            )
        except IdentityProviderError as e:
            logger.error("Registration error: %s", e.message)
            raise ValidationError(e.message)
        except httpx.HTTPError as e:
            logger.error("Unexpected registration error: %s", e)
            raise UpstreamError("Registration failed")

        if not user or not user.get("id"):
            raise ValidationError("Failed to create user")

        self.profile_repo.ensure_profile(user["id"], full_name=full_name)
        logger.info("User registered: %s", email)

        return AuthResult(
            user=UserResponse(id=user["id"], email=user.get("email") or email, full_name=full_name),
            session=session,
        )

    async def login_user(self, email: str, password: str) -> AuthResult:
        try:
            session = await self.identity.sign_in_with_password(email, password)
        except IdentityProviderError as e:
            logger.warning("Login failed for %s: %s", email, e.message)
            raise AuthenticationError("Invalid email or password")
        except httpx.HTTPError as e:
            logger.error("Unexpected login error: %s", e)
            raise UpstreamError("Login failed")

        user = session.get("user") or {}
        if not user.get("id") or not session.get("access_token"):
            raise AuthenticationError("Invalid email or password")

        profile = self.profile_repo.get(user["id"])
        logger.info("User logged in: %s", email)

        return AuthResult(
            user=UserResponse(
                id=user["id"],
                email=user.get("email") or email,
                full_name=profile.full_name if profile else None,
                avatar_url=profile.avatar_url if profile else None,
            ),
            session=session,
        )

    async def refresh_access_token(self, refresh_token: str) -> AuthResult:
        try:
            session = await self.identity.refresh_session(refresh_token)
        except IdentityProviderError as e:
            logger.warning("Token refresh failed: %s", e.message)
            raise AuthenticationError("Invalid refresh token")
        except httpx.HTTPError as e:
            logger.error("Unexpected token refresh error: %s", e)
            raise UpstreamError("Token refresh failed")

        if not session.get("access_token"):
            raise AuthenticationError("Failed to refresh token")

        logger.debug("Token refreshed successfully")
        user = session.get("user") or {}
        return AuthResult(
            user=UserResponse(id=user.get("id", ""), email=user.get("email") or ""),
            session=session,
        )

    async def _lookup_email(self, user_id: str) -> str:
        try:
            user = await self.identity.admin_get_user(user_id)
        except (IdentityProviderError, httpx.HTTPError) as e:
            logger.warning("Could not fetch email for user %s: %s", user_id, e)
            return ""
        return user.get("email") or ""

    async def get_user_profile(self, user_id: str, email: Optional[str] = None) -> UserResponse:
        profile = self.profile_repo.get(user_id)
        if not profile:
            raise NotFoundError("User profile not found")

        return UserResponse(
            id=profile.id,
            email=email or await self._lookup_email(user_id),
            full_name=profile.full_name,
            avatar_url=profile.avatar_url,
        )

    async def update_user_profile(
        self, user_id: str, payload: UpdateProfileRequest, email: Optional[str] = None
    ) -> UserResponse:
        updates = payload.model_dump(exclude_none=True)
        self.profile_repo.ensure_profile(user_id)
        profile = self.profile_repo.update_profile(user_id, updates)
        if not profile:
            raise ValidationError("Failed to update profile")

        logger.info("Profile updated for user: %s", user_id)
        return UserResponse(
            id=profile.id,
            email=email or await self._lookup_email(user_id),
            full_name=profile.full_name,
            avatar_url=profile.avatar_url,
        )

    async def logout_user(self, access_token: str) -> None:
        """Revoke the session at the provider. Failures are logged and ignored."""
        try:
            await self.identity.sign_out(access_token)
            logger.debug("User logged out")
        except (AppError, httpx.HTTPError) as e:
            logger.warning("Logout error: %s", e)
