from fastapi import APIRouter, Depends, status

from app.api.deps import get_auth_service
from app.dtos import (
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    UpdateProfileRequest,
)
from app.dtos.common import format_response
from app.middleware.auth import get_current_user
from app.middleware.rate_limit import AUTH_POLICY, limit_per_client
from app.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(limit_per_client(AUTH_POLICY))],
)
async def register(
    payload: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Create an account with the identity provider and its local profile."""
    result = await service.register_user(payload.email, payload.password, payload.full_name)
    return format_response(
        data=result.model_dump(mode="json"), message="User registered successfully"
    )


@router.post("/login", dependencies=[Depends(limit_per_client(AUTH_POLICY))])
async def login(
    payload: LoginRequest,
    service: AuthService = Depends(get_auth_service),
):
    result = await service.login_user(payload.email, payload.password)
    return format_response(data=result.model_dump(mode="json"), message="Login successful")


@router.post("/refresh")
async def refresh(
    payload: RefreshTokenRequest,
    service: AuthService = Depends(get_auth_service),
):
    result = await service.refresh_access_token(payload.refresh_token)
    return format_response(
        data={"session": result.session}, message="Token refreshed successfully"
    )


@router.get("/me")
async def get_me(
    user: dict = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    profile = await service.get_user_profile(user["id"], email=user.get("email"))
    return format_response(data={"user": profile.model_dump(mode="json")})


@router.patch("/profile")
async def update_profile(
    payload: UpdateProfileRequest,
    user: dict = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    profile = await service.update_user_profile(user["id"], payload, email=user.get("email"))
    return format_response(
        data={"user": profile.model_dump(mode="json")}, message="Profile updated successfully"
    )


@router.post("/logout")
async def logout(
    user: dict = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    """Revoke the caller's session. Always succeeds from the client's point of view."""
    await service.logout_user(user["access_token"])
    return format_response(message="Logged out successfully")
