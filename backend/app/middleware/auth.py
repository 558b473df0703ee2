"""Bearer-token authentication dependency."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.exceptions import AuthenticationError
from app.core.tracing import TracingContext
from app.services.identity_provider import IdentityProvider

bearer_scheme = HTTPBearer(auto_error=False)


def get_identity_provider() -> IdentityProvider:
    return IdentityProvider()


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> dict:
    """
    Resolve the caller from ``Authorization: Bearer <token>``.

    Returns ``{"id", "email", "access_token"}`` and records the user id on the
    request state and in the logging context.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Missing or invalid authorization header")

    user = await identity.verify_access_token(credentials.credentials)
    user["access_token"] = credentials.credentials

    request.state.user_id = user["id"]
    TracingContext.set(user_id=user["id"])
    return user
