"""
Client for the external identity provider.

Speaks the GoTrue REST API (the auth server behind Supabase). Passwords and
sessions live entirely in the provider; this service only relays requests
and verifies access tokens.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from jose import JWTError, jwt

from app.config import settings
from app.core.exceptions import AppError, AuthenticationError

logger = logging.getLogger(__name__)


class IdentityProviderError(AppError):
    """The provider rejected a request. ``status_code`` mirrors the provider's."""

    status_code = 400


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"Identity provider returned {response.status_code}"
    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            if body.get(key):
                return str(body[key])
    return f"Identity provider returned {response.status_code}"


def _split_session(body: Dict[str, Any]) -> tuple[Optional[Dict[str, Any]], Optional[Dict[str, Any]]]:
    """
    Signup and token responses are either a session with a nested ``user``
    or, when email confirmation is pending, a bare user object.
    """
    if "access_token" in body:
        session = dict(body)
        return session.get("user"), session
    return body, None


class IdentityProvider:
    def __init__(
        self,
        base_url: Optional[str] = None,
        anon_key: Optional[str] = None,
        service_key: Optional[str] = None,
        jwt_secret: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.IDENTITY_URL).rstrip("/")
        self.anon_key = anon_key if anon_key is not None else settings.IDENTITY_ANON_KEY
        self.service_key = service_key if service_key is not None else settings.IDENTITY_SERVICE_KEY
        self.jwt_secret = jwt_secret if jwt_secret is not None else settings.IDENTITY_JWT_SECRET
        self._transport = transport

    def _client(self, api_key: Optional[str] = None, bearer: Optional[str] = None) -> httpx.AsyncClient:
        headers: Dict[str, str] = {}
        key = api_key or self.anon_key
        if key:
            headers["apikey"] = key
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        return httpx.AsyncClient(
            base_url=f"{self.base_url}/auth/v1",
            headers=headers,
            timeout=10.0,
            transport=self._transport,
        )

    @staticmethod
    def _check(response: httpx.Response) -> Dict[str, Any]:
        if response.is_success:
            return response.json() if response.content else {}
        raise IdentityProviderError(_error_message(response), status_code=response.status_code)

    async def sign_up(
        self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None
    ) -> tuple[Optional[Dict[str, Any]], Optional[Dict[str, Any]]]:
        async with self._client() as client:
            response = await client.post(
                "/signup",
                json={"email": email, "password": password, "data": metadata or {}},
            )
        return _split_session(self._check(response))

    async def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        async with self._client() as client:
            response = await client.post(
                "/token",
                params={"grant_type": "password"},
                json={"email": email, "password": password},
            )
        return self._check(response)

    async def refresh_session(self, refresh_token: str) -> Dict[str, Any]:
        async with self._client() as client:
            response = await client.post(
                "/token",
                params={"grant_type": "refresh_token"},
                json={"refresh_token": refresh_token},
            )
        return self._check(response)

    async def get_user(self, access_token: str) -> Dict[str, Any]:
        async with self._client(bearer=access_token) as client:
            response = await client.get("/user")
        return self._check(response)

    async def admin_get_user(self, user_id: str) -> Dict[str, Any]:
        async with self._client(api_key=self.service_key, bearer=self.service_key) as client:
            response = await client.get(f"/admin/users/{user_id}")
        return self._check(response)

    async def sign_out(self, access_token: str) -> None:
        async with self._client(bearer=access_token) as client:
            response = await client.post("/logout")
        self._check(response)

    async def verify_access_token(self, token: str) -> Dict[str, Any]:
        """
        Resolve an access token to ``{"id", "email"}``.

        Decoded locally when a JWT secret is configured, otherwise checked
        against the provider. Raises AuthenticationError for any bad token.
        """
        if self.jwt_secret:
            try:
                claims = jwt.decode(
                    token,
                    self.jwt_secret,
                    algorithms=[settings.ALGORITHM],
                    audience=settings.IDENTITY_JWT_AUDIENCE,
                )
            except JWTError as e:
                logger.warning("Authentication failed: %s", e)
                raise AuthenticationError("Invalid or expired token")
            if not claims.get("sub"):
                raise AuthenticationError("Invalid or expired token")
            return {"id": claims["sub"], "email": claims.get("email") or ""}

        try:
            user = await self.get_user(token)
        except IdentityProviderError as e:
            logger.warning("Authentication failed: %s", e.message)
            raise AuthenticationError("Invalid or expired token")
        if not user.get("id"):
            raise AuthenticationError("Invalid or expired token")
        return {"id": user["id"], "email": user.get("email") or ""}
