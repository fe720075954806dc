from __future__ import annotations

import time
from typing import Any

from loguru import logger

from journal_app.core.security import SessionTokens
from journal_app.services.supabase_client import SupabaseClient, SupabaseError


class AuthError(RuntimeError):
    pass


class AuthService:
    """Email/password accounts backed by Supabase Auth (GoTrue)."""

    def __init__(
        self,
        client: SupabaseClient | None = None,
        access_token: str | None = None,
    ) -> None:
        self._client = client or SupabaseClient(access_token=access_token)

    async def sign_up(self, email: str, password: str) -> dict[str, Any]:
        data = await self._call(
            "POST", "auth/v1/signup", json={"email": email, "password": password}
        )
        if not isinstance(data, dict):
            raise AuthError("Sign-up response is not an object")
        logger.info("Account created for {}", _mask_email(email))
        return data

    async def sign_in(self, email: str, password: str) -> SessionTokens:
        data = await self._call(
            "POST",
            "auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        session = self._parse_session(data)
        logger.info("Signed in {}", _mask_email(email))
        return session

    async def refresh(self, refresh_token: str) -> SessionTokens:
        if not refresh_token:
            raise AuthError("Missing refresh token, please sign in again")
        data = await self._call(
            "POST",
            "auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        return self._parse_session(data)

    async def sign_out(self) -> None:
        if not self._client.access_token:
            return
        await self._call("POST", "auth/v1/logout")

    async def get_user(self) -> dict[str, Any] | None:
        """Current user for the client's access token, or None when it is rejected."""
        if not self._client.access_token:
            return None
        try:
            data = await self._client.request_json("GET", "auth/v1/user")
        except SupabaseError as exc:
            if exc.status_code in (401, 403):
                return None
            raise AuthError(str(exc)) from exc
        if not isinstance(data, dict) or not data.get("id"):
            return None
        return data

    async def close(self) -> None:
        await self._client.close()

    async def _call(self, method: str, path: str, **kwargs) -> Any:
        try:
            return await self._client.request_json(method, path, **kwargs)
        except SupabaseError as exc:
            raise AuthError(str(exc)) from exc

    @staticmethod
    def _parse_session(data: Any) -> SessionTokens:
        if not isinstance(data, dict):
            raise AuthError("Token response is not an object")
        access_token = data.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise AuthError("Token response is missing access_token")

        refresh_token = data.get("refresh_token")
        if not isinstance(refresh_token, str):
            refresh_token = ""

        expires_at: float | None = None
        raw_expires_at = data.get("expires_at")
        raw_expires_in = data.get("expires_in")
        if isinstance(raw_expires_at, (int, float)):
            expires_at = float(raw_expires_at)
        elif isinstance(raw_expires_in, (int, float)):
            expires_at = time.time() + float(raw_expires_in)

        user = data.get("user")
        return SessionTokens(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
            user=user if isinstance(user, dict) else {},
        )


def _mask_email(email: str) -> str:
    local, _, domain = email.partition("@")
    if not domain:
        return "***"
    return f"{local[:2]}***@{domain}"


__all__ = ["AuthError", "AuthService"]
