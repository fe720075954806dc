from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi import Request, Response

from .config import AppConfig, ConfigManager


@dataclass(frozen=True)
class SessionTokens:
    access_token: str
    refresh_token: str
    expires_at: Optional[float]
    user: dict[str, Any] = field(default_factory=dict)

    def max_age(self) -> Optional[int]:
        if self.expires_at is None:
            return None
        return max(int(self.expires_at - time.time()), 0)


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    value = value.strip()
    return value or None


def read_access_token(request: Request, config: AppConfig | None = None) -> Optional[str]:
    """Access token from the Authorization header, falling back to the session cookie."""
    token = _bearer_token(request)
    if token:
        return token
    config = config or ConfigManager.get().config
    return request.cookies.get(config.session_cookie_name) or None


def read_refresh_token(request: Request, config: AppConfig | None = None) -> Optional[str]:
    config = config or ConfigManager.get().config
    return request.cookies.get(config.refresh_cookie_name) or None


def write_session_cookies(
    response: Response, session: SessionTokens, config: AppConfig | None = None
) -> None:
    config = config or ConfigManager.get().config
    response.set_cookie(
        config.session_cookie_name,
        session.access_token,
        max_age=session.max_age(),
        httponly=True,
        secure=config.cookie_secure,
        samesite="lax",
        path="/",
    )
    if session.refresh_token:
        response.set_cookie(
            config.refresh_cookie_name,
            session.refresh_token,
            httponly=True,
            secure=config.cookie_secure,
            samesite="lax",
            path="/",
        )


def clear_session_cookies(response: Response, config: AppConfig | None = None) -> None:
    config = config or ConfigManager.get().config
    response.delete_cookie(config.session_cookie_name, path="/")
    response.delete_cookie(config.refresh_cookie_name, path="/")


__all__ = [
    "SessionTokens",
    "clear_session_cookies",
    "read_access_token",
    "read_refresh_token",
    "write_session_cookies",
]
