from __future__ import annotations

import asyncio
from typing import Any

import httpx
from loguru import logger

from journal_app.core.config import AppConfig, ConfigManager


class SupabaseError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SupabaseClient:
    """HTTP access to the Supabase project, scoped to one caller's access token."""

    def __init__(
        self,
        access_token: str | None = None,
        config: AppConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
        max_retries: int = 3,
        backoff_base: float = 0.5,
        backoff_factor: float = 2.0,
    ) -> None:
        self._config = config or ConfigManager.get().config
        self._access_token = access_token
        self._client = http_client or httpx.AsyncClient(timeout=30.0)
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._backoff_factor = backoff_factor

    @property
    def access_token(self) -> str | None:
        return self._access_token

    @property
    def config(self) -> AppConfig:
        return self._config

    def url(self, path: str) -> str:
        base_url = self._config.supabase_url.strip().rstrip("/")
        if not base_url:
            raise SupabaseError("supabase_url is not configured")
        return f"{base_url}/{path.lstrip('/')}"

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        anon_key = self._config.supabase_anon_key.strip()
        if not anon_key:
            raise SupabaseError("supabase_anon_key is not configured")
        headers = {
            "apikey": anon_key,
            "Authorization": f"Bearer {self._access_token or anon_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    async def request(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = self._headers(kwargs.pop("headers", None))
        return await self._client.request(method, self.url(path), headers=headers, **kwargs)

    async def request_with_retry(self, method: str, path: str, **kwargs) -> httpx.Response:
        max_retries = max(kwargs.pop("max_retries", self._max_retries), 1)
        for attempt in range(max_retries):
            try:
                response = await self.request(method, path, **kwargs)
            except httpx.RequestError as exc:
                raise SupabaseError(f"Request to {path} failed: {exc}") from exc
            if response.status_code in (429, 503) and attempt < max_retries - 1:
                await self._sleep_backoff(attempt, response)
                continue
            return response
        return response

    async def request_json(self, method: str, path: str, **kwargs) -> Any:
        response = await self.request_with_retry(method, path, **kwargs)
        if response.status_code >= 400:
            message = self.error_message(response)
            logger.warning(
                "Supabase {} {} failed: HTTP {} {}",
                method,
                path.split("?", 1)[0],
                response.status_code,
                message,
            )
            raise SupabaseError(message, status_code=response.status_code)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            snippet = response.text[:200]
            raise SupabaseError(f"Response is not JSON: {snippet}") from exc

    @staticmethod
    def error_message(response: httpx.Response) -> str:
        fallback = f"Request failed (HTTP {response.status_code})"
        try:
            payload = response.json()
        except ValueError:
            return response.text.strip()[:200] or fallback
        if isinstance(payload, dict):
            for key in ("msg", "message", "error_description", "error"):
                value = payload.get(key)
                if isinstance(value, str) and value:
                    return value
        return fallback

    async def close(self) -> None:
        await self._client.aclose()

    async def _sleep_backoff(self, attempt: int, response: httpx.Response) -> None:
        retry_after = response.headers.get("Retry-After")
        if retry_after:
            try:
                delay = float(retry_after)
                if delay > 0:
                    await asyncio.sleep(delay)
                    return
            except ValueError:
                pass
        delay = self._backoff_base * (self._backoff_factor**attempt)
        await asyncio.sleep(delay)


__all__ = ["SupabaseClient", "SupabaseError"]
