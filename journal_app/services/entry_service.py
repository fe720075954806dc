from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from journal_app.services.auth_service import AuthError, AuthService
from journal_app.services.supabase_client import SupabaseClient, SupabaseError


class EntryServiceError(RuntimeError):
    pass


class EntryNotFoundError(EntryServiceError):
    pass


class Entry(BaseModel):
    id: int | str
    user_id: str
    title: str
    content: str
    created_at: str | None = None

    model_config = ConfigDict(extra="ignore")


class EntryInput(BaseModel):
    title: str
    content: str


_RETURN_ROWS = {"Prefer": "return=representation"}


class EntryService:
    """Journal entry rows. Row-level security limits every query to the caller's rows."""

    def __init__(
        self,
        client: SupabaseClient | None = None,
        access_token: str | None = None,
        auth_service: AuthService | None = None,
    ) -> None:
        self._client = client or SupabaseClient(access_token=access_token)
        self._auth_service = auth_service or AuthService(client=self._client)

    @property
    def _table_path(self) -> str:
        return f"rest/v1/{self._client.config.entries_table}"

    async def list_entries(self) -> list[Entry]:
        rows = await self._call(
            "GET",
            params={"select": "*", "order": "created_at.desc"},
        )
        return self._parse_rows(rows)

    async def get_entry(self, entry_id: str) -> Entry:
        rows = await self._call(
            "GET",
            params={"select": "*", "id": f"eq.{entry_id}"},
        )
        entries = self._parse_rows(rows)
        if not entries:
            raise EntryNotFoundError(f"Entry {entry_id} not found")
        return entries[0]

    async def get_entry_owner(self, entry_id: str) -> str | None:
        rows = await self._call(
            "GET",
            params={"select": "user_id", "id": f"eq.{entry_id}"},
        )
        if not isinstance(rows, list) or not rows or not isinstance(rows[0], dict):
            return None
        owner = rows[0].get("user_id")
        return str(owner) if owner else None

    async def create_entry(self, entry: EntryInput) -> Entry:
        try:
            user = await self._auth_service.get_user()
        except AuthError as exc:
            raise EntryServiceError(str(exc)) from exc
        if user is None:
            raise EntryServiceError("User not authenticated")
        payload = {
            "user_id": user["id"],
            "title": entry.title,
            "content": entry.content,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        rows = await self._call("POST", json=[payload], headers=dict(_RETURN_ROWS))
        return self._single(rows, "Insert returned no entry")

    async def update_entry(self, entry_id: str, entry: EntryInput) -> Entry:
        rows = await self._call(
            "PATCH",
            params={"id": f"eq.{entry_id}"},
            json={"title": entry.title, "content": entry.content},
            headers=dict(_RETURN_ROWS),
        )
        entries = self._parse_rows(rows)
        if not entries:
            raise EntryNotFoundError(f"Entry {entry_id} not found")
        return entries[0]

    async def delete_entry(self, entry_id: str) -> None:
        await self._call("DELETE", params={"id": f"eq.{entry_id}"})

    async def close(self) -> None:
        await self._client.close()

    async def _call(self, method: str, **kwargs) -> Any:
        try:
            return await self._client.request_json(method, self._table_path, **kwargs)
        except SupabaseError as exc:
            raise EntryServiceError(str(exc)) from exc

    def _single(self, rows: Any, message: str) -> Entry:
        entries = self._parse_rows(rows)
        if not entries:
            raise EntryServiceError(message)
        return entries[0]

    @staticmethod
    def _parse_rows(rows: Any) -> list[Entry]:
        if rows is None:
            return []
        if not isinstance(rows, list):
            raise EntryServiceError("Unexpected response from entries table")
        try:
            return [Entry.model_validate(row) for row in rows]
        except ValidationError as exc:
            raise EntryServiceError(f"Malformed entry row: {exc}") from exc


__all__ = [
    "Entry",
    "EntryInput",
    "EntryNotFoundError",
    "EntryService",
    "EntryServiceError",
]
