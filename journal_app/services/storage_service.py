from __future__ import annotations

from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, ValidationError

from journal_app.services.supabase_client import SupabaseClient


class StorageError(RuntimeError):
    pass


class StoredObject(BaseModel):
    name: str
    id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    metadata: dict | None = None

    model_config = ConfigDict(extra="ignore")

    @property
    def is_folder(self) -> bool:
        return self.id is None


class StorageService:
    """Object operations on one Supabase Storage bucket, keyed by folder-style paths."""

    def __init__(
        self,
        client: SupabaseClient | None = None,
        bucket: str | None = None,
    ) -> None:
        self._client = client or SupabaseClient()
        self._bucket = bucket or self._client.config.storage_bucket

    async def list_objects(self, folder: str, limit: int = 100) -> list[StoredObject]:
        payload = {
            "prefix": folder,
            "limit": limit,
            "offset": 0,
            "sortBy": {"column": "name", "order": "asc"},
        }
        data = await self._client.request_json(
            "POST", f"storage/v1/object/list/{self._bucket}", json=payload
        )
        if not isinstance(data, list):
            raise StorageError("List response is not an array")
        try:
            objects = [StoredObject.model_validate(item) for item in data]
        except ValidationError as exc:
            raise StorageError(f"Malformed list response: {exc}") from exc
        # placeholder objects such as ".emptyFolderPlaceholder" are not user files
        return [
            item for item in objects if not item.is_folder and not item.name.startswith(".")
        ]

    async def upload(
        self,
        path: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        upsert: bool = False,
    ) -> str:
        response = await self._client.request_json(
            "POST",
            f"storage/v1/object/{self._bucket}/{_quote_path(path)}",
            content=data,
            headers={
                "Content-Type": content_type,
                "x-upsert": "true" if upsert else "false",
            },
        )
        if isinstance(response, dict) and response.get("Key"):
            return str(response["Key"])
        return f"{self._bucket}/{path}"

    async def remove(self, paths: list[str]) -> None:
        if not paths:
            return
        await self._client.request_json(
            "DELETE",
            f"storage/v1/object/{self._bucket}",
            json={"prefixes": paths},
        )

    async def create_signed_url(self, path: str, expires_in: int) -> str:
        data = await self._client.request_json(
            "POST",
            f"storage/v1/object/sign/{self._bucket}/{_quote_path(path)}",
            json={"expiresIn": expires_in},
        )
        signed = None
        if isinstance(data, dict):
            signed = data.get("signedURL") or data.get("signedUrl")
        if not isinstance(signed, str) or not signed:
            raise StorageError("Signed URL response is missing signedURL")
        if signed.startswith(("http://", "https://")):
            return signed
        return self._client.url(f"storage/v1/{signed.lstrip('/')}")

    async def close(self) -> None:
        await self._client.close()


def _quote_path(path: str) -> str:
    return quote(path, safe="/")


__all__ = ["StorageError", "StorageService", "StoredObject"]
