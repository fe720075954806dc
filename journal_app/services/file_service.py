from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from journal_app.services.auth_service import AuthError, AuthService
from journal_app.services.entry_service import EntryService, EntryServiceError
from journal_app.services.filename_sanitizer import file_extension, sanitize_filename
from journal_app.services.storage_service import StorageError, StorageService
from journal_app.services.supabase_client import SupabaseClient, SupabaseError

PDF_CONTENT_TYPE = "application/pdf"


class FileServiceError(RuntimeError):
    pass


@dataclass(frozen=True)
class EntryFile:
    file_name: str
    file_url: str

    def to_payload(self) -> dict[str, str]:
        return {"fileName": self.file_name, "fileUrl": self.file_url}


def entry_folder(user_id: str, entry_id: str) -> str:
    return f"{user_id}/{entry_id}"


class EntryFileService:
    """The single PDF attached to a journal entry.

    Objects live at ``{user_id}/{entry_id}/{sanitized_filename}`` in the
    storage bucket. Uploading replaces whatever the folder already holds.
    """

    def __init__(
        self,
        client: SupabaseClient | None = None,
        access_token: str | None = None,
        auth_service: AuthService | None = None,
        entry_service: EntryService | None = None,
        storage_service: StorageService | None = None,
    ) -> None:
        self._client = client or SupabaseClient(access_token=access_token)
        self._auth_service = auth_service or AuthService(client=self._client)
        self._entry_service = entry_service or EntryService(
            client=self._client, auth_service=self._auth_service
        )
        self._storage = storage_service or StorageService(client=self._client)
        self._max_upload_bytes = self._client.config.max_upload_bytes
        self._signed_url_ttl = self._client.config.signed_url_ttl_seconds

    async def upload_entry_file(
        self,
        entry_id: str,
        filename: str,
        content_type: str | None,
        data: bytes,
    ) -> EntryFile:
        user_id = await self._require_user_id()

        if not _is_pdf(filename, content_type):
            raise FileServiceError("Only PDF files are allowed")
        if len(data) > self._max_upload_bytes:
            limit_mb = self._max_upload_bytes / (1024 * 1024)
            raise FileServiceError(f"File is too large (max {limit_mb:g}MB)")

        result = sanitize_filename(filename)
        if not result.is_valid:
            raise FileServiceError(f"Invalid filename: {result.error}")
        if result.was_modified:
            logger.info("Upload filename sanitized to {}", result.filename)

        await self._require_owned_entry(user_id, entry_id)

        folder = entry_folder(user_id, entry_id)
        try:
            existing = await self._storage.list_objects(folder)
            if existing:
                await self._storage.remove([f"{folder}/{item.name}" for item in existing])
        except (SupabaseError, StorageError) as exc:
            raise FileServiceError(f"Failed to replace existing file: {exc}") from exc

        path = f"{folder}/{result.filename}"
        try:
            await self._storage.upload(path, data, content_type=PDF_CONTENT_TYPE, upsert=True)
        except (SupabaseError, StorageError) as exc:
            raise FileServiceError(f"Upload failed: {exc}") from exc

        try:
            url = await self._storage.create_signed_url(path, self._signed_url_ttl)
        except (SupabaseError, StorageError) as exc:
            raise FileServiceError(f"Failed to create signed URL: {exc}") from exc

        logger.info("Stored attachment for entry {} ({} bytes)", entry_id, len(data))
        return EntryFile(file_name=result.filename, file_url=url)

    async def delete_entry_file(self, entry_id: str) -> None:
        user_id = await self._require_user_id()
        await self._require_owned_entry(user_id, entry_id)

        folder = entry_folder(user_id, entry_id)
        try:
            existing = await self._storage.list_objects(folder)
        except (SupabaseError, StorageError) as exc:
            raise FileServiceError(f"Failed to list files: {exc}") from exc
        if not existing:
            raise FileServiceError("No file to delete")

        try:
            await self._storage.remove([f"{folder}/{item.name}" for item in existing])
        except (SupabaseError, StorageError) as exc:
            raise FileServiceError(f"Delete failed: {exc}") from exc
        logger.info("Removed attachment for entry {}", entry_id)

    async def get_entry_file_url(self, entry_id: str) -> EntryFile | None:
        user_id = await self._require_user_id()
        await self._require_owned_entry(user_id, entry_id)

        folder = entry_folder(user_id, entry_id)
        try:
            existing = await self._storage.list_objects(folder)
        except (SupabaseError, StorageError) as exc:
            logger.warning("Listing files for entry {} failed: {}", entry_id, exc)
            return None
        if not existing:
            return None

        first = existing[0]
        try:
            url = await self._storage.create_signed_url(
                f"{folder}/{first.name}", self._signed_url_ttl
            )
        except (SupabaseError, StorageError) as exc:
            logger.warning("Signing file for entry {} failed: {}", entry_id, exc)
            return None
        return EntryFile(file_name=first.name, file_url=url)

    async def close(self) -> None:
        await self._client.close()

    async def _require_user_id(self) -> str:
        try:
            user = await self._auth_service.get_user()
        except AuthError as exc:
            raise FileServiceError("Unauthorized") from exc
        if user is None:
            raise FileServiceError("Unauthorized")
        return str(user["id"])

    async def _require_owned_entry(self, user_id: str, entry_id: str) -> None:
        try:
            owner = await self._entry_service.get_entry_owner(entry_id)
        except EntryServiceError as exc:
            raise FileServiceError("Entry not found or unauthorized") from exc
        if owner != user_id:
            raise FileServiceError("Entry not found or unauthorized")


def _is_pdf(filename: str, content_type: str | None) -> bool:
    if content_type:
        return content_type.split(";", 1)[0].strip().lower() == PDF_CONTENT_TYPE
    return file_extension(filename).lower() == ".pdf"


__all__ = [
    "EntryFile",
    "EntryFileService",
    "FileServiceError",
    "PDF_CONTENT_TYPE",
    "entry_folder",
]
