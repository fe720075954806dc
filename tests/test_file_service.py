import pytest

from journal_app.core.config import AppConfig
from journal_app.services.entry_service import EntryServiceError
from journal_app.services.file_service import EntryFileService, FileServiceError
from journal_app.services.storage_service import StoredObject
from journal_app.services.supabase_client import SupabaseClient, SupabaseError

CONFIG = AppConfig(supabase_url="https://proj.supabase.co", supabase_anon_key="anon-key")
PDF = b"%PDF-1.7 test"


class FakeAuthService:
    def __init__(self, user: dict | None) -> None:
        self._user = user

    async def get_user(self) -> dict | None:
        return self._user


class FakeEntryService:
    def __init__(self, owner: str | None = "user-1", exc: Exception | None = None) -> None:
        self._owner = owner
        self._exc = exc

    async def get_entry_owner(self, entry_id: str) -> str | None:
        if self._exc:
            raise self._exc
        return self._owner


class FakeStorage:
    def __init__(self, existing: list[str] | None = None) -> None:
        self.existing = existing or []
        self.removed: list[list[str]] = []
        self.uploaded: list[tuple[str, bytes, str, bool]] = []
        self.signed: list[tuple[str, int]] = []
        self.list_error: Exception | None = None
        self.upload_error: Exception | None = None
        self.sign_error: Exception | None = None
        self.listed: list[str] = []

    async def list_objects(self, folder: str) -> list[StoredObject]:
        self.listed.append(folder)
        if self.list_error:
            raise self.list_error
        return [StoredObject(name=name, id=f"id-{name}") for name in self.existing]

    async def remove(self, paths: list[str]) -> None:
        self.removed.append(paths)

    async def upload(self, path: str, data: bytes, content_type: str, upsert: bool) -> str:
        if self.upload_error:
            raise self.upload_error
        self.uploaded.append((path, data, content_type, upsert))
        return f"entry-files/{path}"

    async def create_signed_url(self, path: str, expires_in: int) -> str:
        if self.sign_error:
            raise self.sign_error
        self.signed.append((path, expires_in))
        return f"https://storage.test/signed/{path}"


def _service(
    user: dict | None = None,
    entries: FakeEntryService | None = None,
    storage: FakeStorage | None = None,
    config: AppConfig = CONFIG,
) -> EntryFileService:
    return EntryFileService(
        client=SupabaseClient(access_token="tok", config=config),
        auth_service=FakeAuthService(user),
        entry_service=entries or FakeEntryService(),
        storage_service=storage or FakeStorage(),
    )


@pytest.mark.asyncio
async def test_upload_requires_authenticated_user() -> None:
    service = _service(user=None)

    with pytest.raises(FileServiceError, match="Unauthorized"):
        await service.upload_entry_file("entry-1", "test.pdf", "application/pdf", PDF)


@pytest.mark.asyncio
async def test_upload_rejects_non_pdf() -> None:
    service = _service(user={"id": "user-1"})

    with pytest.raises(FileServiceError, match="Only PDF files are allowed"):
        await service.upload_entry_file("entry-1", "test.txt", "text/plain", b"hello")


@pytest.mark.asyncio
async def test_upload_rejects_oversized_file() -> None:
    service = _service(user={"id": "user-1"})

    with pytest.raises(FileServiceError, match=r"File is too large \(max 2MB\)"):
        await service.upload_entry_file(
            "entry-1", "large.pdf", "application/pdf", b"a" * (3 * 1024 * 1024)
        )


@pytest.mark.asyncio
async def test_upload_rejects_reserved_filename() -> None:
    storage = FakeStorage()
    service = _service(user={"id": "user-1"}, storage=storage)

    with pytest.raises(FileServiceError, match="reserved by Windows"):
        await service.upload_entry_file("entry-1", "CON.pdf", "application/pdf", PDF)
    assert storage.uploaded == []


@pytest.mark.asyncio
async def test_upload_rejects_foreign_entry() -> None:
    service = _service(user={"id": "user-1"}, entries=FakeEntryService(owner="user-2"))

    with pytest.raises(FileServiceError, match="Entry not found or unauthorized"):
        await service.upload_entry_file("entry-1", "test.pdf", "application/pdf", PDF)


@pytest.mark.asyncio
async def test_upload_treats_lookup_failure_as_missing_entry() -> None:
    service = _service(
        user={"id": "user-1"},
        entries=FakeEntryService(exc=EntryServiceError("db down")),
    )

    with pytest.raises(FileServiceError, match="Entry not found or unauthorized"):
        await service.upload_entry_file("entry-1", "test.pdf", "application/pdf", PDF)


@pytest.mark.asyncio
async def test_upload_stores_sanitized_name_and_returns_signed_url() -> None:
    storage = FakeStorage()
    service = _service(user={"id": "user-1"}, storage=storage)

    result = await service.upload_entry_file(
        "entry-1", "My Report (Final).pdf", "application/pdf", PDF
    )

    assert storage.listed == ["user-1/entry-1"]
    assert storage.uploaded == [
        ("user-1/entry-1/My_Report_Final_.pdf", PDF, "application/pdf", True)
    ]
    assert storage.signed == [("user-1/entry-1/My_Report_Final_.pdf", 3600)]
    assert result.to_payload() == {
        "fileName": "My_Report_Final_.pdf",
        "fileUrl": "https://storage.test/signed/user-1/entry-1/My_Report_Final_.pdf",
    }


@pytest.mark.asyncio
async def test_upload_replaces_existing_file() -> None:
    storage = FakeStorage(existing=["old.pdf"])
    service = _service(user={"id": "user-1"}, storage=storage)

    await service.upload_entry_file("entry-1", "new.pdf", "application/pdf", PDF)

    assert storage.removed == [["user-1/entry-1/old.pdf"]]
    assert storage.uploaded[0][0] == "user-1/entry-1/new.pdf"


@pytest.mark.asyncio
async def test_upload_failure_reports_platform_message() -> None:
    storage = FakeStorage()
    storage.upload_error = SupabaseError("Storage error", status_code=400)
    service = _service(user={"id": "user-1"}, storage=storage)

    with pytest.raises(FileServiceError, match="Upload failed: Storage error"):
        await service.upload_entry_file("entry-1", "test.pdf", "application/pdf", PDF)


@pytest.mark.asyncio
async def test_upload_accepts_pdf_extension_without_content_type() -> None:
    storage = FakeStorage()
    service = _service(user={"id": "user-1"}, storage=storage)

    result = await service.upload_entry_file("entry-1", "scan.PDF", None, PDF)

    assert result.file_name == "scan.PDF"


@pytest.mark.asyncio
async def test_upload_limit_follows_config() -> None:
    config = AppConfig(
        supabase_url="https://proj.supabase.co",
        supabase_anon_key="anon-key",
        max_upload_bytes=4,
    )
    service = _service(user={"id": "user-1"}, config=config)

    with pytest.raises(FileServiceError, match="too large"):
        await service.upload_entry_file("entry-1", "a.pdf", "application/pdf", b"12345")


@pytest.mark.asyncio
async def test_delete_requires_authenticated_user() -> None:
    service = _service(user=None)

    with pytest.raises(FileServiceError, match="Unauthorized"):
        await service.delete_entry_file("entry-1")


@pytest.mark.asyncio
async def test_delete_rejects_foreign_entry() -> None:
    service = _service(user={"id": "user-1"}, entries=FakeEntryService(owner="user-2"))

    with pytest.raises(FileServiceError, match="Entry not found or unauthorized"):
        await service.delete_entry_file("entry-1")


@pytest.mark.asyncio
async def test_delete_without_file() -> None:
    service = _service(user={"id": "user-1"}, storage=FakeStorage())

    with pytest.raises(FileServiceError, match="No file to delete"):
        await service.delete_entry_file("entry-1")


@pytest.mark.asyncio
async def test_delete_removes_all_objects() -> None:
    storage = FakeStorage(existing=["test.pdf"])
    service = _service(user={"id": "user-1"}, storage=storage)

    await service.delete_entry_file("entry-1")

    assert storage.listed == ["user-1/entry-1"]
    assert storage.removed == [["user-1/entry-1/test.pdf"]]


@pytest.mark.asyncio
async def test_get_file_url_requires_authenticated_user() -> None:
    service = _service(user=None)

    with pytest.raises(FileServiceError, match="Unauthorized"):
        await service.get_entry_file_url("entry-1")


@pytest.mark.asyncio
async def test_get_file_url_rejects_foreign_entry() -> None:
    service = _service(user={"id": "user-1"}, entries=FakeEntryService(owner=None))

    with pytest.raises(FileServiceError, match="Entry not found or unauthorized"):
        await service.get_entry_file_url("entry-1")


@pytest.mark.asyncio
async def test_get_file_url_none_without_file() -> None:
    service = _service(user={"id": "user-1"}, storage=FakeStorage())

    assert await service.get_entry_file_url("entry-1") is None


@pytest.mark.asyncio
async def test_get_file_url_returns_first_file() -> None:
    storage = FakeStorage(existing=["a.pdf", "b.pdf"])
    service = _service(user={"id": "user-1"}, storage=storage)

    result = await service.get_entry_file_url("entry-1")

    assert result is not None
    assert result.file_name == "a.pdf"
    assert storage.signed == [("user-1/entry-1/a.pdf", 3600)]


@pytest.mark.asyncio
async def test_get_file_url_listing_or_signing_failure_yields_none() -> None:
    storage = FakeStorage(existing=["a.pdf"])
    storage.list_error = SupabaseError("list failed", status_code=500)
    service = _service(user={"id": "user-1"}, storage=storage)
    assert await service.get_entry_file_url("entry-1") is None

    storage = FakeStorage(existing=["a.pdf"])
    storage.sign_error = SupabaseError("sign failed", status_code=500)
    service = _service(user={"id": "user-1"}, storage=storage)
    assert await service.get_entry_file_url("entry-1") is None
