from __future__ import annotations

from fastapi import APIRouter, File, Form, HTTPException, Query, Request, UploadFile

from journal_app.core.config import ConfigManager
from journal_app.core.security import read_access_token
from journal_app.services import EntryFileService, FileServiceError

router = APIRouter(prefix="/api/files", tags=["files"])


@router.post("")
async def upload_file(
    request: Request,
    file: UploadFile | None = File(default=None),
    entry_id: str | None = Form(default=None, alias="entryId"),
) -> dict:
    if file is None or not entry_id:
        raise HTTPException(status_code=400, detail="File and entry ID are required")

    # at most limit + 1 bytes; the service rejects anything over the limit
    limit = ConfigManager.get().config.max_upload_bytes
    contents = await file.read(limit + 1)
    await file.close()
    service = EntryFileService(access_token=read_access_token(request))
    try:
        entry_file = await service.upload_entry_file(
            entry_id,
            filename=file.filename or "",
            content_type=file.content_type,
            data=contents,
        )
    except FileServiceError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        await service.close()
    return entry_file.to_payload()


@router.delete("")
async def delete_file(
    request: Request,
    entry_id: str | None = Query(default=None, alias="entryId"),
) -> dict:
    if not entry_id:
        raise HTTPException(status_code=400, detail="Entry ID is required")

    service = EntryFileService(access_token=read_access_token(request))
    try:
        await service.delete_entry_file(entry_id)
    except FileServiceError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        await service.close()
    return {"success": True}
