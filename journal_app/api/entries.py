from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from journal_app.api.body import parse_body
from journal_app.core.security import read_access_token
from journal_app.services import (
    EntryFileService,
    EntryInput,
    EntryService,
    EntryServiceError,
    FileServiceError,
)

router = APIRouter(prefix="/api/entries", tags=["entries"])


class EntryPayload(BaseModel):
    title: str | None = None
    content: str | None = None


_ENTRY_REQUIRED = "Title and content are required"


async def _require_entry_input(request: Request) -> EntryInput:
    payload = await parse_body(request, EntryPayload, _ENTRY_REQUIRED)
    if not payload.title or not payload.content:
        raise HTTPException(status_code=400, detail=_ENTRY_REQUIRED)
    return EntryInput(title=payload.title, content=payload.content)


@router.get("")
async def list_entries(request: Request) -> dict:
    service = EntryService(access_token=read_access_token(request))
    try:
        entries = await service.list_entries()
    except EntryServiceError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        await service.close()
    return {"entries": [entry.model_dump() for entry in entries]}


@router.post("", status_code=201)
async def create_entry(request: Request) -> dict:
    entry_input = await _require_entry_input(request)
    service = EntryService(access_token=read_access_token(request))
    try:
        entry = await service.create_entry(entry_input)
    except EntryServiceError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        await service.close()
    return {"entry": entry.model_dump()}


@router.get("/{entry_id}")
async def get_entry(request: Request, entry_id: str) -> dict:
    service = EntryService(access_token=read_access_token(request))
    try:
        entry = await service.get_entry(entry_id)
    except EntryServiceError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        await service.close()
    return {"entry": entry.model_dump()}


@router.put("/{entry_id}")
async def update_entry(request: Request, entry_id: str) -> dict:
    entry_input = await _require_entry_input(request)
    service = EntryService(access_token=read_access_token(request))
    try:
        entry = await service.update_entry(entry_id, entry_input)
    except EntryServiceError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        await service.close()
    return {"entry": entry.model_dump()}


@router.delete("/{entry_id}")
async def delete_entry(request: Request, entry_id: str) -> dict:
    service = EntryService(access_token=read_access_token(request))
    try:
        await service.delete_entry(entry_id)
    except EntryServiceError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        await service.close()
    return {"success": True}


@router.get("/{entry_id}/file")
async def get_entry_file(request: Request, entry_id: str) -> dict:
    service = EntryFileService(access_token=read_access_token(request))
    try:
        entry_file = await service.get_entry_file_url(entry_id)
    except FileServiceError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        await service.close()
    return {"file": entry_file.to_payload() if entry_file else None}


@router.get("/{entry_id}/files")
async def list_entry_files(request: Request, entry_id: str) -> dict:
    """Flat variant of ``/file`` returning ``fileName``/``fileUrl`` at the top level."""
    service = EntryFileService(access_token=read_access_token(request))
    try:
        entry_file = await service.get_entry_file_url(entry_id)
    except FileServiceError as exc:
        status_code = 401 if str(exc) == "Unauthorized" else 400
        raise HTTPException(status_code=status_code, detail=str(exc)) from exc
    finally:
        await service.close()
    if entry_file is None:
        return {"fileName": None, "fileUrl": None}
    return entry_file.to_payload()
