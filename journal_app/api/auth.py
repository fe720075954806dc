from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel

from journal_app.api.body import parse_body, read_json_object
from journal_app.core.security import (
    SessionTokens,
    clear_session_cookies,
    read_access_token,
    read_refresh_token,
    write_session_cookies,
)
from journal_app.services import AuthError, AuthService

router = APIRouter(prefix="/api/auth", tags=["auth"])


class Credentials(BaseModel):
    email: str | None = None
    password: str | None = None


_CREDENTIALS_REQUIRED = "Email and password are required"


async def _require_credentials(request: Request) -> tuple[str, str]:
    payload = await parse_body(request, Credentials, _CREDENTIALS_REQUIRED)
    email = (payload.email or "").strip()
    password = payload.password or ""
    if not email or not password:
        raise HTTPException(status_code=400, detail=_CREDENTIALS_REQUIRED)
    return email, password


def _session_payload(session: SessionTokens) -> dict:
    return {
        "user": session.user,
        "session": {
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
            "expires_at": session.expires_at,
        },
    }


@router.post("/signup", status_code=201)
async def signup(request: Request) -> dict:
    email, password = await _require_credentials(request)
    service = AuthService()
    try:
        data = await service.sign_up(email, password)
    except AuthError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        await service.close()
    return {"data": data}


@router.post("/login")
async def login(request: Request, response: Response) -> dict:
    email, password = await _require_credentials(request)
    service = AuthService()
    try:
        session = await service.sign_in(email, password)
    except AuthError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    finally:
        await service.close()
    write_session_cookies(response, session)
    return {"data": _session_payload(session)}


@router.post("/refresh")
async def refresh(request: Request, response: Response) -> dict:
    body_token = (await read_json_object(request)).get("refresh_token")
    refresh_token = body_token if isinstance(body_token, str) and body_token else None
    refresh_token = refresh_token or read_refresh_token(request)
    if not refresh_token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    service = AuthService()
    try:
        session = await service.refresh(refresh_token)
    except AuthError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    finally:
        await service.close()
    write_session_cookies(response, session)
    return {"data": _session_payload(session)}


@router.post("/logout")
async def logout(request: Request, response: Response) -> dict:
    service = AuthService(access_token=read_access_token(request))
    try:
        await service.sign_out()
    except AuthError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        await service.close()
    clear_session_cookies(response)
    return {"message": "Signed out successfully"}


@router.get("/user")
async def current_user(request: Request) -> dict:
    service = AuthService(access_token=read_access_token(request))
    try:
        user = await service.get_user()
    except AuthError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        await service.close()
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return {"user": user}
