from __future__ import annotations

from typing import Any, TypeVar

from fastapi import HTTPException, Request
from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


async def read_json_object(request: Request) -> dict[str, Any]:
    """JSON object from the request body; an empty or unparsable body reads as ``{}``."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        data = await request.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


async def parse_body(request: Request, model: type[ModelT], message: str) -> ModelT:
    """Validate the JSON body against ``model``; any shape problem is a 400 with ``message``."""
    data = await read_json_object(request)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=message) from exc


__all__ = ["parse_body", "read_json_object"]
