"""
The uniform JSON envelope returned by every endpoint::

    {"success": true,  "data": ..., "message": ...}
    {"success": true,  "data": [...], "meta": {...}}      # lists
    {"success": false, "error": "...", "message": ...}
"""
from typing import Any

from fastapi.responses import JSONResponse

from social_api.schemas import PaginatedResponse


def success(data: Any = None, message: str | None = None) -> dict:
    body: dict = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return body


def paginated(result: PaginatedResponse) -> dict:
    return {"success": True, **result.model_dump(by_alias=True)}


def failure(status_code: int, error: str, message: str | None = None) -> JSONResponse:
    body: dict = {"success": False, "error": error}
    if message is not None:
        body["message"] = message
    return JSONResponse(status_code=status_code, content=body)
