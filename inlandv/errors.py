"""
inlandv/errors.py

App-wide error rendering. Every error response carries `success: false`:

- HTTPException          -> {success, message}
- request validation     -> 400 {success, errors: [{field, message}]}
- anything unhandled     -> 500 {success, message} (+ error/stack in dev)
"""

from __future__ import annotations

import traceback
from typing import Any, Dict, Iterable, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from inlandv.config import IS_DEV


def server_error(action: str, error: Exception) -> HTTPException:
    """500 for a failed database operation; the driver message is only exposed in dev."""
    print(f"[ERROR] Failed to {action}: {error}")
    if IS_DEV:
        return HTTPException(status_code=500, detail={"message": f"Failed to {action}", "error": str(error)})
    return HTTPException(status_code=500, detail=f"Failed to {action}")


def field_errors(errors: Iterable[Dict[str, Any]], prefix: Optional[str] = None) -> List[Dict[str, str]]:
    """pydantic error dicts -> [{field, message}], fields as dotted paths (e.g. "data.stats.0")."""
    result = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        if prefix:
            loc.insert(0, prefix)
        result.append({"field": ".".join(loc) or "request", "message": err.get("msg", "Invalid value")})
    return result


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail: Any = exc.detail
    if exc.status_code == 404 and detail == "Not Found":
        detail = "Route not found"
    if isinstance(detail, dict):
        body = {"success": False, **detail}
    elif isinstance(detail, list):
        body = {"success": False, "errors": detail}
    else:
        body = {"success": False, "message": detail}
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "errors": field_errors(exc.errors())})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    print(f"[ERROR] Unhandled error on {request.method} {request.url.path}: {exc}")
    body: Dict[str, Any] = {"success": False, "message": "Internal server error"}
    if IS_DEV:
        body["message"] = str(exc) or "Internal server error"
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=500, content=body)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
