"""Response envelope shared by every endpoint: ``{success, message, data}``."""
from typing import Any, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
import structlog

logger = structlog.get_logger(__name__)


def ok(data: Any = None, message: str = "Success") -> dict:
    return {"success": True, "message": message, "data": {} if data is None else data}


def fail(message: str, data: Optional[Any] = None) -> dict:
    return {"success": False, "message": message, "data": data}


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, status=exc.status_code, detail=str(exc.detail))
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    data = None if isinstance(exc.detail, str) else jsonable_encoder(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=fail(message, data), headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc) -> JSONResponse:
    logger.info("request_invalid", path=request.url.path, errors=len(exc.errors()))
    errors = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]
    return JSONResponse(status_code=422, content=fail("Validation failed", errors))
