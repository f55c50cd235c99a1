import logging

from companion_core.domain.errors import ValidationError
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

log = logging.getLogger(__name__)


def describe_request_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid body"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "invalid body: malformed JSON"
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body") or "body"
    return f"invalid {field}: {first.get('msg', 'malformed value')}"


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    log.warning("Rejected submission on %s: %s", request.url.path, exc.reason)
    return JSONResponse(status_code=400, content={"error": exc.reason})


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    reason = describe_request_error(exc)
    log.warning("Rejected submission on %s: %s", request.url.path, reason)
    return JSONResponse(status_code=400, content={"error": reason})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
