"""Convert raised failures into JSON error responses.

The payload always carries ``status`` and ``message``. Outside production it
also echoes the request method, url, caller, error name and details.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from file_assets.config import settings
from file_assets.errors import FileAssetError

logger = logging.getLogger(__name__)


def _error_response(
    request: Request, status_code: int, message: str, name: str, details: dict
) -> JSONResponse:
    user = request.headers.get("x-user-id") or "Unknown User"
    error_payload = {
        "status": status_code,
        "message": message,
        "method": request.method,
        "url": str(request.url.path),
        "user": user,
        "name": name,
        "details": details,
    }
    logger.error(f"Request failed: {error_payload}")

    if settings.is_production:
        body = {"status": status_code, "message": message}
    else:
        body = error_payload
    return JSONResponse(status_code=status_code, content=body)


async def file_asset_error_handler(request: Request, exc: FileAssetError) -> JSONResponse:
    return _error_response(request, exc.status_code, exc.message, type(exc).__name__, exc.details)


async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(request, exc.status_code, str(exc.detail), "HttpError", {})


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return _error_response(request, 422, "Invalid request", "RequestValidationError", {"errors": errors})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error")
    return _error_response(request, 500, str(exc) or "Internal Server Error", "AppError", {})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FileAssetError, file_asset_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
