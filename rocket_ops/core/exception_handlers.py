import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from rocket_ops.core.exceptions import ConcurrentModificationError
from rocket_ops.schemas.response import _rid

log = logging.getLogger("uvicorn")


def _error(status_code: int, code: str, message, **extra) -> JSONResponse:
    body = {
        "success": False,
        "error": {"code": code, "message": message, **extra},
        "request_id": _rid(),
    }
    return JSONResponse(status_code=status_code, content=body)


def http_exception_handler(request: Request, exc: HTTPException):
    """Handles HTTPException raised by the routes (404, 400, ...)."""
    return _error(exc.status_code, "http_error", exc.detail)


def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Pydantic validation errors on request bodies and parameters (422)."""
    return _error(422, "validation_error", "Invalid input data", details=exc.errors())


def conflict_exception_handler(request: Request, exc: ConcurrentModificationError):
    """A collection kept changing during the write; the client may retry."""
    log.warning(f"Write conflict on {request.url.path}: {exc}")
    return _error(409, "conflict", str(exc))


def generic_exception_handler(request: Request, exc: Exception):
    """Handles all unhandled exceptions (500 Internal Server Error)."""
    log.exception(f"Unhandled exception on path: {request.url.path}")
    return _error(500, "server_error", "Internal Server Error")


def setup_exception_handlers(app: FastAPI):
    """Registers all custom exception handlers with the FastAPI application."""
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ConcurrentModificationError, conflict_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
    return app
