"""Standard error handler — consistent error responses across all routes."""

from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..engine.errors import DuplicateIncidentError, InvalidTransitionError, ValidationError
from ..utils.logging import get_logger

logger = get_logger("middleware.error_handler")


def _error_response(
    request: Request,
    status_code: int,
    detail: Any,
    **extra: Any,
) -> JSONResponse:
    content = {
        "error": True,
        "status_code": status_code,
        "detail": detail,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": getattr(request.state, "request_id", None),
    }
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


def register_error_handlers(app: FastAPI) -> None:
    """Register standard error handlers on the app."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(request, exc.status_code, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _error_response(request, 422, "Validation error", errors=exc.errors())

    @app.exception_handler(ValidationError)
    async def incident_validation_handler(request: Request, exc: ValidationError):
        field: Optional[str] = exc.field
        return _error_response(request, 422, str(exc), field=field)

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
        return _error_response(request, 409, str(exc), allowed=exc.allowed)

    @app.exception_handler(DuplicateIncidentError)
    async def duplicate_incident_handler(request: Request, exc: DuplicateIncidentError):
        return _error_response(request, 409, str(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled_exception",
            error=str(exc),
            request_id=getattr(request.state, "request_id", None),
            path=str(request.url.path),
            exc_info=True,
        )
        return _error_response(request, 500, "Internal server error")
