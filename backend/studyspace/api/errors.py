"""
Maps booking engine errors onto JSON responses.

Request bodies rejected by pydantic are answered in the same shape as the
engine's own errors: a bad duration is invalid_duration, anything else
invalid_request.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from studyspace.core.exceptions import BookingError, InvalidDuration, InvalidRequest
from studyspace.core.logging import get_logger

logger = get_logger(__name__)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("booking_error", error=exc.error, detail=exc.message)
    else:
        logger.warning("booking_error", error=exc.error, detail=exc.message)

    headers = {"Retry-After": "1"} if exc.retryable else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


def _describe(error: dict) -> str:
    field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    return f"{field}: {error.get('msg')}" if field else str(error.get("msg"))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "; ".join(_describe(e) for e in errors)

    if any("duration" in e.get("loc", ()) for e in errors):
        return await booking_error_handler(request, InvalidDuration(message))
    return await booking_error_handler(request, InvalidRequest(message))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
