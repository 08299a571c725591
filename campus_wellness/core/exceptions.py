from enum import Enum

from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from campus_wellness.core.request_context import request_id_ctx_var


class BookingErrorCode(str, Enum):
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    SLOT_ALREADY_BOOKED = "slot_already_booked"
    VALIDATION_ERROR = "validation_error"
    PERSISTENCE_ERROR = "persistence_error"


class BookingError(Exception):
    """Business failure of the booking flow, reported to the caller as HTTP 400."""

    def __init__(self, code: BookingErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def _error_payload(code: str, message: str, detail):
    return {
        "error": {
            "code": code,
            "message": message,
            "detail": detail,
        },
        "detail": detail,
        "request_id": request_id_ctx_var.get(),
    }


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_payload(
            code=f"http_{exc.status_code}",
            message=str(exc.detail),
            detail=exc.detail,
        ),
        headers=exc.headers,
    )


async def validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_payload(
            code="validation_error",
            message="Request validation failed",
            detail=jsonable_encoder(exc.errors()),
        ),
    )


async def booking_exception_handler(_: Request, exc: BookingError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": exc.message,
            "code": exc.code.value,
            "request_id": request_id_ctx_var.get(),
        },
    )
