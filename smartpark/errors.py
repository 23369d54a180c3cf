# smartpark/errors.py
"""
Domain error kinds raised by the booking core, and the FastAPI handlers
that render them as JSON.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from smartpark.utils.logger import get_logger

logger = get_logger(__name__)


class ParkingError(Exception):
    """Base class for every error the core reports to its callers."""

    code = "error"
    status_code = 400
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ParkingError):
    code = "not_found"
    status_code = 404


class LocationNotFound(NotFound):
    pass


class SlotNotFound(NotFound):
    pass


class BookingNotFound(NotFound):
    pass


class ClassMismatch(ParkingError):
    code = "class_mismatch"


class InvalidTimeRange(ParkingError):
    code = "invalid_time_range"


class InvalidField(ParkingError):
    """Unknown field name or a value outside its enumeration."""

    code = "invalid_field"


class SlotUnavailable(ParkingError):
    code = "slot_unavailable"
    status_code = 409


class Forbidden(ParkingError):
    code = "forbidden"
    status_code = 403


class InvalidStateTransition(ParkingError):
    code = "invalid_state_transition"
    status_code = 409


class CapacityViolation(ParkingError):
    code = "capacity_violation"
    status_code = 409


class ResourceInUse(ParkingError):
    code = "resource_in_use"
    status_code = 409


class AlreadyExists(ParkingError):
    code = "already_exists"
    status_code = 409


class BookingLimitExceeded(ParkingError):
    code = "booking_limit_exceeded"
    status_code = 409


class Conflict(ParkingError):
    """A concurrent write on the same record won; the request can be re-issued."""

    code = "conflict"
    status_code = 409
    retryable = True


class StoreUnavailable(ParkingError):
    """The store timed out or dropped the connection; nothing was written."""

    code = "store_unavailable"
    status_code = 503
    retryable = True


RETRY_AFTER_SECONDS = 1


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ParkingError)
    async def parking_error_handler(request: Request, exc: ParkingError):
        if exc.retryable:
            logger.warning(f"Retryable {exc.code} on {request.method} {request.url.path}: {exc.message}")
        else:
            logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        headers = {"Retry-After": str(RETRY_AFTER_SECONDS)} if exc.retryable else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "code": exc.code, "retryable": exc.retryable},
            headers=headers,
        )
