from typing import Any, Callable, Coroutine, Dict, Type

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.responses import Response

from src.logger_config import logger


class CustomBaseError(Exception):
    """Base class for every error the booking core returns to its caller"""

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class InvalidRequestError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class InsufficientCapacityError(CustomBaseError):
    def __init__(self, requested: int, available: int) -> None:
        self.requested = requested
        self.available = available
        super().__init__(f"Only {max(available, 0)} seats available", 409)


class PickupOutOfRangeError(CustomBaseError):
    def __init__(self, city_name: str, radius_km: float) -> None:
        super().__init__(
            f"Pickup point must be within {radius_km} km of {city_name} city center", 400
        )


class DuplicateBookingError(CustomBaseError):
    def __init__(self, message: str = "You already have a booking for this journey") -> None:
        super().__init__(message, 409)


class PastJourneyError(CustomBaseError):
    def __init__(self, message: str = "Cannot book past journeys") -> None:
        super().__init__(message, 400)


class JourneyAlreadyDepartedError(CustomBaseError):
    def __init__(self, message: str = "Cannot cancel bookings for past journeys") -> None:
        super().__init__(message, 400)


class ForbiddenError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 403)


class AuthenticationError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 401)


class ConflictError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class RateLimitedError(CustomBaseError):
    def __init__(self) -> None:
        super().__init__("Too Many Requests", 429)


class BookingStorageError(CustomBaseError):
    def __init__(self, message: str = "Booking could not be stored") -> None:
        super().__init__(message, 500)


# Type alias for exception handlers (compatible with Starlette's expected signature)
ExceptionHandler = Callable[[Request, Exception], Coroutine[Any, Any, Response]]


async def custom_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, CustomBaseError) else CustomBaseError(str(exc), 500)
    headers = {"WWW-Authenticate": "Bearer"} if error.status_code == 401 else None
    return JSONResponse(
        status_code=error.status_code, content={"detail": error.message}, headers=headers
    )


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, RequestValidationError) else RequestValidationError([])
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(error.errors())},
    )


async def general_500_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# Exception handler mapping
EXCEPTION_HANDLERS: Dict[Type[Exception], ExceptionHandler] = {
    CustomBaseError: custom_error_handler,
    RequestValidationError: validation_error_handler,
    Exception: general_500_exception_handler,  # Catch-all for unhandled exceptions
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
