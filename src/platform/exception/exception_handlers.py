from typing import Any, Callable, Coroutine

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.responses import Response

from src.platform.exception.exceptions import (
    BookingSystemError,
    CustomBaseError,
    PaymentFailureError,
)
from src.platform.logging.loguru_io import Logger

# Type alias for exception handlers (compatible with Starlette's expected signature)
ExceptionHandler = Callable[[Request, Exception], Coroutine[Any, Any, Response]]


def _error_body(error: CustomBaseError) -> dict[str, Any]:
    body: dict[str, Any] = {'detail': error.message}
    if error.error_code:
        body['error_code'] = error.error_code
    return body


async def custom_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, CustomBaseError) else CustomBaseError(str(exc))
    return JSONResponse(status_code=error.status_code, content=_error_body(error))


async def payment_failure_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, PaymentFailureError):
        return await custom_error_handler(request, exc)
    body = _error_body(exc) | {
        'payment_status': exc.payment_status,
        'transaction_id': exc.transaction_id,
    }
    return JSONResponse(status_code=exc.status_code, content=body)


async def system_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Cause stays in the logs, the caller only sees the public message
    cause = exc.__cause__
    Logger.base.error(
        f'💥 [SYSTEM] {request.method} {request.url.path} failed: '
        f'{type(cause).__name__ if cause else type(exc).__name__}: {cause or exc}'
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            'detail': BookingSystemError.PUBLIC_MESSAGE,
            'error_code': BookingSystemError.error_code,
        },
    )


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, RequestValidationError) else RequestValidationError([])
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'detail': error.errors()},
    )


async def general_500_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    Logger.base.error(
        f'💥 [UNHANDLED] {request.method} {request.url.path}: {type(exc).__name__}: {exc}'
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={'detail': BookingSystemError.PUBLIC_MESSAGE},
    )


# Exception handler mapping
EXCEPTION_HANDLERS: dict[type[Exception], ExceptionHandler] = {
    PaymentFailureError: payment_failure_handler,
    BookingSystemError: system_error_handler,
    CustomBaseError: custom_error_handler,
    RequestValidationError: validation_error_handler,
    Exception: general_500_exception_handler,  # Catch-all for unhandled exceptions
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
