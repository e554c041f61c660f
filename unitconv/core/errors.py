"""Error taxonomy and HTTP exception handlers.

Every failure a user can trigger is a ``UnitConvError`` subclass. The REPL
prints ``str(exc)`` and keeps going; the HTTP API maps each kind onto a status
code through ``conversion_error_handler``.
"""

import logging

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger("unitconv.errors")


class UnitConvError(Exception):
    kind = "error"
    status_code = status.HTTP_400_BAD_REQUEST


class ParseError(UnitConvError):
    kind = "parse_error"


class UnknownUnit(UnitConvError):
    kind = "unknown_unit"

    def __init__(self, token: str):
        super().__init__(f"Invalid unit: {token}")
        self.token = token


class IncompatibleUnits(UnitConvError):
    kind = "incompatible_units"

    def __init__(self, from_unit: object, to_unit: object):
        super().__init__(f"Cannot convert from {from_unit} to {to_unit}")
        self.from_unit = from_unit
        self.to_unit = to_unit


class UnknownCurrency(UnitConvError):
    kind = "unknown_currency"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, code: str):
        super().__init__(f"No rate found for currency {code}")
        self.code = code


class FetchError(UnitConvError):
    kind = "fetch_error"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class PersistenceError(UnitConvError):
    kind = "persistence_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def conversion_error_handler(request: Request, exc: UnitConvError):  # type: ignore
    if exc.status_code >= 500:
        logger.warning("%s on %s: %s", exc.kind, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind, "detail": str(exc)},
    )


def not_found_handler(request: Request, exc):  # type: ignore
    if exc.status_code != status.HTTP_404_NOT_FOUND:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "http_error", "detail": exc.detail},
        )
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "error": "not_found",
            "detail": f"No route for {request.method} {request.url.path}",
        },
    )


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    return JSONResponse(
        status_code=422,
        content={
            "error": "validation_error",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "detail": "An unexpected error occurred.",
        },
    )
