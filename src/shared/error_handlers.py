"""Maps the error taxonomy onto HTTP responses.

Integrity failures get a fixed body so nothing about the mismatch reaches the
caller. Gateway failures show the customer-facing retry message.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from shared.errors import (
    ForbiddenError,
    GatewayError,
    IntegrityError,
    InvalidTransitionError,
    NotFoundError,
)

logger = structlog.get_logger(__name__)

PAYMENT_DECLINED_MESSAGE = "Payment declined, please retry"
INTEGRITY_MESSAGE = "Payment could not be verified"


async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": exc.messages})


async def _invalid_transition(request: Request, exc: InvalidTransitionError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"error": exc.messages})


async def _forbidden(request: Request, exc: ForbiddenError) -> JSONResponse:
    return JSONResponse(status_code=403, content={"error": str(exc) or "Forbidden"})


async def _not_found(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": "Not found"})


async def _integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("Integrity failure", path=request.url.path, detail=str(exc))
    return JSONResponse(status_code=400, content={"error": INTEGRITY_MESSAGE})


async def _gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
    logger.error("Gateway error", path=request.url.path, gateway=exc.gateway, detail=str(exc))
    return JSONResponse(status_code=502, content={"error": PAYMENT_DECLINED_MESSAGE})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InvalidTransitionError, _invalid_transition)
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(ForbiddenError, _forbidden)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(ObjectNotFoundError, _not_found)
    app.add_exception_handler(IntegrityError, _integrity_error)
    app.add_exception_handler(GatewayError, _gateway_error)
