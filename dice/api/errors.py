"""HTTP mapping for client errors."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from ..core.exceptions import (
    ContractUnavailable,
    DecodeError,
    DiceError,
    NetworkFailure,
    TransportError,
    TransportNotConnected,
    TransportRejected,
    ValidationError,
)

logger = logging.getLogger(__name__)

# most specific first
STATUS_CODES: list[tuple[type[DiceError], int]] = [
    (ValidationError, 400),
    (TransportRejected, 403),
    (ContractUnavailable, 404),
    (TransportNotConnected, 409),
    (NetworkFailure, 502),
    (DecodeError, 502),
    (TransportError, 502),
]


def status_for(error: DiceError) -> int:
    for error_type, status in STATUS_CODES:
        if isinstance(error, error_type):
            return status
    return 500


async def dice_error_handler(request: Request, exc: DiceError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status,
        content={"error": type(exc).__name__, "detail": exc.message},
    )
