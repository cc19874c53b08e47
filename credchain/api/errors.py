"""Translate ledger rejections into HTTP responses.

Stores raise LedgerError subclasses; routes let them propagate and this
handler answers with the status for the error KIND plus the store's
numeric code, so a client can tell "course is full" (409, code 108)
from "already enrolled" (409, code 109).
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from credchain.core.errors import ErrorKind, LedgerError

logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_INPUT: 422,
    ErrorKind.CAPACITY_EXCEEDED: status.HTTP_409_CONFLICT,
    ErrorKind.PREREQUISITE_NOT_MET: status.HTTP_412_PRECONDITION_FAILED,
    ErrorKind.INVALID_STATE: status.HTTP_409_CONFLICT,
}


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = STATUS_BY_KIND[exc.kind]
    logger.info(
        "%s %s rejected kind=%s code=%d",
        request.method,
        request.url.path,
        exc.kind.value,
        exc.code,
        extra={"error_code": exc.code},
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.detail, "error": exc.kind.value, "code": exc.code},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LedgerError, ledger_error_handler)  # type: ignore[arg-type]
