"""Request context middleware — assigns a unique ID to every request.

Concurrent requests interleave their log lines.  Every line written while
a request is in flight (including the ledger stores' "Issued proof ..." and
"Rejected enrollment ..." lines) carries that request's ID, so one call can
be followed from the HTTP summary line down to the store decision.

The ID lives in ``request_id_var`` (credchain.core.logging).  Sync
endpoints run in a worker thread and Starlette copies the context into
it, so the store code sees the same ID without it being passed around.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from credchain.core.logging import request_id_var

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign a request ID, time the request, log one summary line.

    The client's X-Request-ID is reused when present, otherwise a UUID4 is
    generated; either way it is echoed on the response.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request_id_var.set(req_id)

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        logger.info(
            "%s %s → %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        response.headers["X-Request-ID"] = req_id
        return response
