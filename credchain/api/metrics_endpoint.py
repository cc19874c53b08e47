"""Prometheus metrics endpoint.

Prometheus pulls GET /metrics every scrape interval and receives plain
text in exposition format, e.g.:

  ledger_operations_total{store="enrollment",operation="enroll",outcome="capacity_exceeded"} 3.0
  http_requests_total{method="POST",endpoint="/v1/proofs",status_code="201"} 41.0

Restrict access to this route in production; counters reveal who is being
rejected and how often.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Expose all Prometheus metrics in text exposition format."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
