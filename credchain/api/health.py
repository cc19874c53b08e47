"""Health and readiness endpoints.

  /health (liveness):  "Is this process alive?"  Also reports the current
                       block height and how many records each store holds,
                       which is the quickest sanity check after a deploy.
  /ready (readiness):  "Can this instance take traffic?"  The ledger is
                       in-process, so once the app has started it is ready.
"""

from __future__ import annotations

from fastapi import APIRouter, Response

from credchain.services.ledger import ledger

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict:
    return {
        "status": "ok",
        "block_height": ledger.clock.height(),
        "records": ledger.stats(),
    }


@router.get("/ready")
def ready() -> Response:
    return Response(status_code=200)
