"""Block height endpoints.

- GET  /v1/chain/height   — current block height
- POST /v1/chain/advance  — move a manual clock forward (platform admin)

Advancing only exists for the manual clock.  With CHAIN_CLOCK=wall the
height follows wall time and the endpoint answers 409.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from credchain.api.dependencies import require_role, require_user
from credchain.models.principal import Principal
from credchain.services.ledger import ledger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/chain", tags=["chain"])


class HeightOut(BaseModel):
    height: int


class AdvanceIn(BaseModel):
    blocks: int = Field(default=1, gt=0)


@router.get("/height", response_model=HeightOut)
def get_height(
    _principal: Annotated[Principal, Depends(require_user)],
) -> HeightOut:
    return HeightOut(height=ledger.clock.height())


@router.post("/advance", response_model=HeightOut)
def advance_height(
    body: AdvanceIn,
    principal: Annotated[Principal, Depends(require_role("admin"))],
) -> HeightOut:
    try:
        height = ledger.advance(body.blocks)
    except TypeError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        ) from None
    logger.info(
        "Chain advanced by=%d to height=%d admin=%s",
        body.blocks,
        height,
        principal.user_id,
    )
    return HeightOut(height=height)
