"""Block-height clock.

The ledger measures time in blocks, not seconds.  Issuance records the
current height, expiry is "height + N blocks", and a course's
cancellation window closes at a block.  Nothing is ever scheduled:
validity is recomputed from ``clock.height()`` on every query, so a
record can stop being valid without any write.

Two clocks:
  ManualBlockClock — height moves only when told to.  Tests and the
                     dev service use it; /v1/chain/advance drives it.
  WallBlockClock   — height derived from wall time and a fixed block
                     interval, for deployments without an external chain.
"""

from __future__ import annotations

import threading
import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class BlockClock(Protocol):
    def height(self) -> int: ...


class ManualBlockClock:
    def __init__(self, start_height: int = 0) -> None:
        if start_height < 0:
            raise ValueError("start_height must be non-negative")
        self._height = start_height
        self._lock = threading.Lock()

    def height(self) -> int:
        with self._lock:
            return self._height

    def advance(self, blocks: int = 1) -> int:
        if blocks <= 0:
            raise ValueError("blocks must be positive")
        with self._lock:
            self._height += blocks
            return self._height

    def set(self, height: int) -> None:
        with self._lock:
            if height < self._height:
                raise ValueError(
                    f"block height cannot go backwards ({height} < {self._height})"
                )
            self._height = height


class WallBlockClock:
    def __init__(
        self,
        genesis_ts: float,
        block_seconds: int,
        start_height: int = 0,
    ) -> None:
        if block_seconds <= 0:
            raise ValueError("block_seconds must be positive")
        self._genesis_ts = genesis_ts
        self._block_seconds = block_seconds
        self._start_height = start_height

    def height(self) -> int:
        elapsed = time.time() - self._genesis_ts
        return self._start_height + max(0, int(elapsed // self._block_seconds))


def expiry_height(height: int, expires_in_blocks: int | None) -> int | None:
    """Absolute expiry for a record issued at ``height``; None means never."""
    if expires_in_blocks is None:
        return None
    return height + expires_in_blocks


def is_expired(expires_at: int | None, height: int) -> bool:
    # Boundary is inclusive on the expired side.
    return expires_at is not None and height >= expires_at
