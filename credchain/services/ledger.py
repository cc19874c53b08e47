"""Ledger: the three stores wired together over one lock and one clock.

    ProofStore  ◀── verify_ownership / is_valid ──  CredentialStore
    CredentialStore  ◀── verify / is_registered_institution ──  EnrollmentStore

WHY ONE RE-ENTRANT LOCK
-------------------------
Every public store call is one indivisible transaction.  FastAPI runs
sync endpoints in a thread pool, so two enrollments for the last seat
CAN arrive at the same time.  All three stores share a single RLock:

  - two callers never interleave inside the ledger
  - an enrollment that calls into the credential store (which may call
    into the proof store) re-enters the lock it already holds instead of
    waiting on itself
  - with one lock there is no acquisition order to get wrong, so no
    deadlock

Stores validate everything before their first write, so a call that
fails on its last check leaves nothing behind.
"""

from __future__ import annotations

import logging
import threading
import time

from credchain.core.chain import BlockClock, ManualBlockClock, WallBlockClock
from credchain.core.config import SETTINGS, Settings
from credchain.core.metrics import LEDGER_RECORDS
from credchain.services.credential_store import CredentialStore
from credchain.services.enrollment_store import EnrollmentStore
from credchain.services.proof_store import ProofStore

logger = logging.getLogger(__name__)

_RECORD_GAUGES = (
    ("proof", "proof"),
    ("credential", "credential"),
    ("enrollment", "course"),
    ("enrollment", "enrollment"),
)


class Ledger:
    def __init__(
        self,
        *,
        admin: str,
        registry: str,
        clock: BlockClock,
    ) -> None:
        self.admin = admin
        self.registry = registry
        self.clock = clock
        self.lock = threading.RLock()
        self._wire()

    def _wire(self) -> None:
        self.proofs = ProofStore(admin=self.admin, clock=self.clock, lock=self.lock)
        self.credentials = CredentialStore(
            registry=self.registry,
            proofs=self.proofs,
            clock=self.clock,
            lock=self.lock,
        )
        self.enrollments = EnrollmentStore(
            registry=self.registry,
            institutions=self.credentials,
            credentials=self.credentials,
            clock=self.clock,
            lock=self.lock,
        )

    def reset(self, clock: BlockClock | None = None) -> None:
        """Drop every record and rebuild empty stores in place."""
        with self.lock:
            if clock is not None:
                self.clock = clock
            self._wire()
            for store, record in _RECORD_GAUGES:
                LEDGER_RECORDS.labels(store=store, record=record).set(0)
        logger.info("Ledger reset at height=%d", self.clock.height())

    def advance(self, blocks: int = 1) -> int:
        """Move a manual clock forward between transactions, never inside one."""
        with self.lock:
            clock = self.clock
            if not isinstance(clock, ManualBlockClock):
                raise TypeError("block height follows wall time")
            return clock.advance(blocks)

    def stats(self) -> dict[str, int]:
        with self.lock:
            return {
                "proofs": len(self.proofs),
                "credentials": len(self.credentials),
                "courses": self.enrollments.course_count(),
                "enrollments": self.enrollments.enrollment_count(),
            }


def build_clock(settings: Settings) -> BlockClock:
    if settings.chain_clock == "wall":
        return WallBlockClock(
            genesis_ts=time.time(),
            block_seconds=settings.block_seconds,
            start_height=settings.start_height,
        )
    return ManualBlockClock(settings.start_height)


def build_ledger(settings: Settings = SETTINGS, clock: BlockClock | None = None) -> Ledger:
    return Ledger(
        admin=settings.ledger_admin,
        registry=settings.institution_registry,
        clock=clock if clock is not None else build_clock(settings),
    )


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

ledger = build_ledger()
