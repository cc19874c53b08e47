"""Proof store: verifier-issued attestations keyed by a monotonic id.

Authorization state lives in the store instance: one admin principal
(changed only through ``transfer_admin``) and the set of verifiers the
admin has registered.  Only registered verifiers issue proofs; the issuing
verifier or the current admin may revoke them.

Tables:
  _proofs       id -> ProofRecord
  _hash_index   proof_hash -> id   (a hash is issued at most once, ever)
  _by_owner     owner -> [id, ...] (bounded, MAX_PROOFS_PER_OWNER)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace

from credchain.core.bounded import BoundedIndex
from credchain.core.chain import BlockClock
from credchain.core.errors import (
    AlreadyExists,
    CapacityExceeded,
    InvalidInput,
    NotFound,
    ProofCode,
    Unauthorized,
)
from credchain.core.metrics import LEDGER_RECORDS, observe_operation
from credchain.models.proof import ProofRecord, ProofType

logger = logging.getLogger(__name__)

MAX_PROOFS_PER_OWNER = 100
MAX_HASH_BYTES = 32


class ProofStore:
    def __init__(
        self,
        *,
        admin: str,
        clock: BlockClock,
        lock: threading.RLock | None = None,
    ) -> None:
        self._admin = admin
        self._clock = clock
        self._lock = lock if lock is not None else threading.RLock()
        self._verifiers: set[str] = set()
        self._proofs: dict[int, ProofRecord] = {}
        self._hash_index: dict[bytes, int] = {}
        self._by_owner = BoundedIndex(MAX_PROOFS_PER_OWNER)
        self._next_id = 0

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    @property
    def admin(self) -> str:
        with self._lock:
            return self._admin

    @observe_operation("proof", "register_verifier")
    def register_verifier(self, caller: str, verifier: str) -> None:
        with self._lock:
            self._require_admin(caller)
            self._verifiers.add(verifier)
            logger.info("Registered verifier=%s by admin=%s", verifier, caller)

    @observe_operation("proof", "transfer_admin")
    def transfer_admin(self, caller: str, new_admin: str) -> None:
        with self._lock:
            self._require_admin(caller)
            if not new_admin:
                raise InvalidInput(ProofCode.UNAUTHORIZED, "new admin must be non-empty")
            self._admin = new_admin
            logger.info("Transferred proof admin from=%s to=%s", caller, new_admin)

    def is_verifier(self, principal: str) -> bool:
        with self._lock:
            return principal in self._verifiers

    def _require_admin(self, caller: str) -> None:
        if caller != self._admin:
            logger.warning(
                "Rejected admin call from non-admin caller=%s",
                caller,
                extra={"caller": caller, "error_code": int(ProofCode.UNAUTHORIZED)},
            )
            raise Unauthorized(ProofCode.UNAUTHORIZED, "caller is not the admin")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @observe_operation("proof", "issue")
    def issue(
        self,
        caller: str,
        owner: str,
        proof_hash: bytes,
        proof_type: int,
        expires_in_blocks: int | None = None,
    ) -> int:
        """Issue a proof to ``owner`` and return its id.

        All checks run before the first write, so a rejected call leaves
        the hash index, the owner index and the id counter untouched.
        """
        with self._lock:
            if caller not in self._verifiers:
                logger.warning(
                    "Rejected proof issue from unregistered verifier=%s",
                    caller,
                    extra={
                        "caller": caller,
                        "error_code": int(ProofCode.VERIFIER_NOT_REGISTERED),
                    },
                )
                raise Unauthorized(
                    ProofCode.VERIFIER_NOT_REGISTERED, "verifier not registered"
                )
            try:
                ptype = ProofType(proof_type)
            except ValueError:
                raise InvalidInput(
                    ProofCode.INVALID_PROOF_TYPE, f"invalid proof type {proof_type!r}"
                ) from None
            if not proof_hash or len(proof_hash) > MAX_HASH_BYTES:
                raise InvalidInput(
                    ProofCode.INVALID_HASH,
                    f"proof hash must be 1..{MAX_HASH_BYTES} bytes",
                )
            if expires_in_blocks is not None and expires_in_blocks <= 0:
                raise InvalidInput(
                    ProofCode.INVALID_EXPIRY, "expires_in_blocks must be positive"
                )
            proof_hash = bytes(proof_hash)
            if proof_hash in self._hash_index:
                logger.warning(
                    "Rejected proof issue: hash already indexed caller=%s",
                    caller,
                    extra={"caller": caller, "error_code": int(ProofCode.PROOF_EXISTS)},
                )
                raise AlreadyExists(ProofCode.PROOF_EXISTS, "proof hash already issued")
            self._by_owner.ensure_room(
                owner,
                CapacityExceeded(
                    ProofCode.CAPACITY,
                    f"owner already holds {MAX_PROOFS_PER_OWNER} proofs",
                ),
            )

            proof_id = self._next_id
            record = ProofRecord.new(
                id=proof_id,
                owner=owner,
                proof_hash=proof_hash,
                proof_type=ptype,
                issued_at=self._clock.height(),
                verifier=caller,
                expires_in_blocks=expires_in_blocks,
            )
            self._proofs[proof_id] = record
            self._hash_index[proof_hash] = proof_id
            self._by_owner.append(owner, proof_id)
            self._next_id += 1
            LEDGER_RECORDS.labels(store="proof", record="proof").set(len(self._proofs))

            logger.info(
                "Issued proof id=%d owner=%s type=%s verifier=%s expires_at=%s",
                proof_id,
                owner,
                ptype.name,
                caller,
                record.expires_at,
            )
            return proof_id

    @observe_operation("proof", "revoke")
    def revoke(self, caller: str, proof_id: int) -> None:
        with self._lock:
            record = self._proofs.get(proof_id)
            if record is None:
                raise NotFound(ProofCode.PROOF_NOT_FOUND, f"proof {proof_id} not found")
            if caller != record.verifier and caller != self._admin:
                logger.warning(
                    "Rejected proof revoke id=%d caller=%s",
                    proof_id,
                    caller,
                    extra={"caller": caller, "error_code": int(ProofCode.UNAUTHORIZED)},
                )
                raise Unauthorized(
                    ProofCode.UNAUTHORIZED, "only the verifier or admin may revoke"
                )
            if not record.revoked:
                self._proofs[proof_id] = replace(record, revoked=True)
                logger.info("Revoked proof id=%d by=%s", proof_id, caller)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @observe_operation("proof", "verify_ownership")
    def verify_ownership(self, proof_id: int, claimed_owner: str) -> bool:
        with self._lock:
            record = self._proofs.get(proof_id)
            if record is None:
                raise NotFound(ProofCode.PROOF_NOT_FOUND, f"proof {proof_id} not found")
            if not record.is_valid(self._clock.height()):
                return False
            return record.owner == claimed_owner

    def is_valid(self, proof_id: int) -> bool:
        with self._lock:
            record = self._proofs.get(proof_id)
            if record is None:
                return False
            return record.is_valid(self._clock.height())

    def get(self, proof_id: int) -> ProofRecord | None:
        with self._lock:
            return self._proofs.get(proof_id)

    def list_by_owner(self, owner: str) -> tuple[int, ...]:
        with self._lock:
            return self._by_owner.get(owner)

    def __len__(self) -> int:
        with self._lock:
            return len(self._proofs)
