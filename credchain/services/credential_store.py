"""Credential store: institution-issued credentials, one per proof.

Issuance is the only multi-step write in the ledger.  Before anything is
stored the store asks the proof service two questions, in this order:

  1. does ``refugee`` own proof ``proof_id``?   (else REFUGEE_NOT_OWNER)
  2. is proof ``proof_id`` currently valid?     (else PROOF_INVALID)

Any error raised by the proof service counts as "no".  Those calls, and
every local check, happen before the first write: a rejected issuance
leaves no trace.

The store also keeps the registry of institutions.  That makes it the
``InstitutionRegistry`` the enrollment store consults when a course is
created.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Protocol, runtime_checkable

from credchain.core.bounded import BoundedIndex
from credchain.core.chain import BlockClock
from credchain.core.errors import (
    AlreadyExists,
    CapacityExceeded,
    CredentialCode,
    InvalidInput,
    InvalidState,
    LedgerError,
    NotFound,
    Unauthorized,
)
from credchain.core.metrics import LEDGER_RECORDS, observe_operation
from credchain.models.credential import CredentialRecord, CredentialType

logger = logging.getLogger(__name__)

MAX_CREDENTIALS_PER_REFUGEE = 50
MAX_METADATA_HASH_BYTES = 32


@runtime_checkable
class ProofService(Protocol):
    def verify_ownership(self, proof_id: int, claimed_owner: str) -> bool: ...
    def is_valid(self, proof_id: int) -> bool: ...


class CredentialStore:
    def __init__(
        self,
        *,
        registry: str,
        proofs: ProofService,
        clock: BlockClock,
        lock: threading.RLock | None = None,
    ) -> None:
        self._registry = registry
        self._proofs = proofs
        self._clock = clock
        self._lock = lock if lock is not None else threading.RLock()
        self._institutions: set[str] = set()
        self._credentials: dict[int, CredentialRecord] = {}
        self._by_proof: dict[int, int] = {}
        self._by_refugee = BoundedIndex(MAX_CREDENTIALS_PER_REFUGEE)
        self._next_id = 0

    # ------------------------------------------------------------------
    # Registry administration
    # ------------------------------------------------------------------

    @property
    def registry(self) -> str:
        return self._registry

    @observe_operation("credential", "register_institution")
    def register_institution(self, caller: str, institution: str) -> None:
        with self._lock:
            self._require_registry(caller)
            self._institutions.add(institution)
            logger.info("Registered institution=%s", institution)

    def is_registered_institution(self, principal: str) -> bool:
        with self._lock:
            return principal in self._institutions

    @observe_operation("credential", "set_proof_service")
    def set_proof_service(self, caller: str, proofs: ProofService) -> None:
        with self._lock:
            self._require_registry(caller)
            self._proofs = proofs
            logger.info("Proof service replaced by registry=%s", caller)

    def _require_registry(self, caller: str) -> None:
        if caller != self._registry:
            logger.warning(
                "Rejected registry call from caller=%s",
                caller,
                extra={"caller": caller, "error_code": int(CredentialCode.UNAUTHORIZED)},
            )
            raise Unauthorized(
                CredentialCode.UNAUTHORIZED, "caller is not the institution registry"
            )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @observe_operation("credential", "issue")
    def issue(
        self,
        caller: str,
        refugee: str,
        proof_id: int,
        credential_type: int,
        metadata_hash: bytes,
        title: str,
        description: str = "",
        expires_in_blocks: int | None = None,
    ) -> int:
        with self._lock:
            if caller not in self._institutions:
                logger.warning(
                    "Rejected credential issue from unregistered institution=%s",
                    caller,
                    extra={
                        "caller": caller,
                        "error_code": int(CredentialCode.INSTITUTION_NOT_REGISTERED),
                    },
                )
                raise Unauthorized(
                    CredentialCode.INSTITUTION_NOT_REGISTERED,
                    "institution not registered",
                )
            try:
                ctype = CredentialType(credential_type)
            except ValueError:
                raise InvalidInput(
                    CredentialCode.INVALID_CREDENTIAL_TYPE,
                    f"invalid credential type {credential_type!r}",
                ) from None
            if not metadata_hash or len(metadata_hash) > MAX_METADATA_HASH_BYTES:
                raise InvalidInput(
                    CredentialCode.UNAUTHORIZED,
                    f"metadata hash must be 1..{MAX_METADATA_HASH_BYTES} bytes",
                )
            if not title:
                raise InvalidInput(CredentialCode.UNAUTHORIZED, "title must be non-empty")
            if expires_in_blocks is not None and expires_in_blocks <= 0:
                raise InvalidInput(
                    CredentialCode.EXPIRY_PAST, "expires_in_blocks must be positive"
                )

            if not self._proof_owned_by(proof_id, refugee):
                logger.warning(
                    "Rejected credential issue: refugee=%s does not own proof=%d",
                    refugee,
                    proof_id,
                    extra={
                        "caller": caller,
                        "error_code": int(CredentialCode.REFUGEE_NOT_OWNER),
                    },
                )
                raise Unauthorized(
                    CredentialCode.REFUGEE_NOT_OWNER,
                    f"{refugee} does not own a valid proof {proof_id}",
                )
            if not self._proof_valid(proof_id):
                raise InvalidState(
                    CredentialCode.PROOF_INVALID, f"proof {proof_id} is not valid"
                )
            if proof_id in self._by_proof:
                raise AlreadyExists(
                    CredentialCode.CREDENTIAL_EXISTS,
                    f"proof {proof_id} already backs a credential",
                )
            self._by_refugee.ensure_room(
                refugee,
                CapacityExceeded(
                    CredentialCode.CAPACITY,
                    f"refugee already holds {MAX_CREDENTIALS_PER_REFUGEE} credentials",
                ),
            )

            credential_id = self._next_id
            record = CredentialRecord.new(
                id=credential_id,
                refugee=refugee,
                institution=caller,
                credential_type=ctype,
                proof_id=proof_id,
                issued_at=self._clock.height(),
                metadata_hash=bytes(metadata_hash),
                title=title,
                description=description,
                expires_in_blocks=expires_in_blocks,
            )
            self._credentials[credential_id] = record
            self._by_proof[proof_id] = credential_id
            self._by_refugee.append(refugee, credential_id)
            self._next_id += 1
            LEDGER_RECORDS.labels(store="credential", record="credential").set(
                len(self._credentials)
            )

            logger.info(
                "Issued credential id=%d refugee=%s proof=%d type=%s institution=%s",
                credential_id,
                refugee,
                proof_id,
                ctype.name,
                caller,
            )
            return credential_id

    def _proof_owned_by(self, proof_id: int, refugee: str) -> bool:
        try:
            return self._proofs.verify_ownership(proof_id, refugee) is True
        except LedgerError as exc:
            logger.debug("Ownership check for proof=%d failed: %r", proof_id, exc)
            return False

    def _proof_valid(self, proof_id: int) -> bool:
        try:
            return self._proofs.is_valid(proof_id) is True
        except LedgerError as exc:
            logger.debug("Validity check for proof=%d failed: %r", proof_id, exc)
            return False

    @observe_operation("credential", "revoke")
    def revoke(self, caller: str, credential_id: int) -> None:
        with self._lock:
            record = self._credentials.get(credential_id)
            if record is None:
                raise NotFound(
                    CredentialCode.CREDENTIAL_NOT_FOUND,
                    f"credential {credential_id} not found",
                )
            if caller != record.institution and caller != self._registry:
                logger.warning(
                    "Rejected credential revoke id=%d caller=%s",
                    credential_id,
                    caller,
                    extra={
                        "caller": caller,
                        "error_code": int(CredentialCode.UNAUTHORIZED),
                    },
                )
                raise Unauthorized(
                    CredentialCode.UNAUTHORIZED,
                    "only the issuing institution or registry may revoke",
                )
            if not record.revoked:
                self._credentials[credential_id] = replace(record, revoked=True)
                logger.info("Revoked credential id=%d by=%s", credential_id, caller)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @observe_operation("credential", "verify")
    def verify(self, credential_id: int, refugee: str) -> bool:
        with self._lock:
            record = self._credentials.get(credential_id)
            if record is None:
                raise NotFound(
                    CredentialCode.CREDENTIAL_NOT_FOUND,
                    f"credential {credential_id} not found",
                )
            if not record.is_valid(self._clock.height()):
                return False
            return record.refugee == refugee

    def is_valid(self, credential_id: int) -> bool:
        with self._lock:
            record = self._credentials.get(credential_id)
            if record is None:
                return False
            return record.is_valid(self._clock.height())

    def get(self, credential_id: int) -> CredentialRecord | None:
        with self._lock:
            return self._credentials.get(credential_id)

    def list_by_owner(self, refugee: str) -> tuple[int, ...]:
        with self._lock:
            return self._by_refugee.get(refugee)

    def credential_for_proof(self, proof_id: int) -> int | None:
        with self._lock:
            return self._by_proof.get(proof_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._credentials)
