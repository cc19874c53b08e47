from __future__ import annotations

import enum
from dataclasses import dataclass

from credchain.core.chain import expiry_height, is_expired


class ProofType(enum.IntEnum):
    EDUCATION = 1
    IDENTITY = 2
    SKILL = 3


@dataclass(frozen=True, slots=True)
class ProofRecord:
    """An opaque attestation about ``owner``, issued by a registered verifier.

    Only the hash is stored; the proof itself never touches the ledger.
    """

    id: int
    owner: str
    proof_hash: bytes
    proof_type: ProofType
    issued_at: int
    verifier: str
    expires_at: int | None = None
    revoked: bool = False

    @staticmethod
    def new(
        *,
        id: int,
        owner: str,
        proof_hash: bytes,
        proof_type: ProofType,
        issued_at: int,
        verifier: str,
        expires_in_blocks: int | None = None,
    ) -> ProofRecord:
        return ProofRecord(
            id=id,
            owner=owner,
            proof_hash=proof_hash,
            proof_type=proof_type,
            issued_at=issued_at,
            verifier=verifier,
            expires_at=expiry_height(issued_at, expires_in_blocks),
        )

    def is_expired(self, height: int) -> bool:
        return is_expired(self.expires_at, height)

    def is_valid(self, height: int) -> bool:
        return not self.revoked and not self.is_expired(height)
