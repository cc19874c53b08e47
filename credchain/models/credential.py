from __future__ import annotations

import enum
from dataclasses import dataclass

from credchain.core.chain import expiry_height, is_expired


class CredentialType(enum.IntEnum):
    EDUCATION = 1
    CERTIFICATION = 2
    COURSE = 3


@dataclass(frozen=True, slots=True)
class CredentialRecord:
    """Institution-issued record of accomplishment, backed by exactly one proof."""

    id: int
    refugee: str
    institution: str
    credential_type: CredentialType
    proof_id: int
    issued_at: int
    metadata_hash: bytes
    title: str
    description: str = ""
    expires_at: int | None = None
    revoked: bool = False

    @staticmethod
    def new(
        *,
        id: int,
        refugee: str,
        institution: str,
        credential_type: CredentialType,
        proof_id: int,
        issued_at: int,
        metadata_hash: bytes,
        title: str,
        description: str = "",
        expires_in_blocks: int | None = None,
    ) -> CredentialRecord:
        return CredentialRecord(
            id=id,
            refugee=refugee,
            institution=institution,
            credential_type=credential_type,
            proof_id=proof_id,
            issued_at=issued_at,
            metadata_hash=metadata_hash,
            title=title,
            description=description,
            expires_at=expiry_height(issued_at, expires_in_blocks),
        )

    def is_expired(self, height: int) -> bool:
        return is_expired(self.expires_at, height)

    def is_valid(self, height: int) -> bool:
        return not self.revoked and not self.is_expired(height)
