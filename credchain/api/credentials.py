"""Credential endpoints.

- POST /v1/credentials                          — issue (registered institutions)
- POST /v1/credentials/{id}/revoke              — revoke (issuer or registry)
- GET  /v1/credentials/{id}                     — read one record
- GET  /v1/credentials?refugee=...              — ids held by a refugee
- GET  /v1/credentials/{id}/verify?refugee=...  — valid and held by refugee
- GET  /v1/credentials/{id}/valid               — not revoked and not expired
- POST /v1/credentials/institutions             — register (registry principal)
- GET  /v1/credentials/institutions/{principal} — is this an institution?
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, StrictInt

from credchain.api.dependencies import require_user
from credchain.api.schemas import FlagOut, HexBytes, IdListOut, IdOut, PrincipalIn
from credchain.models.credential import CredentialRecord
from credchain.models.principal import Principal
from credchain.services.ledger import ledger

router = APIRouter(prefix="/v1/credentials", tags=["credentials"])


class CredentialIssueIn(BaseModel):
    refugee: str
    proof_id: int
    credential_type: StrictInt
    metadata_hash: HexBytes
    title: str
    description: str = ""
    expires_in_blocks: int | None = None


class CredentialOut(BaseModel):
    id: int
    refugee: str
    institution: str
    credential_type: str
    proof_id: int
    issued_at: int
    expires_at: int | None
    revoked: bool
    metadata_hash: str
    title: str
    description: str
    valid: bool


def _credential_out(record: CredentialRecord) -> CredentialOut:
    return CredentialOut(
        id=record.id,
        refugee=record.refugee,
        institution=record.institution,
        credential_type=record.credential_type.name.lower(),
        proof_id=record.proof_id,
        issued_at=record.issued_at,
        expires_at=record.expires_at,
        revoked=record.revoked,
        metadata_hash=record.metadata_hash.hex(),
        title=record.title,
        description=record.description,
        valid=record.is_valid(ledger.clock.height()),
    )


@router.post("", response_model=IdOut, status_code=status.HTTP_201_CREATED)
def issue_credential(
    body: CredentialIssueIn,
    principal: Annotated[Principal, Depends(require_user)],
) -> IdOut:
    credential_id = ledger.credentials.issue(
        principal.user_id,
        body.refugee,
        body.proof_id,
        body.credential_type,
        body.metadata_hash,
        body.title,
        body.description,
        body.expires_in_blocks,
    )
    return IdOut(id=credential_id)


@router.get("", response_model=IdListOut)
def list_credentials_by_refugee(
    refugee: Annotated[str, Query(min_length=1)],
    _principal: Annotated[Principal, Depends(require_user)],
) -> IdListOut:
    return IdListOut(ids=list(ledger.credentials.list_by_owner(refugee)))


@router.post(
    "/institutions", response_model=PrincipalIn, status_code=status.HTTP_201_CREATED
)
def register_institution(
    body: PrincipalIn,
    principal: Annotated[Principal, Depends(require_user)],
) -> PrincipalIn:
    ledger.credentials.register_institution(principal.user_id, body.principal)
    return body


@router.get("/institutions/{institution}", response_model=FlagOut)
def is_institution(
    institution: str,
    _principal: Annotated[Principal, Depends(require_user)],
) -> FlagOut:
    return FlagOut(value=ledger.credentials.is_registered_institution(institution))


@router.get("/{credential_id}", response_model=CredentialOut)
def get_credential(
    credential_id: int,
    _principal: Annotated[Principal, Depends(require_user)],
) -> CredentialOut:
    record = ledger.credentials.get(credential_id)
    if record is None:
        raise HTTPException(status_code=404, detail="credential not found")
    return _credential_out(record)


@router.post("/{credential_id}/revoke", status_code=status.HTTP_204_NO_CONTENT)
def revoke_credential(
    credential_id: int,
    principal: Annotated[Principal, Depends(require_user)],
) -> None:
    ledger.credentials.revoke(principal.user_id, credential_id)


@router.get("/{credential_id}/verify", response_model=FlagOut)
def verify_credential(
    credential_id: int,
    refugee: Annotated[str, Query(min_length=1)],
) -> FlagOut:
    """Public verification: anyone holding a credential id may check it."""
    return FlagOut(value=ledger.credentials.verify(credential_id, refugee))


@router.get("/{credential_id}/valid", response_model=FlagOut)
def credential_is_valid(credential_id: int) -> FlagOut:
    return FlagOut(value=ledger.credentials.is_valid(credential_id))
