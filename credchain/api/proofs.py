"""Proof endpoints.

- POST /v1/proofs                        — issue (registered verifiers)
- POST /v1/proofs/{id}/revoke            — revoke (issuing verifier or admin)
- GET  /v1/proofs/{id}                   — read one record
- GET  /v1/proofs?owner=...              — ids held by an owner
- GET  /v1/proofs/{id}/valid             — not revoked and not expired
- GET  /v1/proofs/{id}/ownership?owner=  — valid and owned by ``owner``
- POST /v1/proofs/verifiers              — register a verifier (admin)
- GET  /v1/proofs/verifiers/{principal}  — is this principal a verifier?
- POST /v1/proofs/admin                  — hand the admin role over

The caller is always the JWT subject.  Whether that subject may issue or
revoke is decided by the proof store, not by platform roles.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, StrictInt

from credchain.api.dependencies import require_user
from credchain.api.schemas import FlagOut, HexBytes, IdListOut, IdOut, PrincipalIn
from credchain.models.principal import Principal
from credchain.models.proof import ProofRecord
from credchain.services.ledger import ledger

router = APIRouter(prefix="/v1/proofs", tags=["proofs"])


class ProofIssueIn(BaseModel):
    owner: str
    proof_hash: HexBytes
    proof_type: StrictInt
    expires_in_blocks: int | None = None


class ProofOut(BaseModel):
    id: int
    owner: str
    proof_hash: str
    proof_type: str
    issued_at: int
    expires_at: int | None
    revoked: bool
    verifier: str
    valid: bool


class TransferAdminIn(BaseModel):
    new_admin: str


def _proof_out(record: ProofRecord) -> ProofOut:
    return ProofOut(
        id=record.id,
        owner=record.owner,
        proof_hash=record.proof_hash.hex(),
        proof_type=record.proof_type.name.lower(),
        issued_at=record.issued_at,
        expires_at=record.expires_at,
        revoked=record.revoked,
        verifier=record.verifier,
        valid=record.is_valid(ledger.clock.height()),
    )


@router.post("", response_model=IdOut, status_code=status.HTTP_201_CREATED)
def issue_proof(
    body: ProofIssueIn,
    principal: Annotated[Principal, Depends(require_user)],
) -> IdOut:
    proof_id = ledger.proofs.issue(
        principal.user_id,
        body.owner,
        body.proof_hash,
        body.proof_type,
        body.expires_in_blocks,
    )
    return IdOut(id=proof_id)


@router.get("", response_model=IdListOut)
def list_proofs_by_owner(
    owner: Annotated[str, Query(min_length=1)],
    _principal: Annotated[Principal, Depends(require_user)],
) -> IdListOut:
    return IdListOut(ids=list(ledger.proofs.list_by_owner(owner)))


@router.post(
    "/verifiers", response_model=PrincipalIn, status_code=status.HTTP_201_CREATED
)
def register_verifier(
    body: PrincipalIn,
    principal: Annotated[Principal, Depends(require_user)],
) -> PrincipalIn:
    ledger.proofs.register_verifier(principal.user_id, body.principal)
    return body


@router.get("/verifiers/{verifier}", response_model=FlagOut)
def is_verifier(
    verifier: str,
    _principal: Annotated[Principal, Depends(require_user)],
) -> FlagOut:
    return FlagOut(value=ledger.proofs.is_verifier(verifier))


@router.post("/admin", status_code=status.HTTP_204_NO_CONTENT)
def transfer_admin(
    body: TransferAdminIn,
    principal: Annotated[Principal, Depends(require_user)],
) -> None:
    ledger.proofs.transfer_admin(principal.user_id, body.new_admin)


@router.get("/{proof_id}", response_model=ProofOut)
def get_proof(
    proof_id: int,
    _principal: Annotated[Principal, Depends(require_user)],
) -> ProofOut:
    record = ledger.proofs.get(proof_id)
    if record is None:
        raise HTTPException(status_code=404, detail="proof not found")
    return _proof_out(record)


@router.post("/{proof_id}/revoke", status_code=status.HTTP_204_NO_CONTENT)
def revoke_proof(
    proof_id: int,
    principal: Annotated[Principal, Depends(require_user)],
) -> None:
    ledger.proofs.revoke(principal.user_id, proof_id)


@router.get("/{proof_id}/valid", response_model=FlagOut)
def proof_is_valid(
    proof_id: int,
    _principal: Annotated[Principal, Depends(require_user)],
) -> FlagOut:
    return FlagOut(value=ledger.proofs.is_valid(proof_id))


@router.get("/{proof_id}/ownership", response_model=FlagOut)
def verify_proof_ownership(
    proof_id: int,
    owner: Annotated[str, Query(min_length=1)],
    _principal: Annotated[Principal, Depends(require_user)],
) -> FlagOut:
    return FlagOut(value=ledger.proofs.verify_ownership(proof_id, owner))
