from __future__ import annotations

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient

from credchain.core.errors import CredentialCode

Headers = dict[str, str]
META_HEX = "cd" * 32


@pytest.fixture
def institution(
    client: TestClient,
    admin_headers: Headers,
    registry_headers: Headers,
    as_user: Callable[..., Headers],
) -> Headers:
    """Register verifier-1 and uni-1, and issue proof 0 to alice."""
    client.post(
        "/v1/proofs/verifiers", json={"principal": "verifier-1"}, headers=admin_headers
    )
    resp = client.post(
        "/v1/proofs",
        json={"owner": "alice", "proof_hash": "ab" * 32, "proof_type": 1},
        headers=as_user("verifier-1"),
    )
    assert resp.json() == {"id": 0}
    resp = client.post(
        "/v1/credentials/institutions",
        json={"principal": "uni-1"},
        headers=registry_headers,
    )
    assert resp.status_code == 201
    return as_user("uni-1")


def _issue(client: TestClient, headers: Headers, **overrides: object):
    body: dict[str, object] = {
        "refugee": "alice",
        "proof_id": 0,
        "credential_type": 2,
        "metadata_hash": META_HEX,
        "title": "Electrician certificate",
    }
    body.update(overrides)
    return client.post("/v1/credentials", json=body, headers=headers)


def test_issue_and_read_credential(client: TestClient, institution: Headers) -> None:
    resp = _issue(client, institution, description="Level 2")
    assert resp.status_code == 201
    assert resp.json() == {"id": 0}

    body = client.get("/v1/credentials/0", headers=institution).json()
    assert body == {
        "id": 0,
        "refugee": "alice",
        "institution": "uni-1",
        "credential_type": "certification",
        "proof_id": 0,
        "issued_at": 1000,
        "expires_at": None,
        "revoked": False,
        "metadata_hash": META_HEX,
        "title": "Electrician certificate",
        "description": "Level 2",
        "valid": True,
    }


def test_register_institution_requires_registry(
    client: TestClient, as_user: Callable[..., Headers]
) -> None:
    resp = client.post(
        "/v1/credentials/institutions",
        json={"principal": "uni-2"},
        headers=as_user("uni-2"),
    )
    assert resp.status_code == 403
    assert resp.json()["code"] == CredentialCode.UNAUTHORIZED


def test_is_institution(client: TestClient, institution: Headers) -> None:
    resp = client.get("/v1/credentials/institutions/uni-1", headers=institution)
    assert resp.json() == {"value": True}
    resp = client.get("/v1/credentials/institutions/uni-9", headers=institution)
    assert resp.json() == {"value": False}


def test_issue_by_unregistered_institution(
    client: TestClient, institution: Headers, as_user: Callable[..., Headers]
) -> None:
    resp = _issue(client, as_user("uni-9"))
    assert resp.status_code == 403
    assert resp.json()["code"] == CredentialCode.INSTITUTION_NOT_REGISTERED


def test_issue_for_wrong_refugee(client: TestClient, institution: Headers) -> None:
    resp = _issue(client, institution, refugee="bob")
    assert resp.status_code == 403
    assert resp.json()["code"] == CredentialCode.REFUGEE_NOT_OWNER


def test_issue_for_unknown_proof(client: TestClient, institution: Headers) -> None:
    resp = _issue(client, institution, proof_id=42)
    assert resp.status_code == 403
    assert resp.json()["code"] == CredentialCode.REFUGEE_NOT_OWNER


def test_issue_twice_for_same_proof(client: TestClient, institution: Headers) -> None:
    _issue(client, institution)
    resp = _issue(client, institution, title="Second")
    assert resp.status_code == 409
    assert resp.json()["code"] == CredentialCode.CREDENTIAL_EXISTS


@pytest.mark.parametrize(
    "overrides, code",
    [
        ({"credential_type": 0}, CredentialCode.INVALID_CREDENTIAL_TYPE),
        ({"title": ""}, CredentialCode.UNAUTHORIZED),
        ({"metadata_hash": ""}, CredentialCode.UNAUTHORIZED),
        ({"expires_in_blocks": -1}, CredentialCode.EXPIRY_PAST),
    ],
)
def test_issue_invalid_input(
    client: TestClient, institution: Headers, overrides: dict, code: int
) -> None:
    resp = _issue(client, institution, **overrides)
    assert resp.status_code == 422
    assert resp.json()["code"] == code


def test_list_by_refugee(client: TestClient, institution: Headers) -> None:
    _issue(client, institution)
    resp = client.get("/v1/credentials", params={"refugee": "alice"}, headers=institution)
    assert resp.json() == {"ids": [0]}


def test_verify_is_public(client: TestClient, institution: Headers) -> None:
    _issue(client, institution)
    resp = client.get("/v1/credentials/0/verify", params={"refugee": "alice"})
    assert resp.status_code == 200
    assert resp.json() == {"value": True}
    resp = client.get("/v1/credentials/0/verify", params={"refugee": "bob"})
    assert resp.json() == {"value": False}
    assert client.get("/v1/credentials/0/valid").json() == {"value": True}


def test_verify_unknown_credential(client: TestClient) -> None:
    resp = client.get("/v1/credentials/3/verify", params={"refugee": "alice"})
    assert resp.status_code == 404
    assert resp.json()["code"] == CredentialCode.CREDENTIAL_NOT_FOUND
    assert client.get("/v1/credentials/3/valid").json() == {"value": False}


def test_revoke(
    client: TestClient,
    institution: Headers,
    registry_headers: Headers,
    as_user: Callable[..., Headers],
) -> None:
    _issue(client, institution)
    assert client.post("/v1/credentials/0/revoke", headers=as_user("alice")).status_code == 403
    assert client.post("/v1/credentials/0/revoke", headers=registry_headers).status_code == 204
    resp = client.get("/v1/credentials/0/verify", params={"refugee": "alice"})
    assert resp.json() == {"value": False}


def test_get_unknown_credential(client: TestClient, institution: Headers) -> None:
    resp = client.get("/v1/credentials/5", headers=institution)
    assert resp.status_code == 404
    assert resp.json() == {"detail": "credential not found"}


def test_issue_rejects_boolean_type(client: TestClient, institution: Headers) -> None:
    resp = _issue(client, institution, credential_type=True)
    assert resp.status_code == 422
    assert client.get("/v1/credentials/0/valid").json() == {"value": False}
