from __future__ import annotations

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient

from credchain.core.errors import ProofCode

Headers = dict[str, str]
HASH_HEX = "ab" * 32


@pytest.fixture
def verifier(
    client: TestClient, admin_headers: Headers, as_user: Callable[..., Headers]
) -> Headers:
    resp = client.post(
        "/v1/proofs/verifiers", json={"principal": "verifier-1"}, headers=admin_headers
    )
    assert resp.status_code == 201
    return as_user("verifier-1")


def _issue(client: TestClient, headers: Headers, **overrides: object):
    body: dict[str, object] = {
        "owner": "alice",
        "proof_hash": HASH_HEX,
        "proof_type": 1,
    }
    body.update(overrides)
    return client.post("/v1/proofs", json=body, headers=headers)


def test_proofs_require_token(client: TestClient) -> None:
    resp = client.get("/v1/proofs/0")
    assert resp.status_code == 401


def test_issue_and_read_proof(client: TestClient, verifier: Headers) -> None:
    resp = _issue(client, verifier, expires_in_blocks=10)
    assert resp.status_code == 201
    assert resp.json() == {"id": 0}

    resp = client.get("/v1/proofs/0", headers=verifier)
    assert resp.status_code == 200
    assert resp.json() == {
        "id": 0,
        "owner": "alice",
        "proof_hash": HASH_HEX,
        "proof_type": "education",
        "issued_at": 1000,
        "expires_at": 1010,
        "revoked": False,
        "verifier": "verifier-1",
        "valid": True,
    }


def test_issue_accepts_0x_prefixed_hash(client: TestClient, verifier: Headers) -> None:
    resp = _issue(client, verifier, proof_hash="0x" + HASH_HEX)
    assert resp.status_code == 201


def test_issue_rejects_non_hex_hash(client: TestClient, verifier: Headers) -> None:
    resp = _issue(client, verifier, proof_hash="not-hex")
    assert resp.status_code == 422


def test_issue_by_non_verifier_is_forbidden(
    client: TestClient, as_user: Callable[..., Headers]
) -> None:
    resp = _issue(client, as_user("stranger"))
    assert resp.status_code == 403
    assert resp.json() == {
        "detail": "verifier not registered",
        "error": "unauthorized",
        "code": ProofCode.VERIFIER_NOT_REGISTERED,
    }


def test_issue_duplicate_hash_conflicts(client: TestClient, verifier: Headers) -> None:
    _issue(client, verifier)
    resp = _issue(client, verifier, owner="bob")
    assert resp.status_code == 409
    assert resp.json()["code"] == ProofCode.PROOF_EXISTS


@pytest.mark.parametrize(
    "overrides, code",
    [
        ({"proof_type": 7}, ProofCode.INVALID_PROOF_TYPE),
        ({"proof_hash": ""}, ProofCode.INVALID_HASH),
        ({"expires_in_blocks": 0}, ProofCode.INVALID_EXPIRY),
    ],
)
def test_issue_invalid_input(
    client: TestClient, verifier: Headers, overrides: dict, code: int
) -> None:
    resp = _issue(client, verifier, **overrides)
    assert resp.status_code == 422
    assert resp.json()["error"] == "invalid_input"
    assert resp.json()["code"] == code


def test_register_verifier_requires_proof_admin(
    client: TestClient, platform_admin_headers: Headers
) -> None:
    # a platform admin role is not the proof store admin
    resp = client.post(
        "/v1/proofs/verifiers",
        json={"principal": "verifier-1"},
        headers=platform_admin_headers,
    )
    assert resp.status_code == 403
    assert resp.json()["code"] == ProofCode.UNAUTHORIZED


def test_is_verifier(client: TestClient, verifier: Headers) -> None:
    assert client.get("/v1/proofs/verifiers/verifier-1", headers=verifier).json() == {
        "value": True
    }
    assert client.get("/v1/proofs/verifiers/nobody", headers=verifier).json() == {
        "value": False
    }


def test_transfer_admin(
    client: TestClient, admin_headers: Headers, as_user: Callable[..., Headers]
) -> None:
    resp = client.post(
        "/v1/proofs/admin", json={"new_admin": "successor"}, headers=admin_headers
    )
    assert resp.status_code == 204

    resp = client.post(
        "/v1/proofs/verifiers", json={"principal": "v2"}, headers=admin_headers
    )
    assert resp.status_code == 403
    resp = client.post(
        "/v1/proofs/verifiers", json={"principal": "v2"}, headers=as_user("successor")
    )
    assert resp.status_code == 201


def test_list_by_owner(client: TestClient, verifier: Headers) -> None:
    _issue(client, verifier)
    _issue(client, verifier, proof_hash="cd" * 32)
    resp = client.get("/v1/proofs", params={"owner": "alice"}, headers=verifier)
    assert resp.json() == {"ids": [0, 1]}
    resp = client.get("/v1/proofs", params={"owner": "bob"}, headers=verifier)
    assert resp.json() == {"ids": []}


def test_revoke_flow(
    client: TestClient, verifier: Headers, as_user: Callable[..., Headers]
) -> None:
    _issue(client, verifier)

    resp = client.post("/v1/proofs/0/revoke", headers=as_user("alice"))
    assert resp.status_code == 403

    resp = client.post("/v1/proofs/0/revoke", headers=verifier)
    assert resp.status_code == 204
    assert client.get("/v1/proofs/0/valid", headers=verifier).json() == {"value": False}
    assert client.get("/v1/proofs/0", headers=verifier).json()["revoked"] is True


def test_revoke_unknown_proof(client: TestClient, admin_headers: Headers) -> None:
    resp = client.post("/v1/proofs/9/revoke", headers=admin_headers)
    assert resp.status_code == 404
    assert resp.json()["code"] == ProofCode.PROOF_NOT_FOUND


def test_get_unknown_proof(client: TestClient, verifier: Headers) -> None:
    resp = client.get("/v1/proofs/9", headers=verifier)
    assert resp.status_code == 404
    assert resp.json() == {"detail": "proof not found"}


def test_ownership(client: TestClient, verifier: Headers) -> None:
    _issue(client, verifier)
    url = "/v1/proofs/0/ownership"
    assert client.get(url, params={"owner": "alice"}, headers=verifier).json() == {
        "value": True
    }
    assert client.get(url, params={"owner": "bob"}, headers=verifier).json() == {
        "value": False
    }
    resp = client.get("/v1/proofs/5/ownership", params={"owner": "alice"}, headers=verifier)
    assert resp.status_code == 404


def test_expiry_follows_block_height(
    client: TestClient,
    verifier: Headers,
    platform_admin_headers: Headers,
) -> None:
    _issue(client, verifier, expires_in_blocks=3)
    client.post(
        "/v1/chain/advance", json={"blocks": 3}, headers=platform_admin_headers
    )
    body = client.get("/v1/proofs/0", headers=verifier).json()
    assert body["valid"] is False
    assert body["revoked"] is False


@pytest.mark.parametrize("proof_type", [True, "1", 1.0])
def test_issue_rejects_non_integer_type(
    client: TestClient, verifier: Headers, proof_type: object
) -> None:
    resp = _issue(client, verifier, proof_type=proof_type)
    assert resp.status_code == 422
    assert client.get("/v1/proofs", params={"owner": "alice"}, headers=verifier).json() == {
        "ids": []
    }
