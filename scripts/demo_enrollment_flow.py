"""Demo: walk proof → credential → enrollment using FastAPI TestClient.

Run with:
    python scripts/demo_enrollment_flow.py
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from credchain.main import app
from credchain.services import token_service
from credchain.services.ledger import ledger

VERIFIER = "demo-verifier"
INSTITUTION = "demo-university"
REFUGEE = "demo-refugee"
LATECOMER = "demo-latecomer"


def _headers(sub: str) -> dict[str, str]:
    token = token_service.create_access_token(sub=sub)
    return {"Authorization": f"Bearer {token}"}


def main() -> None:
    client = TestClient(app)

    # ── Step 1: admin registers a verifier ──────────────────────────
    r = client.post(
        "/v1/proofs/verifiers",
        json={"principal": VERIFIER},
        headers=_headers(ledger.admin),
    )
    print(f"1. POST /v1/proofs/verifiers         → {r.status_code}")

    # ── Step 2: verifier issues an education proof ──────────────────
    r = client.post(
        "/v1/proofs",
        json={
            "owner": REFUGEE,
            "proof_hash": "a1" * 32,
            "proof_type": 1,
        },
        headers=_headers(VERIFIER),
    )
    proof_id = r.json()["id"]
    print(f"2. POST /v1/proofs                   → {r.status_code}  proof={proof_id}")

    # ── Step 3: registry registers an institution ───────────────────
    r = client.post(
        "/v1/credentials/institutions",
        json={"principal": INSTITUTION},
        headers=_headers(ledger.registry),
    )
    print(f"3. POST /v1/credentials/institutions → {r.status_code}")

    # ── Step 4: institution issues a credential on that proof ───────
    r = client.post(
        "/v1/credentials",
        json={
            "refugee": REFUGEE,
            "proof_id": proof_id,
            "credential_type": 1,
            "metadata_hash": "b2" * 32,
            "title": "Secondary School Diploma",
        },
        headers=_headers(INSTITUTION),
    )
    credential_id = r.json()["id"]
    print(
        f"4. POST /v1/credentials              → {r.status_code}  "
        f"credential={credential_id}"
    )

    # ── Step 5: institution opens a one-seat course ─────────────────
    r = client.post(
        "/v1/courses",
        json={
            "title": "Foundations of Nursing",
            "capacity": 1,
            "duration_blocks": 100,
            "prereq_credential_type": 1,
        },
        headers=_headers(INSTITUTION),
    )
    course_id = r.json()["id"]
    print(f"5. POST /v1/courses                  → {r.status_code}  course={course_id}")

    # ── Step 6: refugee enrolls with the credential ─────────────────
    r = client.post(
        f"/v1/courses/{course_id}/enroll",
        json={"credential_id": credential_id},
        headers=_headers(REFUGEE),
    )
    print(f"6. POST /v1/courses/{course_id}/enroll         → {r.status_code}  {r.json()}")

    # ── Step 7: the seat is gone ────────────────────────────────────
    r = client.post(
        f"/v1/courses/{course_id}/enroll",
        json={},
        headers=_headers(LATECOMER),
    )
    print(f"7. POST /v1/courses/{course_id}/enroll (late)  → {r.status_code}  {r.json()}")

    r = client.get("/health")
    print(f"\nLedger: {r.json()}")


if __name__ == "__main__":
    main()
