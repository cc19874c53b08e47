from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import credchain` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from credchain.core.chain import ManualBlockClock  # noqa: E402
from credchain.main import app  # noqa: E402
from credchain.services import token_service  # noqa: E402
from credchain.services.ledger import ledger  # noqa: E402

START_HEIGHT = 1000

Headers = dict[str, str]


@pytest.fixture(autouse=True)
def clock() -> ManualBlockClock:
    """Give every test an empty ledger on a fresh manual clock."""
    fresh = ManualBlockClock(START_HEIGHT)
    ledger.reset(clock=fresh)
    return fresh


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    username: str = "test-user",
    roles: list[str] | None = None,
) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(sub=username, roles=roles)


def auth(username: str, roles: list[str] | None = None) -> Headers:
    return {"Authorization": f"Bearer {mint_token(username, roles)}"}


@pytest.fixture
def token() -> str:
    """Token with default role (user)."""
    return mint_token()


@pytest.fixture
def as_user() -> Callable[..., Headers]:
    """Factory: bearer headers for an arbitrary principal."""
    return auth


@pytest.fixture
def admin_headers() -> Headers:
    """Headers for the proof store admin."""
    return auth(ledger.admin)


@pytest.fixture
def registry_headers() -> Headers:
    """Headers for the institution registry principal."""
    return auth(ledger.registry)


@pytest.fixture
def platform_admin_headers() -> Headers:
    """Headers carrying the platform ``admin`` role (chain controls)."""
    return auth("ops-admin", roles=["admin"])
