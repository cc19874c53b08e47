from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]
ChainClockKind = Literal["manual", "wall"]


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it’s easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _getenv_int(name: str, default: str) -> int:
    raw = _getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    ledger_admin: str
    institution_registry: str
    chain_clock: ChainClockKind
    block_seconds: int
    start_height: int

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    log_json_raw = _getenv("LOG_JSON", "false").lower()
    chain_clock_raw = _getenv("CHAIN_CLOCK", "manual").lower()

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    if log_json_raw not in ("true", "false", "1", "0"):
        raise ValueError(f"LOG_JSON must be true|false (got {log_json_raw!r})")

    if chain_clock_raw not in ("manual", "wall"):
        raise ValueError(
            f"CHAIN_CLOCK must be manual|wall (got {chain_clock_raw!r})"
        )

    port = _getenv_int("PORT", "8000")
    block_seconds = _getenv_int("BLOCK_SECONDS", "600")
    start_height = _getenv_int("START_HEIGHT", "0")

    if block_seconds <= 0:
        raise ValueError(f"BLOCK_SECONDS must be positive (got {block_seconds})")
    if start_height < 0:
        raise ValueError(f"START_HEIGHT must be non-negative (got {start_height})")

    ledger_admin = _getenv("LEDGER_ADMIN", "ledger-admin")
    institution_registry = _getenv("INSTITUTION_REGISTRY", "institution-registry")
    if not ledger_admin:
        raise ValueError("LEDGER_ADMIN must be non-empty")
    if not institution_registry:
        raise ValueError("INSTITUTION_REGISTRY must be non-empty")

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json_raw in ("true", "1"),
        port=port,
        ledger_admin=ledger_admin,
        institution_registry=institution_registry,
        chain_clock=chain_clock_raw,
        block_seconds=block_seconds,
        start_height=start_height,
    )


# Optional: module-level singleton so imports are cheap
SETTINGS = load_settings()
