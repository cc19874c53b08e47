from __future__ import annotations

import logging

from credchain.core.logging import (
    _ContainerFormatter,
    _RequestContextFilter,
    request_id_var,
    setup_logging,
)


def _record(level: int = logging.INFO, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="credchain.services.proof_store",
        level=level,
        pathname="proof_store.py",
        lineno=7,
        msg="Issued proof id=%d",
        args=(0,),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_setup_logging_sets_root_level() -> None:
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG

    setup_logging("warning")
    assert logging.getLogger().level == logging.WARNING


def test_setup_logging_defaults_to_info_for_unknown_level() -> None:
    setup_logging("nonexistent")
    assert logging.getLogger().level == logging.INFO


def test_setup_logging_quiets_uvicorn_at_debug() -> None:
    setup_logging("debug")
    assert logging.getLogger("uvicorn").level == logging.WARNING


def test_setup_logging_installs_single_handler_with_request_filter() -> None:
    setup_logging("info")
    setup_logging("info")
    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert any(isinstance(f, _RequestContextFilter) for f in handlers[0].filters)


def test_formatter_excludes_location_for_info() -> None:
    output = _ContainerFormatter().format(_record())
    assert "Issued proof id=0" in output
    assert "[proof_store.py:" not in output


def test_formatter_includes_location_for_warning() -> None:
    output = _ContainerFormatter().format(_record(logging.WARNING))
    assert "[proof_store.py:7]" in output


def test_request_filter_uses_context_var() -> None:
    token = request_id_var.set("req-42")
    try:
        record = _record()
        assert _RequestContextFilter().filter(record) is True
        assert record.request_id == "req-42"  # type: ignore[attr-defined]
    finally:
        request_id_var.reset(token)


def test_request_filter_keeps_explicit_request_id() -> None:
    record = _record(request_id="explicit")
    _RequestContextFilter().filter(record)
    assert record.request_id == "explicit"  # type: ignore[attr-defined]


def test_request_filter_defaults_to_dash_outside_requests() -> None:
    record = _record()
    _RequestContextFilter().filter(record)
    assert record.request_id == "-"  # type: ignore[attr-defined]
