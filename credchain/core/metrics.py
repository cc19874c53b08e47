"""Application metrics using the Prometheus client library.

This module defines all metrics in one place — a single inventory of
everything the service measures.  Other modules import specific metrics
and increment/observe them at the point of action.

THE THREE METRIC TYPES
------------------------
  COUNTER   — only goes up.  Total requests, total rejected enrollments.
              Prometheus turns it into a rate with rate().
  GAUGE     — goes up and down.  In-flight requests, stored records.
  HISTOGRAM — buckets observations so Prometheus can estimate
              percentiles (p95 request latency).

LEDGER METRICS
----------------
Every public store operation is wrapped by ``observe_operation``, which
counts it once under ``ledger_operations_total`` with an ``outcome``
label: ``ok`` on success, otherwise the error kind (``unauthorized``,
``capacity_exceeded`` ...).  A spike in ``outcome="unauthorized"`` for
``store="proof", operation="issue"`` means someone is issuing proofs
without being a registered verifier.
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import ParamSpec, TypeVar

from prometheus_client import Counter, Gauge, Histogram

from credchain.core.errors import LedgerError

P = ParamSpec("P")
R = TypeVar("R")

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # Ledger calls are in-memory; anything past 100ms is lock contention.
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Ledger metrics
# ---------------------------------------------------------------------------

LEDGER_OPERATIONS = Counter(
    "ledger_operations_total",
    "Ledger store operations by store, operation, and outcome",
    ["store", "operation", "outcome"],  # outcome: "ok" or an ErrorKind value
)

LEDGER_RECORDS = Gauge(
    "ledger_records",
    "Records currently held by a ledger store",
    ["store", "record"],  # record: "proof", "credential", "course", "enrollment"
)


def observe_operation(
    store: str, operation: str
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator: count each call of a store operation by outcome."""

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        @functools.wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                result = fn(*args, **kwargs)
            except LedgerError as exc:
                LEDGER_OPERATIONS.labels(
                    store=store, operation=operation, outcome=exc.kind.value
                ).inc()
                raise
            LEDGER_OPERATIONS.labels(
                store=store, operation=operation, outcome="ok"
            ).inc()
            return result

        return wrapper

    return decorator
