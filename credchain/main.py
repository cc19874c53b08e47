from __future__ import annotations

import logging

from fastapi import FastAPI

from credchain.api.chain import router as chain_router
from credchain.api.courses import enrollments_router
from credchain.api.courses import router as courses_router
from credchain.api.credentials import router as credentials_router
from credchain.api.errors import register_error_handlers
from credchain.api.health import router as health_router
from credchain.api.metrics_endpoint import router as metrics_router
from credchain.api.proofs import router as proofs_router
from credchain.core.config import SETTINGS
from credchain.core.logging import setup_logging
from credchain.middleware.metrics import MetricsMiddleware
from credchain.middleware.request_context import RequestContextMiddleware
from credchain.services.ledger import ledger

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)

# only app setup + router registration

app = FastAPI(
    title="credchain-service",
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

# Middleware execution order: last-added runs first (outermost layer).
# RequestContext (outermost) → Metrics → route handler
# This ensures every request gets a request ID before metrics are recorded.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

register_error_handlers(app)

app.include_router(metrics_router)
app.include_router(chain_router)
app.include_router(courses_router)
app.include_router(credentials_router)
app.include_router(enrollments_router)
app.include_router(health_router)
app.include_router(proofs_router)

logger.info(
    "credchain-service started  env=%s log_level=%s port=%d clock=%s height=%d "
    "admin=%s registry=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    SETTINGS.chain_clock,
    ledger.clock.height(),
    ledger.admin,
    ledger.registry,
)
