from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from credential_registry.api.achievements import router as achievements_router
from credential_registry.api.catalog import router as catalog_router
from credential_registry.api.credentials import router as credentials_router
from credential_registry.api.delegations import router as delegations_router
from credential_registry.api.disputes import router as disputes_router
from credential_registry.api.endorsements import router as endorsements_router
from credential_registry.api.errors import registry_error_handler
from credential_registry.api.health import router as health_router
from credential_registry.api.issuers import router as issuers_router
from credential_registry.api.metrics_endpoint import router as metrics_router
from credential_registry.api.notifications import router as notifications_router
from credential_registry.api.ratings import router as ratings_router
from credential_registry.api.verification import router as verification_router
from credential_registry.core.config import SETTINGS
from credential_registry.core.logging import setup_logging
from credential_registry.db.engine import lifespan_db
from credential_registry.db.redis import lifespan_redis
from credential_registry.middleware.metrics import MetricsMiddleware
from credential_registry.middleware.request_context import RequestContextMiddleware
from credential_registry.services.errors import RegistryError

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Torn down in reverse order.
    async with lifespan_db():
        async with lifespan_redis():
            yield


app = FastAPI(
    title="credential-registry",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_exception_handler(RegistryError, registry_error_handler)

# Last added runs first: RequestContext -> Metrics -> route handler.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(issuers_router)
app.include_router(delegations_router)
app.include_router(credentials_router)
app.include_router(verification_router)
app.include_router(disputes_router)
app.include_router(ratings_router)
app.include_router(achievements_router)
app.include_router(catalog_router)
app.include_router(endorsements_router)
app.include_router(notifications_router)

logger.info(
    "credential-registry started  env=%s owner=%s strict_renewal=%s docs=%s",
    SETTINGS.app_env,
    SETTINGS.registry_owner,
    SETTINGS.strict_delegate_renewal,
    "on" if SETTINGS.is_dev else "off",
)
