from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from credential_registry.core.clock import Clock, clock
from credential_registry.core.config import SETTINGS, Settings
from credential_registry.db.engine import async_session_factory
from credential_registry.models.principal import Principal
from credential_registry.repos.pg_registry_store import PgRegistryStore
from credential_registry.repos.registry_store import InMemoryRegistryStore
from credential_registry.services import token_service
from credential_registry.services.errors import require_identity
from credential_registry.services.registry import Registry, build_registry

logger = logging.getLogger(__name__)

# Tokens are minted by the identity provider; this service only verifies them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/oauth/token")

# In-memory store used when DATABASE_URL is not configured.
registry_store = InMemoryRegistryStore()


def require_user(
    raw_token: Annotated[str, Depends(oauth2_scheme)],
) -> Principal:
    """Extract and validate the JWT bearer token. Returns a Principal.

    The token subject is the caller identity for every registry call.
    """
    try:
        claims = token_service.decode_access_token(raw_token)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    # Same bound as every stored identity.
    principal = Principal(identity=require_identity("caller", str(claims["sub"])))
    logger.debug("Token validated for identity=%s", principal.identity)
    return principal


def get_settings() -> Settings:
    return SETTINGS


def get_clock() -> Clock:
    return clock


async def get_registry(
    settings: Annotated[Settings, Depends(get_settings)],
    host_clock: Annotated[Clock, Depends(get_clock)],
) -> AsyncGenerator[Registry, None]:
    """Request-scoped registry.

    With a database, each request gets its own session; the store opens
    and commits one transaction per registry operation.  Without one, all
    requests share the module-level in-memory store.
    """
    if async_session_factory is None:
        yield build_registry(
            registry_store,
            host_clock,
            owner=settings.registry_owner,
            strict_delegate_renewal=settings.strict_delegate_renewal,
        )
        return

    async with async_session_factory() as session:
        yield build_registry(
            PgRegistryStore(session),
            host_clock,
            owner=settings.registry_owner,
            strict_delegate_renewal=settings.strict_delegate_renewal,
        )
