"""Registry failure kinds.

Each failure has a stable numeric code that callers can rely on across
transports.  Every failure is a deterministic function of the stored state
and the call's arguments: replaying the same call against the same state
fails the same way, so nothing here is ever retried internally.
"""

from __future__ import annotations

import logging

from credential_registry.core.metrics import REGISTRY_ERRORS
from credential_registry.models.credential import IDENTITY_MAX_LEN

logger = logging.getLogger(__name__)


class RegistryError(Exception):
    code: int = 0

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or self.__class__.__name__)
        self.detail = detail or self.__class__.__name__


class NotAuthorized(RegistryError):
    code = 100


class InvalidCredential(RegistryError):
    code = 101


class CredentialRevoked(RegistryError):
    code = 102


class CredentialExpired(RegistryError):
    code = 103


class InvalidRating(RegistryError):
    code = 104


class InvalidLevel(RegistryError):
    code = 105


class AlreadyDisputed(RegistryError):
    code = 106


class NotRecipient(RegistryError):
    code = 107


class NoDispute(RegistryError):
    code = 108


class InvalidInput(RegistryError):
    """Argument outside its declared type bounds (text length, negative int)."""

    code = 109


def require_text(name: str, value: str, max_len: int) -> str:
    if len(value) > max_len:
        raise reject(
            logger, InvalidInput(f"{name} must be at most {max_len} characters")
        )
    return value


def require_uint(name: str, value: int) -> int:
    if value < 0:
        raise reject(logger, InvalidInput(f"{name} must be non-negative"))
    return value


def require_identity(name: str, value: str) -> str:
    if not value:
        raise reject(logger, InvalidInput(f"{name} must be non-empty"))
    return require_text(name, value, IDENTITY_MAX_LEN)


def reject(
    logger: logging.Logger,
    error: RegistryError,
    *,
    caller: str | None = None,
    credential_id: int | None = None,
) -> RegistryError:
    """Log and count a rejected call; returns the error for `raise`."""
    REGISTRY_ERRORS.labels(error=type(error).__name__).inc()
    logger.warning(
        "Rejected %s: %s caller=%s credential=%s",
        type(error).__name__,
        error.detail,
        caller,
        credential_id,
        extra={"caller": caller, "credential_id": credential_id},
    )
    return error
