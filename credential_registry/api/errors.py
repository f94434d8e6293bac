"""HTTP mapping for registry failures.

Services raise RegistryError subclasses; this handler turns them into a
JSON body that carries both the error name and its stable numeric code:

    {"error": "CredentialRevoked", "code": 102, "detail": "..."}

Clients should branch on `code` (or `error`), not on the HTTP status,
which groups several failure kinds together.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from credential_registry.services.errors import (
    AlreadyDisputed,
    CredentialExpired,
    CredentialRevoked,
    InvalidCredential,
    InvalidInput,
    InvalidLevel,
    InvalidRating,
    NoDispute,
    NotAuthorized,
    NotRecipient,
    RegistryError,
)

_STATUS_BY_ERROR: dict[type[RegistryError], int] = {
    NotAuthorized: 403,
    NotRecipient: 403,
    InvalidCredential: 404,
    NoDispute: 404,
    CredentialRevoked: 410,
    CredentialExpired: 410,
    AlreadyDisputed: 409,
    InvalidRating: 422,
    InvalidLevel: 422,
    InvalidInput: 422,
}


def status_for(error: RegistryError) -> int:
    return _STATUS_BY_ERROR.get(type(error), 400)


async def registry_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, RegistryError):
        raise exc
    return JSONResponse(
        status_code=status_for(exc),
        content={
            "error": type(exc).__name__,
            "code": exc.code,
            "detail": exc.detail,
        },
    )
