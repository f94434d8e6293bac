"""Caller identity from ES256 bearer tokens.

Every registry call is made by a JWT subject: issuers, delegates,
recipients, raters and verifiers are all just `sub` values.  Tokens are
minted by an identity provider; the registry only verifies them.

With JWT_PUBLIC_KEY_FILE set, tokens are checked against the provider's
PEM public key and `create_access_token` is unavailable.  Without it, an
ephemeral key pair is generated at import so dev and test can mint their
own tokens.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from pathlib import Path

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from credential_registry.core.config import SETTINGS

ALGORITHM = "ES256"
ISSUER = "credential-registry"
AUDIENCE = "credential-registry"
ACCESS_TOKEN_TTL_MIN = 15


def _load_verification_key(path: str) -> ec.EllipticCurvePublicKey:
    key = serialization.load_pem_public_key(Path(path).read_bytes())
    if not isinstance(key, ec.EllipticCurvePublicKey):
        raise ValueError(f"{path} does not hold an EC public key")
    return key


if SETTINGS.jwt_public_key_file is None:
    _signing_key: ec.EllipticCurvePrivateKey | None = ec.generate_private_key(
        ec.SECP256R1()
    )
    _verification_key = _signing_key.public_key()
else:
    _signing_key = None
    _verification_key = _load_verification_key(SETTINGS.jwt_public_key_file)


def create_access_token(*, sub: str, ttl_minutes: int = ACCESS_TOKEN_TTL_MIN) -> str:
    """Sign a token for identity `sub` with the ephemeral dev/test key."""
    if _signing_key is None:
        raise RuntimeError("tokens are minted by the identity provider")
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "iss": ISSUER,
        "aud": AUDIENCE,
        "exp": now + timedelta(minutes=ttl_minutes),
        "iat": now,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, _signing_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and claims, return the payload.

    The algorithm list is pinned, so `alg: none` and HS256-with-public-key
    tokens are rejected.  Raises jwt.ExpiredSignatureError or
    jwt.InvalidTokenError.
    """
    return jwt.decode(
        token,
        _verification_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=AUDIENCE,
        options={"require": ["sub", "exp", "iat", "jti"]},
    )
