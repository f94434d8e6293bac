from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller extracted from a validated JWT.

    `identity` is the JWT subject and is the only thing the registry
    authorizes against.  Registry roles (owner, issuer, delegate,
    recipient) are not claims: they are looked up per call from the
    registry's own state.
    """

    identity: str
