from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Delegation:
    """Time-boxed issuance authority granted by `delegator` to `delegate`.

    Whether the delegation is usable also depends on the delegator still
    being an authorized issuer; that is looked up live, never stored here.
    """

    delegate: str
    delegator: str
    expiry: int
    active: bool = True
