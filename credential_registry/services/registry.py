from __future__ import annotations

from dataclasses import dataclass

from credential_registry.core.clock import Clock
from credential_registry.repos.registry_store import RegistryStore
from credential_registry.services.authorization import AuthorizationService
from credential_registry.services.auxiliary_service import AuxiliaryService
from credential_registry.services.credential_service import CredentialService
from credential_registry.services.dispute_service import DisputeService
from credential_registry.services.verification import VerificationService


@dataclass(frozen=True, slots=True)
class Registry:
    """All registry components wired to one store and one clock."""

    authorization: AuthorizationService
    credentials: CredentialService
    verification: VerificationService
    disputes: DisputeService
    auxiliary: AuxiliaryService


def build_registry(
    store: RegistryStore,
    clock: Clock,
    *,
    owner: str,
    strict_delegate_renewal: bool = False,
) -> Registry:
    authorization = AuthorizationService(store, clock, owner)
    return Registry(
        authorization=authorization,
        credentials=CredentialService(
            store,
            clock,
            authorization,
            strict_delegate_renewal=strict_delegate_renewal,
        ),
        verification=VerificationService(store, clock),
        disputes=DisputeService(store, clock),
        auxiliary=AuxiliaryService(store, clock),
    )
