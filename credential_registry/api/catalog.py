"""Catalog metadata endpoints: category and tags, prerequisites, upgrade paths.

All writes belong to the credential's issuer of record; reads are public.
`POST /upgrade` only checks that the target is the registered upgrade of
the source.  It changes nothing.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from credential_registry.api.dependencies import get_registry, require_user
from credential_registry.models.auxiliary import UpgradePath
from credential_registry.models.principal import Principal
from credential_registry.services.registry import Registry

router = APIRouter(prefix="/v1/credentials", tags=["catalog"])


class CategoryTagsIn(BaseModel):
    category: str
    tags: list[str] = []


class CategoryTagsOut(BaseModel):
    credential_id: int
    category: str
    tags: list[str]


class PrerequisitesIn(BaseModel):
    prerequisite_ids: list[int]


class PrerequisitesOut(BaseModel):
    credential_id: int
    prerequisite_ids: list[int]


class UpgradePathIn(BaseModel):
    target_id: int
    requirements: str = ""


class UpgradePathOut(BaseModel):
    source_id: int
    target_id: int
    requirements: str


class UpgradeIn(BaseModel):
    target_id: int


class UpgradeOut(BaseModel):
    source_id: int
    target_id: int
    valid: bool


def _upgrade_path_out(path: UpgradePath) -> UpgradePathOut:
    return UpgradePathOut(
        source_id=path.source_id,
        target_id=path.target_id,
        requirements=path.requirements,
    )


# --- Category and tags ---


@router.put("/{credential_id}/category", response_model=CategoryTagsOut)
async def set_category(
    credential_id: int,
    body: CategoryTagsIn,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> CategoryTagsOut:
    record = await registry.auxiliary.set_category_and_tags(
        principal.identity, credential_id, body.category, body.tags
    )
    return CategoryTagsOut(
        credential_id=record.credential_id,
        category=record.category,
        tags=list(record.tags),
    )


@router.get("/{credential_id}/category", response_model=CategoryTagsOut)
async def get_category(
    credential_id: int,
    registry: Annotated[Registry, Depends(get_registry)],
) -> CategoryTagsOut:
    record = await registry.auxiliary.get_category_and_tags(credential_id)
    if record is None:
        raise HTTPException(status_code=404, detail="category not set")
    return CategoryTagsOut(
        credential_id=record.credential_id,
        category=record.category,
        tags=list(record.tags),
    )


# --- Prerequisites ---


@router.put("/{credential_id}/prerequisites", response_model=PrerequisitesOut)
async def set_prerequisites(
    credential_id: int,
    body: PrerequisitesIn,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> PrerequisitesOut:
    record = await registry.auxiliary.set_prerequisites(
        principal.identity, credential_id, body.prerequisite_ids
    )
    return PrerequisitesOut(
        credential_id=record.credential_id,
        prerequisite_ids=list(record.prerequisite_ids),
    )


@router.get("/{credential_id}/prerequisites", response_model=PrerequisitesOut)
async def get_prerequisites(
    credential_id: int,
    registry: Annotated[Registry, Depends(get_registry)],
) -> PrerequisitesOut:
    record = await registry.auxiliary.get_prerequisites(credential_id)
    if record is None:
        raise HTTPException(status_code=404, detail="prerequisites not set")
    return PrerequisitesOut(
        credential_id=record.credential_id,
        prerequisite_ids=list(record.prerequisite_ids),
    )


# --- Upgrade paths ---


@router.put("/{credential_id}/upgrade-path", response_model=UpgradePathOut)
async def set_upgrade_path(
    credential_id: int,
    body: UpgradePathIn,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> UpgradePathOut:
    path = await registry.auxiliary.set_upgrade_path(
        principal.identity, credential_id, body.target_id, body.requirements
    )
    return _upgrade_path_out(path)


@router.get("/{credential_id}/upgrade-path", response_model=UpgradePathOut)
async def get_upgrade_path(
    credential_id: int,
    registry: Annotated[Registry, Depends(get_registry)],
) -> UpgradePathOut:
    path = await registry.auxiliary.get_upgrade_path(credential_id)
    if path is None:
        raise HTTPException(status_code=404, detail="upgrade path not set")
    return _upgrade_path_out(path)


@router.post("/{credential_id}/upgrade", response_model=UpgradeOut)
async def upgrade_credential(
    credential_id: int,
    body: UpgradeIn,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> UpgradeOut:
    valid = await registry.auxiliary.upgrade(
        principal.identity, credential_id, body.target_id
    )
    return UpgradeOut(source_id=credential_id, target_id=body.target_id, valid=valid)
