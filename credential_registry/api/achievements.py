"""Achievement endpoints.

Achievements are numbered from their own counter, independent of
credential ids, so they are read back by achievement id.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from credential_registry.api.dependencies import get_registry, require_user
from credential_registry.models.principal import Principal
from credential_registry.services.registry import Registry

router = APIRouter(prefix="/v1", tags=["achievements"])


class AchievementIn(BaseModel):
    title: str
    description: str = ""


class AchievementCreatedOut(BaseModel):
    id: int


class AchievementOut(BaseModel):
    id: int
    credential_id: int
    title: str
    description: str
    timestamp: int


@router.post(
    "/credentials/{credential_id}/achievements",
    response_model=AchievementCreatedOut,
    status_code=status.HTTP_201_CREATED,
)
async def add_achievement(
    credential_id: int,
    body: AchievementIn,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> AchievementCreatedOut:
    achievement_id = await registry.auxiliary.add_achievement(
        principal.identity, credential_id, body.title, body.description
    )
    return AchievementCreatedOut(id=achievement_id)


@router.get("/achievements/{achievement_id}", response_model=AchievementOut)
async def get_achievement(
    achievement_id: int,
    registry: Annotated[Registry, Depends(get_registry)],
) -> AchievementOut:
    achievement = await registry.auxiliary.get_achievement(achievement_id)
    if achievement is None:
        raise HTTPException(status_code=404, detail="achievement not found")
    return AchievementOut(
        id=achievement.id,
        credential_id=achievement.credential_id,
        title=achievement.title,
        description=achievement.description,
        timestamp=achievement.timestamp,
    )
