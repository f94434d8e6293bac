from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from credential_registry.api.dependencies import get_registry, require_user
from credential_registry.api.ratelimit import require_rate_limit
from credential_registry.models.auxiliary import Rating
from credential_registry.models.principal import Principal
from credential_registry.services.rate_limiter import FEEDBACK_LIMIT
from credential_registry.services.registry import Registry

router = APIRouter(prefix="/v1/credentials", tags=["ratings"])


class RatingIn(BaseModel):
    rating: int
    comment: str = ""


class RatingOut(BaseModel):
    credential_id: int
    rater: str
    rating: int
    comment: str
    timestamp: int


def _rating_out(rating: Rating) -> RatingOut:
    return RatingOut(
        credential_id=rating.credential_id,
        rater=rating.rater,
        rating=rating.rating,
        comment=rating.comment,
        timestamp=rating.timestamp,
    )


@router.put(
    "/{credential_id}/ratings",
    response_model=RatingOut,
    dependencies=[Depends(require_rate_limit(FEEDBACK_LIMIT, scope="rate"))],
)
async def rate_credential(
    credential_id: int,
    body: RatingIn,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> RatingOut:
    """Set the caller's 0-5 rating.  Rating again replaces the earlier one."""
    rating = await registry.auxiliary.rate(
        principal.identity, credential_id, body.rating, body.comment
    )
    return _rating_out(rating)


@router.get("/{credential_id}/ratings/{rater}", response_model=RatingOut)
async def get_rating(
    credential_id: int,
    rater: str,
    registry: Annotated[Registry, Depends(get_registry)],
) -> RatingOut:
    rating = await registry.auxiliary.get_rating(credential_id, rater)
    if rating is None:
        raise HTTPException(status_code=404, detail="rating not found")
    return _rating_out(rating)
