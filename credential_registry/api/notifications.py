"""Notification preferences, stored per (credential, identity).

Callers only ever read and write their own preferences.  Nothing in the
registry sends alerts; these records are for an external notifier.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from credential_registry.api.dependencies import get_registry, require_user
from credential_registry.models.auxiliary import NotificationSettings
from credential_registry.models.principal import Principal
from credential_registry.services.registry import Registry

router = APIRouter(prefix="/v1/credentials", tags=["notifications"])


class NotificationSettingsIn(BaseModel):
    expiry_alerts: bool = True
    dispute_alerts: bool = True
    alert_window: int = 0


class NotificationSettingsOut(BaseModel):
    credential_id: int
    identity: str
    expiry_alerts: bool
    dispute_alerts: bool
    alert_window: int


def _settings_out(settings: NotificationSettings) -> NotificationSettingsOut:
    return NotificationSettingsOut(
        credential_id=settings.credential_id,
        identity=settings.identity,
        expiry_alerts=settings.expiry_alerts,
        dispute_alerts=settings.dispute_alerts,
        alert_window=settings.alert_window,
    )


@router.put("/{credential_id}/notifications", response_model=NotificationSettingsOut)
async def set_notification_settings(
    credential_id: int,
    body: NotificationSettingsIn,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> NotificationSettingsOut:
    settings = await registry.auxiliary.set_notification_settings(
        principal.identity,
        credential_id,
        expiry_alerts=body.expiry_alerts,
        dispute_alerts=body.dispute_alerts,
        alert_window=body.alert_window,
    )
    return _settings_out(settings)


@router.get("/{credential_id}/notifications", response_model=NotificationSettingsOut)
async def get_notification_settings(
    credential_id: int,
    principal: Annotated[Principal, Depends(require_user)],
    registry: Annotated[Registry, Depends(get_registry)],
) -> NotificationSettingsOut:
    settings = await registry.auxiliary.get_notification_settings(
        credential_id, principal.identity
    )
    if settings is None:
        raise HTTPException(status_code=404, detail="notification settings not set")
    return _settings_out(settings)
