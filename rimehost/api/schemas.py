"""
Pydantic schemas for the control API.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class MaintenanceRequest(BaseModel):
    full_check: bool = Field(
        default=True,
        validation_alias=AliasChoices("full_check", "fullCheck"),
        serialization_alias="fullCheck",
    )
    model_config = ConfigDict(populate_by_name=True)


class NotificationAccepted(BaseModel):
    name: str
    center: str
    delivered: int = 0


class NotificationNames(BaseModel):
    notifications: List[str] = Field(default_factory=list)


class StatusModel(BaseModel):
    state: str
    degraded: bool = False
    configLoaded: bool = False
    subscriptions: int = 0
    traits: Optional[Dict[str, str]] = None
    panel: Optional[Dict[str, Any]] = None
