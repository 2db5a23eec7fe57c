"""
Value types shared by the lifecycle controller and its collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EngineState(str, Enum):
    """Process-level engine state, owned by the lifecycle controller."""

    UNINITIALIZED = "uninitialized"
    CONFIGURED = "configured"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"


class AppearanceMode(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class TerminateReply(str, Enum):
    """Answer to a host termination request."""

    TERMINATE_NOW = "terminate_now"


class LifecycleTrigger:
    """Base class of the inputs accepted by ``LifecycleController.handle``."""


@dataclass(frozen=True)
class WillFinishLaunching(LifecycleTrigger):
    pass


@dataclass(frozen=True)
class WillTerminate(LifecycleTrigger):
    pass


@dataclass(frozen=True)
class PowerOff(LifecycleTrigger):
    pass


@dataclass(frozen=True)
class ReloadRequested(LifecycleTrigger):
    pass


@dataclass(frozen=True)
class MaintenanceRequested(LifecycleTrigger):
    full_check: bool = True
