"""
Engine lifecycle controller.

All triggers are expected on one logical thread (the host event loop); the
controller does not lock.  The engine notification sink is the exception: it
may run on an engine thread and therefore must not touch controller state.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from . import HostConfig
from .config import ConfigStore
from .models import (
    AppearanceMode,
    EngineState,
    LifecycleTrigger,
    MaintenanceRequested,
    PowerOff,
    ReloadRequested,
    TerminateReply,
    WillFinishLaunching,
    WillTerminate,
)
from .notifications import NotificationCenter, NotificationRouter
from .panel import Panel
from .runtime.binding import EngineBinding, EngineTraits
from .utils.paths import distribution_version, ensure_directory

LOG = logging.getLogger(__name__)

CONFIG_VERSION_KEY = "config_version"

_TRANSITIONS: Dict[EngineState, set] = {
    EngineState.UNINITIALIZED: {EngineState.CONFIGURED, EngineState.TERMINATED},
    EngineState.CONFIGURED: {EngineState.RUNNING, EngineState.SHUTTING_DOWN, EngineState.TERMINATED},
    EngineState.RUNNING: {EngineState.CONFIGURED, EngineState.SHUTTING_DOWN, EngineState.TERMINATED},
    EngineState.SHUTTING_DOWN: {EngineState.TERMINATED},
    EngineState.TERMINATED: {EngineState.TERMINATED},
}


class LifecycleError(RuntimeError):
    """Base class for lifecycle related errors."""


class InvalidStateTransition(LifecycleError):
    """Raised when the controller is asked to move against the state graph."""


class LifecycleController:
    """
    Own the engine state and sequence setup, deploy and shutdown.

    Parameters
    ----------
    binding:
        Engine binding; owned by the controller for its whole lifetime.
    config:
        Host configuration providing paths and distribution names.
    workspace_center, distributed_center:
        Notification centers the router subscribes to.
    panel_factory:
        Creates the presentation surface at launch.
    config_factory:
        Creates a fresh, unopened :class:`ConfigStore` for every reload.
    """

    def __init__(
        self,
        binding: EngineBinding,
        config: Optional[HostConfig] = None,
        *,
        workspace_center: Optional[NotificationCenter] = None,
        distributed_center: Optional[NotificationCenter] = None,
        panel_factory: Callable[[], Panel] = Panel,
        config_factory: Optional[Callable[[], ConfigStore]] = None,
    ) -> None:
        self._binding = binding
        self._host_config = config or HostConfig()
        self.workspace_center = workspace_center or NotificationCenter("workspace")
        self.distributed_center = distributed_center or NotificationCenter("distributed")
        self._router = NotificationRouter(
            self.handle,
            workspace_center=self.workspace_center,
            distributed_center=self.distributed_center,
        )
        self._panel_factory = panel_factory
        self._config_factory = config_factory or self._default_config_factory
        self._state = EngineState.UNINITIALIZED
        self._panel: Optional[Panel] = None
        self._config: Optional[ConfigStore] = None
        self._traits: Optional[EngineTraits] = None
        self._degraded = False

        self._handlers: Dict[type, Callable[[LifecycleTrigger], None]] = {
            WillFinishLaunching: lambda _trigger: self.will_finish_launching(),
            WillTerminate: lambda _trigger: self.will_terminate(),
            PowerOff: lambda _trigger: self.power_off(),
            ReloadRequested: lambda _trigger: self.deploy(full_check=True),
            MaintenanceRequested: lambda trigger: self.deploy(full_check=trigger.full_check),  # type: ignore[attr-defined]
        }

    # ------------------------------------------------------------------ properties

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def degraded(self) -> bool:
        return self._degraded

    @property
    def panel(self) -> Optional[Panel]:
        return self._panel

    @property
    def config(self) -> Optional[ConfigStore]:
        return self._config

    @property
    def router(self) -> NotificationRouter:
        return self._router

    @property
    def binding(self) -> EngineBinding:
        return self._binding

    # ------------------------------------------------------------------ public API

    def handle(self, trigger: LifecycleTrigger) -> None:
        handler = self._handlers.get(type(trigger))
        if handler is None:
            raise TypeError(f"Unsupported lifecycle trigger {trigger!r}")
        LOG.debug("Handling %s in state %s", type(trigger).__name__, self._state.value)
        handler(trigger)

    def will_finish_launching(self) -> None:
        if self._state is not EngineState.UNINITIALIZED:
            LOG.warning("Launch requested in state %s; ignoring.", self._state.value)
            return
        self._panel = self._panel_factory()
        self._router.install()
        self._setup_engine()
        self._transition(EngineState.CONFIGURED)

    def deploy(self, full_check: bool = True) -> None:
        """
        Finalize, re-initialize, run maintenance and reload the configuration.

        Safe to re-run from any set-up state; the configuration is only
        reloaded when maintenance reports success.
        """

        if self._state not in (EngineState.CONFIGURED, EngineState.RUNNING):
            LOG.error("Cannot deploy in state %s.", self._state.value)
            return
        LOG.info("Start maintenance...")
        self._shutdown_engine()
        self._transition(EngineState.CONFIGURED)
        if not self._start_engine(full_check):
            self._degraded = True
            return
        self._degraded = not self._load_settings()

    def power_off(self) -> None:
        if self._state not in (EngineState.RUNNING, EngineState.CONFIGURED):
            LOG.debug("Power-off ignored in state %s.", self._state.value)
            return
        self._transition(EngineState.SHUTTING_DOWN)
        self._shutdown_engine()
        self._transition(EngineState.TERMINATED)

    def will_terminate(self) -> None:
        self._router.remove()
        if self._panel is not None:
            self._panel.hide()
        self._transition(EngineState.TERMINATED)

    def should_terminate(self) -> TerminateReply:
        LOG.info("%s is quitting.", self._host_config.distribution_name)
        if self._binding.is_setup:
            # Runs after PowerOff too; on a finalized librime it finds no sessions.
            self._binding.cleanup_all_sessions()
        self._transition(EngineState.TERMINATED)
        return TerminateReply.TERMINATE_NOW

    def describe(self) -> Dict[str, Any]:
        return {
            "state": self._state.value,
            "degraded": self._degraded,
            "configLoaded": self._config is not None and self._config.is_open,
            "subscriptions": len(self._router.subscriptions),
            "traits": self._traits.to_dict() if self._traits is not None else None,
            "panel": self._panel.describe() if self._panel is not None else None,
        }

    # ------------------------------------------------------------------ helpers

    def _transition(self, target: EngineState) -> None:
        if target is self._state:
            return
        if target not in _TRANSITIONS[self._state]:
            raise InvalidStateTransition(f"{self._state.value} -> {target.value}")
        LOG.debug("Engine state %s -> %s", self._state.value, target.value)
        self._state = target

    def _default_config_factory(self) -> ConfigStore:
        return ConfigStore.for_distribution(self._host_config.build_dir, self._host_config.config_file_name)

    def _build_traits(self) -> EngineTraits:
        host = self._host_config
        return EngineTraits(
            shared_data_dir=str(host.shared_data_dir),
            user_data_dir=str(host.user_data_dir),
            log_dir=str(host.log_dir),
            distribution_code_name=host.distribution_code_name,
            distribution_name=host.distribution_name,
            distribution_version=distribution_version(),
            app_name=host.app_name,
        )

    def _setup_engine(self) -> None:
        ensure_directory(self._host_config.user_data_dir)
        ensure_directory(self._host_config.log_dir)  # type: ignore[arg-type]
        self._binding.set_notification_handler(self._on_engine_notification)
        self._traits = self._build_traits()
        self._binding.setup(self._traits)

    def _start_engine(self, full_check: bool) -> bool:
        LOG.info("Initializing la rime...")
        self._binding.initialize()
        self._transition(EngineState.RUNNING)
        if not self._binding.start_maintenance(full_check):
            LOG.warning("Maintenance failed; keeping the engine without a fresh configuration.")
            return False
        if not self._binding.deploy_config_file(self._host_config.config_file_name, CONFIG_VERSION_KEY):
            LOG.warning("Deploying %s failed.", self._host_config.config_file_name)
        return True

    def _shutdown_engine(self) -> None:
        if self._config is not None:
            self._config.close()
        self._binding.finalize()

    def _load_settings(self) -> bool:
        config = self._config_factory()
        self._config = config
        if not config.open_base():
            return False
        if self._panel is None:
            LOG.warning("No panel to load settings into.")
            return False
        config.load_into(self._panel, AppearanceMode.LIGHT)
        config.load_into(self._panel, AppearanceMode.DARK)
        return True

    def _on_engine_notification(self, session_id: int, message_type: str, message_value: str) -> None:
        # Runs on engine threads; must stay free of controller state.
        LOG.debug("Engine notification %s/%s for session %s", message_type, message_value, session_id)


def controller_for(app: Any) -> LifecycleController:
    """
    Return the controller attached to ``app.state``.

    Anything else attached there is a wiring bug the host cannot recover from.
    """

    controller = getattr(getattr(app, "state", None), "controller", None)
    if not isinstance(controller, LifecycleController):
        raise TypeError("Expected LifecycleController as application delegate")
    return controller
