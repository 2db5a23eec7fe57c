"""
Engine binding contract.

The controller never talks to librime directly; it drives an
:class:`EngineBinding`, which guards the call ordering librime expects
(``setup`` first, everything else afterwards) and leaves the actual calls to
subclasses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

LOG = logging.getLogger(__name__)

NotificationHandler = Callable[[int, str, str], None]


class EngineBindingError(RuntimeError):
    """Raised when the engine is driven out of order."""


class EngineUnavailableError(EngineBindingError):
    """Raised when the engine library cannot be loaded."""


@dataclass(frozen=True)
class EngineTraits:
    """
    Values handed to the engine once at setup.
    """

    shared_data_dir: str
    user_data_dir: str
    log_dir: str
    distribution_code_name: str
    distribution_name: str
    distribution_version: str
    app_name: str

    def to_dict(self) -> dict:
        return {
            "sharedDataDir": self.shared_data_dir,
            "userDataDir": self.user_data_dir,
            "logDir": self.log_dir,
            "distributionCodeName": self.distribution_code_name,
            "distributionName": self.distribution_name,
            "distributionVersion": self.distribution_version,
            "appName": self.app_name,
        }


class EngineBinding:
    """
    Base class for engine bindings.

    Every call is synchronous from the caller's point of view.
    ``set_notification_handler`` is the only call accepted before ``setup``.
    """

    def __init__(self) -> None:
        self._traits: Optional[EngineTraits] = None
        self._handler: Optional[NotificationHandler] = None

    @property
    def is_setup(self) -> bool:
        return self._traits is not None

    @property
    def traits(self) -> Optional[EngineTraits]:
        return self._traits

    def set_notification_handler(self, handler: NotificationHandler) -> None:
        if not callable(handler):
            raise TypeError("handler must be callable")
        self._handler = handler
        self._set_notification_handler(handler)

    def setup(self, traits: EngineTraits) -> None:
        if self._traits is not None:
            raise EngineBindingError("engine binding is already set up")
        self._setup(traits)
        self._traits = traits
        LOG.debug("Engine binding set up for %s", traits.app_name)

    def initialize(self) -> None:
        self._require_setup("initialize")
        self._initialize()

    def start_maintenance(self, full_check: bool) -> bool:
        self._require_setup("start_maintenance")
        return bool(self._start_maintenance(bool(full_check)))

    def deploy_config_file(self, file_name: str, version_key: str) -> bool:
        self._require_setup("deploy_config_file")
        return bool(self._deploy_config_file(file_name, version_key))

    def finalize(self) -> None:
        self._require_setup("finalize")
        self._finalize()

    def cleanup_all_sessions(self) -> None:
        self._require_setup("cleanup_all_sessions")
        self._cleanup_all_sessions()

    # ------------------------------------------------------------------ helpers

    def _require_setup(self, operation: str) -> None:
        if self._traits is None:
            raise EngineBindingError(f"{operation}() called before setup()")

    def _set_notification_handler(self, handler: NotificationHandler) -> None:
        """
        Hand the handler to the backend.  Subclasses override when required.
        """

    def _setup(self, traits: EngineTraits) -> None:
        raise NotImplementedError

    def _initialize(self) -> None:
        raise NotImplementedError

    def _start_maintenance(self, full_check: bool) -> bool:
        raise NotImplementedError

    def _deploy_config_file(self, file_name: str, version_key: str) -> bool:
        raise NotImplementedError

    def _finalize(self) -> None:
        raise NotImplementedError

    def _cleanup_all_sessions(self) -> None:
        raise NotImplementedError
