"""
In-process notification bus and the router feeding lifecycle triggers.

Two centers exist at runtime: the *workspace* center carries OS events such as
power-off, the *distributed* center carries named signals any process may emit
through the control API.  The router subscribes to exactly one name on each
and keeps the returned tokens so removal never depends on who else listens.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from .models import LifecycleTrigger, PowerOff, ReloadRequested

LOG = logging.getLogger(__name__)

WILL_POWER_OFF = "willPowerOff"
RELOAD_NOTIFICATION = "RimeHostReloadNotification"

KNOWN_NOTIFICATIONS = (WILL_POWER_OFF, RELOAD_NOTIFICATION)


@dataclass(frozen=True)
class Notification:
    name: str
    payload: Dict[str, Any] = field(default_factory=dict)


NotificationCallback = Callable[[Notification], None]


class NotificationCenter:
    """
    Map notification names to subscriber callbacks.
    """

    def __init__(self, label: str = "default") -> None:
        self.label = label
        self._lock = threading.RLock()
        self._token_counter = 0
        self._subscribers: Dict[int, Tuple[str, NotificationCallback]] = {}

    def subscribe(self, name: str, callback: NotificationCallback) -> int:
        if not callable(callback):
            raise TypeError("callback must be callable")
        with self._lock:
            self._token_counter += 1
            token = self._token_counter
            self._subscribers[token] = (name, callback)
        LOG.debug("%s center: token %s subscribed to %s", self.label, token, name)
        return token

    def unsubscribe(self, token: int) -> bool:
        with self._lock:
            removed = self._subscribers.pop(token, None)
        return removed is not None

    def subscriber_count(self, name: Optional[str] = None) -> int:
        with self._lock:
            if name is None:
                return len(self._subscribers)
            return sum(1 for sub_name, _ in self._subscribers.values() if sub_name == name)

    def post(self, name: str, payload: Optional[Dict[str, Any]] = None) -> int:
        """
        Deliver ``name`` synchronously to its subscribers in subscription order.

        Returns the number of callbacks invoked.
        """

        notification = Notification(name=name, payload=dict(payload or {}))
        with self._lock:
            callbacks: List[Tuple[int, NotificationCallback]] = [
                (token, callback)
                for token, (sub_name, callback) in sorted(self._subscribers.items())
                if sub_name == name
            ]
        if not callbacks:
            LOG.debug("%s center: no subscribers for %s", self.label, name)
            return 0
        for token, callback in callbacks:
            try:
                callback(notification)
            except Exception:
                LOG.exception("%s center: subscriber %s failed for %s.", self.label, token, name)
        return len(callbacks)


class NotificationRouter:
    """
    Forward power-off and reload notifications to a trigger dispatcher.
    """

    def __init__(
        self,
        dispatch: Callable[[LifecycleTrigger], None],
        *,
        workspace_center: NotificationCenter,
        distributed_center: NotificationCenter,
    ) -> None:
        self._dispatch = dispatch
        self._workspace_center = workspace_center
        self._distributed_center = distributed_center
        self._tokens: List[Tuple[NotificationCenter, int]] = []

    @property
    def installed(self) -> bool:
        return bool(self._tokens)

    @property
    def subscriptions(self) -> List[Tuple[str, int]]:
        return [(center.label, token) for center, token in self._tokens]

    def install(self) -> None:
        if self._tokens:
            LOG.debug("Notification subscriptions already installed.")
            return
        self._tokens.append(
            (self._workspace_center, self._workspace_center.subscribe(WILL_POWER_OFF, self._on_power_off))
        )
        self._tokens.append(
            (self._distributed_center, self._distributed_center.subscribe(RELOAD_NOTIFICATION, self._on_reload))
        )

    def remove(self) -> None:
        tokens, self._tokens = self._tokens, []
        for center, token in tokens:
            center.unsubscribe(token)

    def _on_power_off(self, _notification: Notification) -> None:
        LOG.info("Finalizing before logging out.")
        self._dispatch(PowerOff())

    def _on_reload(self, _notification: Notification) -> None:
        LOG.info("Reloading rime on demand.")
        self._dispatch(ReloadRequested())
