"""
System power-off source backed by systemd-logind.

logind broadcasts ``PrepareForShutdown(true)`` on the system bus right before
the machine powers off.  The monitor listens on its own GLib main loop thread
and hands every event to ``on_power_off``; the host is responsible for moving
that call onto its event loop.  When PyGObject or the system bus is missing
the monitor logs once and stays inactive.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

LOG = logging.getLogger(__name__)

LOGIND_BUS_NAME = "org.freedesktop.login1"
LOGIND_OBJECT_PATH = "/org/freedesktop/login1"
LOGIND_MANAGER_INTERFACE = "org.freedesktop.login1.Manager"
PREPARE_FOR_SHUTDOWN = "PrepareForShutdown"

try:  # pragma: no cover - availability depends on host environment
    import gi  # type: ignore

    gi.require_version("Gio", "2.0")
    from gi.repository import Gio, GLib  # type: ignore
except (ImportError, ValueError) as exc:  # pragma: no cover
    Gio = None  # type: ignore[assignment]
    GLib = None  # type: ignore[assignment]
    _GI_IMPORT_ERROR: Optional[BaseException] = exc
else:  # pragma: no cover - executed only when PyGObject is present
    _GI_IMPORT_ERROR = None


class PowerOffMonitor:
    def __init__(self, on_power_off: Callable[[], None]) -> None:
        self._on_power_off = on_power_off
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[Any] = None
        self._connection: Optional[Any] = None
        self._subscription_id: Optional[int] = None
        self._ready = threading.Event()

    @property
    def active(self) -> bool:
        return self._subscription_id is not None

    def start(self) -> bool:
        if self._thread is not None:
            return self.active
        if Gio is None:
            LOG.info("PyGObject is not available (%s); power-off events will not be observed.", _GI_IMPORT_ERROR)
            return False

        try:  # pragma: no cover - requires a system bus
            self._connection = Gio.bus_get_sync(Gio.BusType.SYSTEM, None)
        except GLib.Error as exc:  # pragma: no cover
            LOG.warning("System bus unavailable (%s); power-off events will not be observed.", exc)
            self._connection = None
            return False

        self._ready.clear()
        self._thread = threading.Thread(target=self._run, name="rimehost-logind", daemon=True)
        self._thread.start()
        self._ready.wait(timeout=2.0)
        return self.active

    def stop(self) -> None:
        if self._loop is not None:  # pragma: no cover - requires a system bus
            self._loop.get_context().invoke_full(GLib.PRIORITY_DEFAULT, self._quit_loop)
        if self._thread is not None:
            self._thread.join(timeout=2.0)
        self._thread = None
        self._loop = None
        self._connection = None
        self._subscription_id = None

    # ------------------------------------------------------------------ helpers

    def _run(self) -> None:  # pragma: no cover - requires a system bus
        context = GLib.MainContext()
        context.push_thread_default()
        try:
            self._loop = GLib.MainLoop(context)
            self._subscription_id = self._connection.signal_subscribe(
                LOGIND_BUS_NAME,
                LOGIND_MANAGER_INTERFACE,
                PREPARE_FOR_SHUTDOWN,
                LOGIND_OBJECT_PATH,
                None,
                Gio.DBusSignalFlags.NONE,
                self._on_signal,
            )
            LOG.info("Watching logind for power-off.")
            self._ready.set()
            self._loop.run()
        finally:
            self._ready.set()
            context.pop_thread_default()

    def _quit_loop(self) -> bool:  # pragma: no cover - requires a system bus
        if self._connection is not None and self._subscription_id is not None:
            self._connection.signal_unsubscribe(self._subscription_id)
        if self._loop is not None:
            self._loop.quit()
        return False

    def _on_signal(self, _connection, _sender, _path, _interface, _signal, parameters, *_user_data) -> None:  # pragma: no cover
        (active,) = parameters.unpack()
        self._on_prepare_for_shutdown(bool(active))

    def _on_prepare_for_shutdown(self, active: bool) -> None:
        # logind also emits False when a shutdown is cancelled.
        if not active:
            LOG.debug("Shutdown cancelled by logind.")
            return
        try:
            self._on_power_off()
        except Exception:
            LOG.exception("Power-off callback failed.")
