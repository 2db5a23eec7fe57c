"""
ctypes binding for the librime shared library.

Only the lifecycle slice of the ``RimeApi`` function table is mapped.  The
table is a C struct of function pointers that librime only ever grows at the
end, so describing a prefix of it is safe.
"""

from __future__ import annotations

import ctypes
import ctypes.util
import logging
from typing import Any, List, Optional

from .binding import EngineBinding, EngineTraits, EngineUnavailableError, NotificationHandler

LOG = logging.getLogger(__name__)

Bool = ctypes.c_int
RimeSessionId = ctypes.c_size_t

RimeNotificationHandler = ctypes.CFUNCTYPE(
    None, ctypes.c_void_p, RimeSessionId, ctypes.c_char_p, ctypes.c_char_p
)


class RimeTraits(ctypes.Structure):
    _fields_ = [
        ("data_size", ctypes.c_int),
        ("shared_data_dir", ctypes.c_char_p),
        ("user_data_dir", ctypes.c_char_p),
        ("distribution_name", ctypes.c_char_p),
        ("distribution_code_name", ctypes.c_char_p),
        ("distribution_version", ctypes.c_char_p),
        ("app_name", ctypes.c_char_p),
        ("modules", ctypes.POINTER(ctypes.c_char_p)),
        ("min_log_level", ctypes.c_int),
        ("log_dir", ctypes.c_char_p),
        ("prebuilt_data_dir", ctypes.c_char_p),
        ("staging_dir", ctypes.c_char_p),
    ]


class RimeApi(ctypes.Structure):
    _fields_ = [
        ("data_size", ctypes.c_int),
        ("setup", ctypes.CFUNCTYPE(None, ctypes.POINTER(RimeTraits))),
        ("set_notification_handler", ctypes.CFUNCTYPE(None, RimeNotificationHandler, ctypes.c_void_p)),
        ("initialize", ctypes.CFUNCTYPE(None, ctypes.POINTER(RimeTraits))),
        ("finalize", ctypes.CFUNCTYPE(None)),
        ("start_maintenance", ctypes.CFUNCTYPE(Bool, Bool)),
        ("is_maintenance_mode", ctypes.CFUNCTYPE(Bool)),
        ("join_maintenance_thread", ctypes.CFUNCTYPE(None)),
        ("deployer_initialize", ctypes.CFUNCTYPE(None, ctypes.POINTER(RimeTraits))),
        ("prebuild", ctypes.CFUNCTYPE(Bool)),
        ("deploy", ctypes.CFUNCTYPE(Bool)),
        ("deploy_schema", ctypes.CFUNCTYPE(Bool, ctypes.c_char_p)),
        ("deploy_config_file", ctypes.CFUNCTYPE(Bool, ctypes.c_char_p, ctypes.c_char_p)),
        ("sync_user_data", ctypes.CFUNCTYPE(Bool)),
        ("create_session", ctypes.CFUNCTYPE(RimeSessionId)),
        ("find_session", ctypes.CFUNCTYPE(Bool, RimeSessionId)),
        ("destroy_session", ctypes.CFUNCTYPE(Bool, RimeSessionId)),
        ("cleanup_stale_sessions", ctypes.CFUNCTYPE(None)),
        ("cleanup_all_sessions", ctypes.CFUNCTYPE(None)),
    ]


def _encode(value: str) -> bytes:
    return value.encode("utf-8")


def _decode(value: Optional[bytes]) -> str:
    if value is None:
        return ""
    return value.decode("utf-8", errors="replace")


def build_traits(traits: EngineTraits) -> RimeTraits:
    """
    Fill a ``RimeTraits`` struct the way ``RIME_STRUCT_INIT`` does.
    """

    struct = RimeTraits()
    struct.data_size = ctypes.sizeof(RimeTraits) - ctypes.sizeof(ctypes.c_int)
    struct.shared_data_dir = _encode(traits.shared_data_dir)
    struct.user_data_dir = _encode(traits.user_data_dir)
    struct.log_dir = _encode(traits.log_dir)
    struct.distribution_code_name = _encode(traits.distribution_code_name)
    struct.distribution_name = _encode(traits.distribution_name)
    struct.distribution_version = _encode(traits.distribution_version)
    struct.app_name = _encode(traits.app_name)
    return struct


def load_library(path: Optional[str] = None) -> ctypes.CDLL:
    library_path = path or ctypes.util.find_library("rime")
    if not library_path:
        raise EngineUnavailableError(
            "librime is not available. Install librime or point RIMEHOST_LIBRIME at the shared library."
        )
    try:
        return ctypes.CDLL(library_path)
    except OSError as exc:
        raise EngineUnavailableError(f"Unable to load librime from {library_path}") from exc


class LibrimeBinding(EngineBinding):
    """
    Drive librime through its ``RimeApi`` function table.
    """

    def __init__(self, library_path: Optional[str] = None) -> None:
        super().__init__()
        library = load_library(library_path)
        get_api = getattr(library, "rime_get_api", None)
        if get_api is None:
            raise EngineUnavailableError("librime does not export rime_get_api()")
        get_api.restype = ctypes.POINTER(RimeApi)
        get_api.argtypes = []
        api_pointer = get_api()
        if not api_pointer:
            raise EngineUnavailableError("rime_get_api() returned NULL")
        self._library = library
        self._api: RimeApi = api_pointer.contents
        # librime keeps raw pointers to both of these.
        self._traits_struct: Optional[RimeTraits] = None
        self._c_handler: Optional[Any] = None
        self._keepalive: List[Any] = []

    def _set_notification_handler(self, handler: NotificationHandler) -> None:
        def _trampoline(_context: Any, session_id: int, message_type: Optional[bytes], message_value: Optional[bytes]) -> None:
            try:
                handler(int(session_id), _decode(message_type), _decode(message_value))
            except Exception:  # pragma: no cover - must not unwind into C
                LOG.exception("Engine notification handler failed.")

        c_handler = RimeNotificationHandler(_trampoline)
        self._api.set_notification_handler(c_handler, None)
        if self._c_handler is not None:
            self._keepalive.append(self._c_handler)
        self._c_handler = c_handler

    def _setup(self, traits: EngineTraits) -> None:
        self._traits_struct = build_traits(traits)
        self._api.setup(ctypes.byref(self._traits_struct))

    def _initialize(self) -> None:
        self._api.initialize(None)

    def _start_maintenance(self, full_check: bool) -> bool:
        started = bool(self._api.start_maintenance(1 if full_check else 0))
        if started:
            # Maintenance runs on an engine thread; callers expect it done.
            self._api.join_maintenance_thread()
        return started

    def _deploy_config_file(self, file_name: str, version_key: str) -> bool:
        return bool(self._api.deploy_config_file(_encode(file_name), _encode(version_key)))

    def _finalize(self) -> None:
        self._api.finalize()

    def _cleanup_all_sessions(self) -> None:
        self._api.cleanup_all_sessions()
