"""
Filesystem and distribution lookups used while bootstrapping the engine.
"""

from __future__ import annotations

import logging
import os
import tempfile
from importlib import metadata
from pathlib import Path
from typing import Optional

LOG = logging.getLogger(__name__)

DISTRIBUTION_NAME = "rime-host"
UNKNOWN_VERSION = "Unknown"

ENV_SHARED_DATA_DIR = "RIMEHOST_SHARED_DATA_DIR"
ENV_USER_DATA_DIR = "RIMEHOST_USER_DATA_DIR"
ENV_LOG_DIR = "RIMEHOST_LOG_DIR"

_SHARED_DATA_CANDIDATES = (
    Path("/usr/share/rime-data"),
    Path("/usr/local/share/rime-data"),
    Path("/opt/homebrew/share/rime-data"),
)


def _env_path(name: str) -> Optional[Path]:
    value = os.environ.get(name)
    if not value:
        return None
    return Path(value).expanduser()


def default_shared_data_dir() -> Path:
    env_dir = _env_path(ENV_SHARED_DATA_DIR)
    if env_dir is not None:
        return env_dir
    for candidate in _SHARED_DATA_CANDIDATES:
        if candidate.is_dir():
            return candidate
    return _SHARED_DATA_CANDIDATES[0]


def default_user_data_dir() -> Path:
    env_dir = _env_path(ENV_USER_DATA_DIR)
    if env_dir is not None:
        return env_dir
    config_home = _env_path("XDG_CONFIG_HOME") or Path.home() / ".config"
    return config_home / "rimehost" / "rime"


def default_log_dir(app_name: str) -> Path:
    env_dir = _env_path(ENV_LOG_DIR)
    if env_dir is not None:
        return env_dir
    return Path(tempfile.gettempdir()) / app_name


def distribution_version() -> str:
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return UNKNOWN_VERSION


def ensure_directory(path: Path) -> bool:
    """
    Create ``path`` (with parents) if it does not exist yet.

    Failures are logged and reported through the return value; callers carry
    on either way and let the engine surface any follow-up problems.
    """

    if path.is_dir():
        return True
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError:
        LOG.error("Error creating directory: %s", path, exc_info=True)
        return False
    return True
