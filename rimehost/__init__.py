"""
Rime host package.

Hosts the Rime input-method engine inside a long running process: the
lifecycle controller owns the engine state, reloads the presentation
configuration and reacts to power-off and reload notifications.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .utils.paths import default_log_dir, default_shared_data_dir, default_user_data_dir

__all__ = [
    "HostConfig",
]

DEFAULT_APP_NAME = "rime.rimehost"


@dataclass
class HostConfig:
    """Top level host configuration."""

    distribution_code_name: str = "RimeHost"
    distribution_name: str = "Rime Host"
    app_name: str = DEFAULT_APP_NAME
    shared_data_dir: Path = field(default_factory=default_shared_data_dir)
    user_data_dir: Path = field(default_factory=default_user_data_dir)
    log_dir: Optional[Path] = None
    librime_path: Optional[str] = None
    control_host: str = "127.0.0.1"
    control_port: int = 8765

    def __post_init__(self) -> None:
        self.shared_data_dir = Path(self.shared_data_dir)
        self.user_data_dir = Path(self.user_data_dir)
        if self.log_dir is None:
            self.log_dir = default_log_dir(self.app_name)
        self.log_dir = Path(self.log_dir)

    @property
    def config_file_name(self) -> str:
        """Name of the distribution config deployed on maintenance success."""
        return f"{self.distribution_code_name.lower()}.yaml"

    @property
    def build_dir(self) -> Path:
        return self.user_data_dir / "build"
