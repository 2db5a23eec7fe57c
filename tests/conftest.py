from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

import pytest

from rimehost import HostConfig
from rimehost.config import ConfigStore
from rimehost.lifecycle import LifecycleController
from rimehost.panel import Panel
from rimehost.runtime.binding import EngineBinding, EngineTraits

BASE_CONFIG = """\
config_version: "1.0"
style:
  color_scheme: aqua
  color_scheme_dark: ink
  font_face: Noto Sans CJK SC
  font_point: 16
  candidate_list_layout: linear
preset_color_schemes:
  aqua:
    back_color: 0xFFFFFF
    text_color: "0x424242"
    candidate_text_color: "0x000000"
  ink:
    back_color: "0xCC1E1E1E"
    text_color: 0xEEEEEE
"""


class RecordingBinding(EngineBinding):
    """Engine binding that records every call into a shared list."""

    def __init__(self, calls: List[tuple], maintenance_results: Sequence[bool] = (True,)) -> None:
        super().__init__()
        self.calls = calls
        self.maintenance_results = list(maintenance_results)
        self.deploy_result = True
        self.handler = None

    def _set_notification_handler(self, handler) -> None:
        self.calls.append(("set_notification_handler",))
        self.handler = handler

    def _setup(self, traits: EngineTraits) -> None:
        self.calls.append(("setup", traits.app_name))

    def _initialize(self) -> None:
        self.calls.append(("initialize",))

    def _start_maintenance(self, full_check: bool) -> bool:
        self.calls.append(("start_maintenance", full_check))
        if len(self.maintenance_results) > 1:
            return self.maintenance_results.pop(0)
        return self.maintenance_results[0]

    def _deploy_config_file(self, file_name: str, version_key: str) -> bool:
        self.calls.append(("deploy_config_file", file_name, version_key))
        return self.deploy_result

    def _finalize(self) -> None:
        self.calls.append(("finalize",))

    def _cleanup_all_sessions(self) -> None:
        self.calls.append(("cleanup_all_sessions",))


class RecordingPanel(Panel):
    def __init__(self, calls: List[tuple]) -> None:
        super().__init__()
        self.calls = calls
        self.loads: List[tuple] = []

    def load(self, config, mode) -> None:
        self.calls.append(("load", mode))
        self.loads.append((config, mode))
        super().load(config, mode)

    def hide(self) -> None:
        self.calls.append(("hide",))
        super().hide()


class SpyConfigStore(ConfigStore):
    def __init__(self, path: Path, calls: List[tuple]) -> None:
        super().__init__(path)
        self.calls = calls

    def open_base(self) -> bool:
        self.calls.append(("open_base",))
        return super().open_base()

    def close(self) -> None:
        self.calls.append(("close",))
        super().close()


class Harness:
    def __init__(self, host_config: HostConfig, maintenance_results: Sequence[bool] = (True,)) -> None:
        self.calls: List[tuple] = []
        self.host_config = host_config
        self.binding = RecordingBinding(self.calls, maintenance_results)
        self.panel: Optional[RecordingPanel] = None
        self.stores: List[SpyConfigStore] = []
        self.controller = LifecycleController(
            self.binding,
            host_config,
            panel_factory=self._make_panel,
            config_factory=self._make_store,
        )

    def _make_panel(self) -> RecordingPanel:
        self.panel = RecordingPanel(self.calls)
        return self.panel

    def _make_store(self) -> SpyConfigStore:
        store = SpyConfigStore(self.host_config.build_dir / self.host_config.config_file_name, self.calls)
        self.stores.append(store)
        return store

    def write_base_config(self, text: str = BASE_CONFIG) -> Path:
        path = self.host_config.build_dir / self.host_config.config_file_name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    def clear(self) -> None:
        del self.calls[:]


@pytest.fixture
def base_config() -> str:
    return BASE_CONFIG


@pytest.fixture
def host_config(tmp_path: Path) -> HostConfig:
    return HostConfig(
        shared_data_dir=tmp_path / "shared",
        user_data_dir=tmp_path / "user",
        log_dir=tmp_path / "log",
    )


@pytest.fixture
def harness(host_config: HostConfig) -> Harness:
    host = Harness(host_config)
    host.write_base_config()
    return host


@pytest.fixture
def make_harness(host_config: HostConfig):
    def _make(maintenance_results: Sequence[bool] = (True,), write_config: bool = True) -> Harness:
        host = Harness(host_config, maintenance_results)
        if write_config:
            host.write_base_config()
        return host

    return _make
