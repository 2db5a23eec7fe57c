"""
Read-only access to the deployed base configuration.

The engine writes the merged distribution config into ``<user>/build`` during
maintenance; this store only ever reads that deployed copy.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

import yaml

from .models import AppearanceMode

if TYPE_CHECKING:  # pragma: no cover
    from .panel import Panel

LOG = logging.getLogger(__name__)

_MISSING = object()

_INT_TAG = "tag:yaml.org,2002:int"


class _RimeConfigLoader(yaml.SafeLoader):
    """
    ``SafeLoader`` that leaves ``0x...`` scalars as text.

    Rime colors carry their alpha in the digit count (``0x00FFFFFF`` is
    transparent white), which an integer cannot preserve.
    """


_RimeConfigLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _INT_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
_RimeConfigLoader.add_implicit_resolver(
    _INT_TAG,
    re.compile(
        r"""^(?:[-+]?0b[0-1_]+
        |[-+]?0[0-7_]+
        |[-+]?(?:0|[1-9][0-9_]*)
        |[-+]?[1-9][0-9_]*(?::[0-5]?[0-9])+)$""",
        re.X,
    ),
    list("-+0123456789"),
)


class ConfigStoreError(RuntimeError):
    """Raised when a closed store is used."""


class ConfigStore:
    """
    One base configuration, opened once and closed when superseded.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._data: Optional[Dict[str, Any]] = None

    @classmethod
    def for_distribution(cls, build_dir: Path, file_name: str) -> "ConfigStore":
        return cls(Path(build_dir) / file_name)

    @property
    def is_open(self) -> bool:
        return self._data is not None

    def open_base(self) -> bool:
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                document = yaml.load(handle, Loader=_RimeConfigLoader)
        except OSError as exc:
            LOG.warning("Unable to read base config %s: %s", self.path, exc)
            return False
        except yaml.YAMLError as exc:
            LOG.warning("Unable to parse base config %s: %s", self.path, exc)
            return False

        if document is None:
            document = {}
        if not isinstance(document, dict):
            LOG.warning("Base config %s is not a mapping; ignoring it.", self.path)
            return False
        self._data = document
        LOG.debug("Opened base config %s", self.path)
        return True

    def close(self) -> None:
        self._data = None

    def load_into(self, panel: "Panel", mode: AppearanceMode) -> None:
        self._require_open()
        panel.load(self, mode)

    # ------------------------------------------------------------------ lookups

    def has_key(self, path: str) -> bool:
        return self._lookup(path) is not _MISSING

    def get_value(self, path: str, default: Any = None) -> Any:
        value = self._lookup(path)
        return default if value is _MISSING else value

    def get_string(self, path: str) -> Optional[str]:
        value = self._lookup(path)
        if value is _MISSING or value is None or isinstance(value, (dict, list)):
            return None
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    def get_bool(self, path: str) -> Optional[bool]:
        value = self._lookup(path)
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in {"true", "false"}:
            return value.lower() == "true"
        return None

    def get_int(self, path: str) -> Optional[int]:
        value = self._lookup(path)
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            try:
                return int(value, 0)
            except ValueError:
                return None
        return None

    def get_double(self, path: str) -> Optional[float]:
        value = self._lookup(path)
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value)
            except ValueError:
                return None
        return None

    def get_color(self, path: str) -> Optional[Tuple[int, int, int, int]]:
        """
        Decode a Rime ``0xBBGGRR`` / ``0xAABBGGRR`` color as ``(r, g, b, a)``.
        """

        value = self._lookup(path)
        if isinstance(value, bool):
            return None
        if isinstance(value, str):
            text = value.strip().lower()
            if not text.startswith("0x"):
                return None
            digits = text[2:]
            if len(digits) not in (6, 8):
                return None
            try:
                number = int(digits, 16)
            except ValueError:
                return None
            has_alpha = len(digits) == 8
        elif isinstance(value, int):
            # Plain decimal; only an explicit 8-digit hex string carries alpha.
            number = value
            has_alpha = number > 0xFFFFFF
        else:
            return None

        alpha = (number >> 24) & 0xFF if has_alpha else 0xFF
        blue = (number >> 16) & 0xFF
        green = (number >> 8) & 0xFF
        red = number & 0xFF
        return red, green, blue, alpha

    # ------------------------------------------------------------------ helpers

    def _require_open(self) -> None:
        if self._data is None:
            raise ConfigStoreError(f"config store {self.path} is not open")

    def _lookup(self, path: str) -> Any:
        self._require_open()
        node: Any = self._data
        for key in [part for part in path.split("/") if part]:
            if isinstance(node, dict) and key in node:
                node = node[key]
            elif isinstance(node, list) and key.lstrip("@").isdigit():
                index = int(key.lstrip("@"))
                if index >= len(node):
                    return _MISSING
                node = node[index]
            else:
                return _MISSING
        return node
