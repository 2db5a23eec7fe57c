"""
Logging helpers for the rime host.

Centralising log configuration keeps the rest of the modules focused on their
domain logic and makes it easy to point the host log at the engine log
directory.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_FILE_NAME = "rimehost.log"


def configure_logging(
    level: int = logging.INFO,
    format: Optional[str] = None,
    log_dir: Optional[Path] = None,
) -> None:
    """
    Ensure the root logger is configured exactly once.

    When ``log_dir`` is given and writable, records are mirrored into
    ``rimehost.log`` next to the engine's own logs.
    """

    if logging.getLogger().handlers:
        # Respect any user provided configuration.
        return

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    file_error: Optional[OSError] = None
    if log_dir is not None:
        try:
            Path(log_dir).mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(Path(log_dir) / LOG_FILE_NAME, encoding="utf-8"))
        except OSError as exc:
            file_error = exc

    logging.basicConfig(
        level=level,
        format=format or DEFAULT_FORMAT,
        handlers=handlers,
    )

    if file_error is not None:
        logging.getLogger(__name__).warning(
            "Unable to write host log into %s (%s); logging to stdout only.", log_dir, file_error
        )
