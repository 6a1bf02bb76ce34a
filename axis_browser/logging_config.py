from __future__ import annotations

import logging
import os
from typing import Optional, Union

from pythonjsonlogger import jsonlogger

LOG_FORMAT_ENV = "AXIS_BROWSER_LOG_FORMAT"
LOG_LEVEL_ENV = "AXIS_BROWSER_LOG_LEVEL"

PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _resolve_level(level: Optional[Union[int, str]]) -> int:
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV, "INFO")
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    # getLevelName answers "Level X" for names it does not know
    return resolved if isinstance(resolved, int) else logging.INFO


def _build_formatter(format_mode: str) -> logging.Formatter:
    if format_mode == "plain":
        return logging.Formatter(PLAIN_FORMAT)
    return jsonlogger.JsonFormatter(JSON_FORMAT, rename_fields={"levelname": "level"})


def configure_logging(
        level: Optional[Union[int, str]] = None,
        force_format: Optional[str] = None,
) -> None:
    """
    Configure the root logger for engine hosts.

    Format: ``force_format`` ("json" or "plain"), else AXIS_BROWSER_LOG_FORMAT,
    else JSON. Level: ``level`` (int or name), else AXIS_BROWSER_LOG_LEVEL,
    else INFO.

    Engine modules log form and session activity with ``extra=`` context
    (binding_id, endpoint, attribute), which the JSON formatter emits as
    top-level keys.
    """
    format_mode = (force_format or os.getenv(LOG_FORMAT_ENV, "json")).strip().lower()

    root = logging.getLogger()
    root.setLevel(_resolve_level(level))

    handler = logging.StreamHandler()
    handler.setFormatter(_build_formatter(format_mode))

    # Replace any existing handlers to avoid duplicate logs
    root.handlers.clear()
    root.addHandler(handler)
