"""
Logging setup shared by the API and the CLI.

The packaged `logging.yaml` defines formatters and handlers; the effective level
comes from `app.log_level` (env: `SURFSCORE_LOG_LEVEL`) unless the caller passes one,
as the CLI does for `--log-level`.
"""

from __future__ import annotations

import copy
import logging.config
from typing import Any

from surfscore.config.settings import get_logging_config, get_settings


def _with_level(config: dict[str, Any], level: str) -> dict[str, Any]:
    out = copy.deepcopy(config)
    out.setdefault("root", {})["level"] = level
    for handler in out.get("handlers", {}).values():
        if isinstance(handler, dict) and "level" in handler:
            handler["level"] = level
    return out


def configure_logging(level: str | None = None) -> None:
    effective = (level or get_settings().app.log_level).upper()
    logging.config.dictConfig(_with_level(get_logging_config(), effective))
