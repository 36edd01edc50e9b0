"""
streetcam.logging_setup — Root logger configuration for the CLI.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed here, once, by whoever runs the process.
"""

from __future__ import annotations
import json
import logging
import os
import sys
import time
from typing import Optional


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line:
      { "t": 1700000000000, "lvl": "INFO", "name": "streetcam.monitor", "msg": "text" }
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "t": int(record.created * 1000),
            "lvl": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: Optional[str] = None, json_output: bool = False) -> None:
    """
    Configure the root logger once.
    Level precedence:
      - explicit `level` arg
      - env LOG_LEVEL (e.g., DEBUG/INFO/WARNING/ERROR)
      - default INFO
    """
    root = logging.getLogger()
    if getattr(root, "_streetcam_configured", False):
        return

    lvl_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    lvl = getattr(logging, lvl_name, None)
    if not isinstance(lvl, int):
        lvl = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s")
        formatter.converter = time.gmtime
        handler.setFormatter(formatter)

    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(lvl)
    root._streetcam_configured = True  # type: ignore[attr-defined]
