"""Process-wide logging configuration, called once by the CLI."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

CONSOLE_FORMAT = "[%(levelname)s] %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | int = "INFO", log_file: Optional[str] = None) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=CONSOLE_FORMAT)
    root = logging.getLogger()
    root.setLevel(level)
    if log_file:
        dir_part = os.path.dirname(log_file)
        if dir_part:
            os.makedirs(dir_part, exist_ok=True)
        handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
        handler.setFormatter(logging.Formatter(FILE_FORMAT))
        root.addHandler(handler)
    # keep per-request chatter out of INFO output
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
