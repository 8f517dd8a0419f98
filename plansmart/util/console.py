# plansmart/util/console.py
from __future__ import annotations

import logging
import sys
from typing import Any, Union

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def eprint(*args: Any) -> None:
    print(*args, file=sys.stderr)


def configure_logging(level: Union[int, str] = logging.WARNING) -> None:
    """Install a stderr handler on the root logger (CLI entry points only)."""
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT, stream=sys.stderr)
    logging.getLogger().setLevel(level)
