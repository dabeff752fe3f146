# flowfix/utils/logger.py
from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

ROOT_LOGGER = "flowfix"
LOG_FILE = "flowfix.log"

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

# ANSI codes, checked from the most severe down
_COLORS = (
    (logging.ERROR, "91"),    # red
    (logging.WARNING, "93"),  # yellow
    (logging.INFO, None),
    (logging.NOTSET, "90"),   # grey for DEBUG
)


def _resolve_level(level: Union[int, str, None]) -> int:
    """An explicit level wins; otherwise LOG_LEVEL, otherwise INFO. Unknown names fall back to INFO."""
    if isinstance(level, int):
        return level
    name = (level or os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


class _ColorFormatter(logging.Formatter):
    def __init__(self, stream) -> None:
        super().__init__(fmt=_FORMAT, datefmt=_DATEFMT)
        self._tty = hasattr(stream, "isatty") and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if not self._tty:
            return text
        for floor, code in _COLORS:
            if record.levelno >= floor:
                return f"\033[{code}m{text}\033[0m" if code else text
        return text


def init_logger(
    level: Union[int, str, None] = None,
    log_dir: Optional[Union[str, Path]] = None,
    max_mb: int = 5,
    backups: int = 3,
) -> logging.Logger:
    """
    Configure the ``flowfix`` logger and return it.

    Records go to stderr so that stdout stays free for reports and
    ``--json`` listings. With ``log_dir`` they are also written to a
    rotating ``flowfix.log`` there. Calling it again replaces the earlier
    handlers.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.propagate = False
    logger.setLevel(_resolve_level(level))

    stream = sys.stderr
    sh = logging.StreamHandler(stream)
    sh.setFormatter(_ColorFormatter(stream))
    logger.addHandler(sh)

    if log_dir:
        folder = Path(log_dir)
        folder.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(
            filename=str(folder / LOG_FILE),
            maxBytes=max_mb * 1024 * 1024,
            backupCount=backups,
            encoding="utf-8",
        )
        fh.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
        logger.addHandler(fh)

    return logger


def get_logger(child: str) -> logging.Logger:
    """``flowfix.<child>``; inherits whatever ``init_logger`` set up."""
    return logging.getLogger(ROOT_LOGGER).getChild(child)
