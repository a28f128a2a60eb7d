# src/tasksync/logging_setup.py

"""
Logging for the tasksync admin console.

stderr shows what an operator typing /commands cares about (batches, conflicts,
snapshot problems); tasksync.log under the data dir keeps every store mutation.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "tasksync.log"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Console thresholds for our own loggers; first matching prefix wins.
_APP_CONSOLE_LEVELS = (
    ("tasksync.tasks.task_store", logging.INFO),
    ("tasksync.", logging.NOTSET),
)


class _ConsoleNoiseFilter(logging.Filter):
    """Per-mutation store DEBUG lines stay in the file; non-tasksync loggers need ERROR."""

    def filter(self, record: logging.LogRecord) -> bool:
        for prefix, level in _APP_CONSOLE_LEVELS:
            if record.name.startswith(prefix):
                return record.levelno >= level
        # py.warnings and third-party libraries
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/tasksync",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Install the stderr + tasksync.log handlers on the root logger.

    Replaces existing root handlers, so calling it twice does not duplicate lines.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_dir / LOG_FILE_NAME), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
