"""Console and file logging for command line runs."""
from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

LOG_FORMAT = "[%(asctime)s.%(msecs)03d] [%(levelname)-7s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
BANNER_FORMAT = "%Y-%m-%d %H:%M:%S"


def log_file_path(log_dir: Path, now: Optional[datetime] = None) -> Path:
    now = now or datetime.now()
    return log_dir / f"reconciliation-{now:%Y%m%d-%H%M%S}.log"


class RunLog:
    """Context manager that routes ``csvrecon`` log records to console and file.

    The log file is opened with a start banner and closed with an end banner.
    """

    def __init__(self, path: Path, *, level: int = logging.INFO, logger_name: str = "csvrecon") -> None:
        self.path = path
        self.level = level
        self.logger = logging.getLogger(logger_name)
        self._handlers: List[logging.Handler] = []
        self._previous_level = self.logger.level

    def __enter__(self) -> "RunLog":
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as handle:
            handle.write(f"=== CSV Reconciliation Tool Log - Started {datetime.now():{BANNER_FORMAT}} ===\n")

        formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
        file_handler = logging.FileHandler(self.path, mode="a", encoding="utf-8")
        console_handler = logging.StreamHandler(sys.stderr)
        for handler in (file_handler, console_handler):
            handler.setFormatter(formatter)
            handler.setLevel(self.level)
            self.logger.addHandler(handler)
            self._handlers.append(handler)
        self.logger.setLevel(self.level)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        for handler in self._handlers:
            handler.flush()
            self.logger.removeHandler(handler)
            handler.close()
        self._handlers.clear()
        self.logger.setLevel(self._previous_level)

        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(f"\n=== Log Ended {datetime.now():{BANNER_FORMAT}} ===\n")
