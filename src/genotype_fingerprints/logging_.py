"""Logging utilities.

We use Python's standard `logging` module with a single plain format.

- Logs go to: `<log_dir>/<run_id>.log` when a log directory is configured
- Also prints to stderr, so stdout stays free for tabular results.
"""

from __future__ import annotations
import logging
import os
from datetime import datetime, timezone
from typing import List, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# handlers installed by the last setup_logging call, replaced on the next one
_installed: List[logging.Handler] = []


def make_run_id(command: str) -> str:
    """Run identifier used for log file names: `<command>_<YYYYMMDDHHMMSS>`."""
    ts = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    return f"{command}_{ts}"


def setup_logging(run_id: str, log_dir: Optional[str] = None, level: str = "INFO") -> None:
    """
    Setup logging configuration.

    Args:
        run_id: Run identifier, used as the log file name
        log_dir: Directory for the run log (if None, only the console handler is installed)
        level: Root log level name (DEBUG, INFO, WARNING, ...)
    """
    root = logging.getLogger()
    for handler in _installed:
        root.removeHandler(handler)
        handler.close()
    _installed.clear()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    # Console
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    root.addHandler(ch)
    _installed.append(ch)

    # File
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        fh = logging.FileHandler(os.path.join(log_dir, f"{run_id}.log"), encoding="utf-8")
        fh.setFormatter(fmt)
        root.addHandler(fh)
        _installed.append(fh)
