"""Logging for lincli commands.

stdout is reserved for command results (IDs, tables, JSON for scripts), so
diagnostics always go to stderr. `--log-level` and the `log_file` config
key feed straight into `setup_logging`.
"""

import logging
import sys
from typing import List, Optional

DEFAULT_LOG_LEVEL = logging.WARNING
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# httpx logs every request at INFO; keep it out of --log-level INFO output
QUIET_LOGGERS = ("httpx", "httpcore")


def _build_handlers(log_level: int, formatter: logging.Formatter, log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file, encoding='utf-8'))
        except OSError as e:
            # stderr logging still works without the file
            sys.stderr.write(f"lincli: cannot open log file {log_file}: {e}\n")
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
    return handlers


def setup_logging(
    log_level: int = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: Optional[str] = None,
) -> None:
    """Routes lincli's log records to stderr and, optionally, a file.

    Safe to call more than once: handlers from an earlier call are detached
    (not closed, since a test harness may own them) before new ones are added.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    for handler in _build_handlers(log_level, logging.Formatter(log_format), log_file):
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    logging.getLogger(__name__).debug(
        f"Logging to stderr at {logging.getLevelName(log_level)}" + (f" and {log_file}" if log_file else "")
    )
