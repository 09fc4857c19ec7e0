"""
Centralized logging configuration for the ports monitor.

Console output goes to stderr so that JSON written to stdout stays parseable.
An optional log file (``PORTS_MONITOR_LOG_FILE``) receives INFO and above with
the technical formatter.
"""

import logging
import sys
import threading
from pathlib import Path
from typing import Optional

from .config import env_str

# Thread-safe lock for logging configuration
_config_lock = threading.Lock()
_MODULE_LOGGER = logging.getLogger(__name__)
_UNKNOWN_LOGGER_NAME = "<unknown>"

_TECHNICAL_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _close_handlers(logger: logging.Logger, logger_name: Optional[str] = None) -> None:
    """Close all handlers for a logger, logging any errors."""
    for handler in list(logger.handlers):
        try:
            handler.close()
        except OSError as e:  # policy_guard: allow-silent-handler
            safe_name = logger_name if logger_name else _UNKNOWN_LOGGER_NAME
            _MODULE_LOGGER.debug("Handler close failed for logger '%s': %s", safe_name, e)


def _reset_root_handlers(root_logger: logging.Logger) -> None:
    _close_handlers(root_logger, "root")
    root_logger.handlers = []


def _build_console_handler(verbose: bool) -> logging.Handler:
    if verbose:
        formatter = logging.Formatter(_TECHNICAL_FORMAT, _DATE_FORMAT)
    else:
        formatter = logging.Formatter("%(levelname)s: %(message)s")

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    return console_handler


def _build_file_handler(log_file: Optional[Path]) -> Optional[logging.Handler]:
    if log_file is None:
        configured = env_str("PORTS_MONITOR_LOG_FILE")
        if not configured:
            return None
        log_file = Path(configured).expanduser()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(_TECHNICAL_FORMAT, _DATE_FORMAT))
    file_handler.setLevel(logging.INFO)
    return file_handler


def _suppress_noisy_third_parties() -> None:
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def setup_logging(verbose: bool = False, log_file: Optional[Path] = None) -> None:
    """Configure root logging for a CLI run; repeated calls replace earlier handlers."""

    with _config_lock:
        root_logger = logging.getLogger()
        _reset_root_handlers(root_logger)

        root_logger.addHandler(_build_console_handler(verbose))

        file_handler = _build_file_handler(log_file)
        if file_handler:
            root_logger.addHandler(file_handler)

        root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
        _suppress_noisy_third_parties()


__all__ = ["setup_logging"]
