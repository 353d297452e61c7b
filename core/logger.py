# core/logger.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

_configured = False

# Third-party loggers that are noisy at DEBUG for every catalog page.
_CHATTY_LOGGERS = ("urllib3", "requests")


def _level(name: str, default: int = logging.INFO) -> int:
    return getattr(logging, name.upper(), default)


def setup_logging():
    """
    Configure the root logger once per process.

    Log lines go to stderr: the aggregator CLI writes its JSON result to
    stdout. LOG_HTTP_LEVEL controls the connection-pool loggers separately,
    since a full catalog walk logs one line per page at DEBUG.
    """
    global _configured
    if _configured:
        return

    level = _level(os.getenv("LOG_LEVEL", "INFO"))
    http_level = _level(os.getenv("LOG_HTTP_LEVEL", "WARNING"), logging.WARNING)
    log_to_file = os.getenv("LOG_TO_FILE", "false").lower() == "true"
    log_file = os.getenv("LOG_FILE", "/data/catalog_aggregator.log")
    log_max_bytes = int(os.getenv("LOG_MAX_BYTES", str(2 * 1024 * 1024)))
    log_backups = int(os.getenv("LOG_BACKUPS", "3"))
    log_to_stdout = os.getenv("LOG_TO_STDOUT", "true").lower() == "true"

    root = logging.getLogger()
    root.setLevel(level)
    formatter = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")

    handlers: list[logging.Handler] = []
    if log_to_stdout:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_to_file:
        try:
            os.makedirs(os.path.dirname(log_file), exist_ok=True)
            handlers.append(
                RotatingFileHandler(log_file, maxBytes=log_max_bytes, backupCount=log_backups)
            )
        except OSError as e:
            root.warning("Failed to initialize file logging at %s: %s", log_file, e)

    # Avoid duplicate handlers when something (pytest, a host app) got there first
    if not root.handlers:
        for handler in handlers:
            handler.setLevel(level)
            handler.setFormatter(formatter)
            root.addHandler(handler)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(http_level)

    _configured = True


def get_logger(name: str | None = None) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
