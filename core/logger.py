# core/logger.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

_configured = False

NOISY_LOGGERS = ("urllib3", "charset_normalizer")


def setup_logging():
    global _configured
    if _configured:
        return

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_to_file = os.getenv("LOG_TO_FILE", "false").lower() == "true"
    log_file = os.getenv("LOG_FILE", "data/storefront.log")
    log_max_bytes = int(os.getenv("LOG_MAX_BYTES", str(1024 * 1024)))
    log_backups = int(os.getenv("LOG_BACKUPS", "3"))
    log_to_stdout = os.getenv("LOG_TO_STDOUT", "false").lower() == "true"

    level = getattr(logging, log_level, logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s"
    )

    # Leave handlers installed by the host (pytest, an embedding app) alone
    if not root.handlers:
        if log_to_stdout:
            ch = logging.StreamHandler(sys.stdout)
            ch.setLevel(level)
            ch.setFormatter(formatter)
            root.addHandler(ch)

        if log_to_file:
            try:
                log_dir = os.path.dirname(log_file)
                if log_dir:
                    os.makedirs(log_dir, exist_ok=True)
                fh = RotatingFileHandler(
                    log_file,
                    maxBytes=log_max_bytes,
                    backupCount=log_backups,
                )
                fh.setLevel(level)
                fh.setFormatter(formatter)
                root.addHandler(fh)
            except OSError as e:
                root.warning("Failed to initialize file logging: %s", e)

    # requests' connection pool is chatty at DEBUG; keep it at its own level
    library_level = os.getenv("LOG_LIBRARY_LEVEL", "WARNING").upper()
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(getattr(logging, library_level, logging.WARNING))

    _configured = True


def get_logger(name: str | None = None) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
