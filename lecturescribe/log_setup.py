"""Logging configuration for LectureScribe."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from .exceptions import FileSystemError
from .utils import ensure_dir_exists

LOG_FORMAT = '%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

# Connection-level chatter from the HTTP stack
QUIET_LOGGERS = ("urllib3", "requests_toolbelt")


def setup_logging(log_level: int = logging.INFO, log_dir: str = "logs", log_file: str = "lecturescribe.log") -> None:
    """
    Routes all log records to stdout and to ``<log_dir>/<log_file>``.

    The CLI calls this twice: once with a bootstrap log before the config is
    read, then with the paths from the config. Each call replaces the root
    handlers of the previous one. If the log file cannot be opened the run
    continues with console logging only.
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    root.setLevel(log_level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    root.addHandler(console)

    log_path = os.path.join(log_dir, log_file)
    try:
        ensure_dir_exists(log_dir)
        file_handler = RotatingFileHandler(log_path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding='utf-8')
    except (OSError, FileSystemError, ValueError) as e:
        root.error(f"File logging disabled, could not open {log_path}: {e}")
    else:
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        root.debug(f"Logging to {log_path}")

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
