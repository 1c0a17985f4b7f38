"""
Logging setup shared by the recovery fusion engine.

Every engine module logs through ``get_logger(__name__)``. A coordination
run can additionally write its own file through ``configure_run_logging``,
and the coordinator tags each of its lines with the run and bundle it is
working on through ``LoggerAdapter``.
"""

import logging
import logging.handlers
from datetime import datetime
from pathlib import Path
from typing import Any

from recovery_fusion.utils.os import find_project_root

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
# Run log files also record where each line came from
DETAILED_FORMAT = (
    "%(asctime)s - %(name)s - [%(filename)s:%(lineno)d] - %(levelname)s - %(message)s"
)

LOG_LEVELS = {
    name: getattr(logging, name)
    for name in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
}

# Engine loggers configured so far, keyed by logger name
_loggers: dict[str, logging.Logger] = {}


def _create_console_handler(
    log_level: int, formatter: logging.Formatter
) -> logging.StreamHandler:
    """
    Stream handler writing engine messages to stderr.

    :param log_level: Lowest level the handler emits
    :type log_level: int
    :param formatter: Line format
    :type formatter: logging.Formatter
    :return: Console handler
    :rtype: logging.StreamHandler
    """
    handler = logging.StreamHandler()
    handler.setLevel(log_level)
    handler.setFormatter(formatter)
    return handler


def _create_file_handler(
    log_file: str,
    log_dir: str | None,
    log_level: int,
    formatter: logging.Formatter,
    max_bytes: int,
    backup_count: int,
) -> logging.handlers.RotatingFileHandler:
    """
    Rotating file handler for a run or module log.

    The directory is created when missing. Without ``log_dir`` the file goes
    to ``logs/`` under the engine's project root.

    :param log_file: File name inside the log directory
    :type log_file: str
    :param log_dir: Log directory, or None for the project ``logs/`` folder
    :type log_dir: str | None
    :param log_level: Lowest level the handler emits
    :type log_level: int
    :param formatter: Line format
    :type formatter: logging.Formatter
    :param max_bytes: File size that triggers a rollover
    :type max_bytes: int
    :param backup_count: Rolled-over files kept beside the active one
    :type backup_count: int
    :return: File handler appending to the log file
    :rtype: logging.handlers.RotatingFileHandler
    """
    if log_dir is None:
        directory = Path(find_project_root()) / "logs"
    else:
        directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        directory / log_file, mode="a", maxBytes=max_bytes, backupCount=backup_count
    )
    handler.setLevel(log_level)
    handler.setFormatter(formatter)
    return handler


def setup_logger(
    name: str,
    level: str = "INFO",
    log_file: str | None = None,
    log_dir: str | None = None,
    console: bool = True,
    max_bytes: int = 10485760,  # 10MB
    backup_count: int = 5,
    format_string: str | None = None,
) -> logging.Logger:
    """
    Configure a logger for an engine module or a coordination run.

    A name is configured once. Later calls return the first logger
    unchanged, whatever arguments they pass, so a module importing the
    logger twice never attaches a second set of handlers. Unknown level
    names fall back to INFO.

    :param name: Logger name, usually the module's ``__name__``
    :param level: Level name such as ``DEBUG`` or ``WARNING``
    :param log_file: File name to also log to, inside ``log_dir``
    :param log_dir: Directory for ``log_file``
    :param console: Whether messages are also written to stderr
    :param max_bytes: File size that triggers a rollover
    :param backup_count: Rolled-over files to keep
    :param format_string: Line format, ``DEFAULT_FORMAT`` when None
    :return: Configured logger
    """
    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(name)
    # Configured elsewhere (e.g. by the host application)
    if logger.handlers:
        return logger

    log_level = LOG_LEVELS.get(level.upper(), logging.INFO)
    logger.setLevel(log_level)
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    if console:
        logger.addHandler(_create_console_handler(log_level, formatter))
    if log_file:
        logger.addHandler(
            _create_file_handler(
                log_file, log_dir, log_level, formatter, max_bytes, backup_count
            )
        )

    _loggers[name] = logger
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Module logger with the engine's default console setup.

    :param name: Logger name, usually ``__name__``
    :return: Logger for the module
    """
    return _loggers.get(name) or setup_logger(name)


def configure_run_logging(
    run_id: str, log_level: str = "INFO", log_dir: str | None = None
) -> logging.Logger:
    """
    Configure logging for a single coordination run.

    The run gets its own logger and log file, both named after the run id
    with ``:`` and ``/`` replaced so the id is safe in a file name. The file
    name also carries the time the run started.

    :param run_id: Run identifier the log file is named after
    :param log_level: Logging level
    :param log_dir: Optional directory for the log file
    :return: Configured logger for the run
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    safe_run_id = run_id.replace(":", "_").replace("/", "_")

    return setup_logger(
        name=f"recovery_fusion.run.{safe_run_id}",
        level=log_level,
        log_file=f"{safe_run_id}_{timestamp}.log",
        log_dir=log_dir,
        format_string=DETAILED_FORMAT,
    )


class LoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that prefixes every message with run context.

    Used by the coordinator so that all lines emitted for one bundle carry
    the same run and bundle identifiers.
    """

    def __init__(self, logger: logging.Logger, extra: dict[str, Any]):
        super().__init__(logger, extra)

    def process(self, msg: Any, kwargs: Any) -> tuple[str, Any]:
        """
        Prefix a message with ``[run_id=... - bundle_id=...]``.

        :param msg: Message being logged
        :type msg: Any
        :param kwargs: Logging call keyword arguments, passed through
        :type kwargs: Any
        :return: Prefixed message and the untouched kwargs
        :rtype: tuple[str, Any]
        """
        if not self.extra:
            return str(msg), kwargs
        context = " - ".join(f"{key}={value}" for key, value in self.extra.items())
        return f"[{context}] {msg}", kwargs
