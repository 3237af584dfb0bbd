"""Logging utilities for the application.

Every module asks for a child of the ``taskdesk`` logger through
:func:`setup_logger`. Request handlers record events with :func:`log_event`,
which renders contextual identifiers (user id, task id, ...) into the message
and never lets a logging failure escape into the request.
"""
import logging
import sys

from taskdesk import config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
ROOT_LOGGER_NAME = "taskdesk"


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        root.addHandler(handler)
        root.setLevel(config.LOG_LEVEL)
    return root


def setup_logger(name: str) -> logging.Logger:
    """Return a logger named ``taskdesk.<name>`` sharing the root handler."""
    _configure_root()
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def _render(message: str, context: dict) -> str:
    if not context:
        return message
    pairs = " ".join(f"{key}={value!r}" for key, value in context.items())
    return f"{message} [{pairs}]"


def log_event(logger: logging.Logger, level: int, message: str, exc_info=False, **context) -> None:
    """Log ``message`` with ``context`` as key=value pairs.

    Any error raised while rendering or emitting the record is written to
    stderr and discarded, so callers can log from request paths unguarded.
    """
    try:
        logger.log(level, _render(message, context), exc_info=exc_info)
    except Exception as e:
        sys.stderr.write(f"Logging failed: {e!r} while logging {message!r}\n")
        sys.stderr.flush()


def log_info(logger: logging.Logger, message: str, **context) -> None:
    log_event(logger, logging.INFO, message, **context)


def log_warning(logger: logging.Logger, message: str, **context) -> None:
    log_event(logger, logging.WARNING, message, **context)


def log_error(logger: logging.Logger, message: str, exc_info=False, **context) -> None:
    log_event(logger, logging.ERROR, message, exc_info=exc_info, **context)
