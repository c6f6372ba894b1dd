"""Structured logging for hunter-swarm.

structlog events are forwarded to stdlib handlers that write one JSON object
per line.  Under ``<HUNTER_SWARM_HOME>/logs`` the run writes ``swarm.log``,
failures are duplicated into ``error.log`` and every hunter also gets
``hunters/<name>.log``.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import Iterable

import structlog

from .config import ConfigLocator

ROOT_LOGGER = "hunter_swarm"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# (log directory, verbose) of the active configuration.
_active: tuple[Path, bool] | None = None


def log_dir() -> Path:
    return ConfigLocator().logs_dir


def log_file(hunter: str | None = None, errors: bool = False) -> Path:
    """Path of a hunter log, ``error.log`` or the main ``swarm.log``."""

    if hunter:
        return log_dir() / "hunters" / f"{hunter}.log"
    return log_dir() / ("error.log" if errors else "swarm.log")


def _file_handler(path: Path, level: str) -> dict:
    return {
        "class": "logging.FileHandler",
        "level": level,
        "filename": str(path),
        "formatter": "json",
        "encoding": "utf-8",
    }


def configure_logging(verbose: bool | None = None) -> structlog.BoundLogger:
    """Install handlers once per log directory and return the root logger.

    The console only shows warnings unless ``verbose`` is set; ``swarm.log``
    always records INFO and up (DEBUG when verbose).  ``None`` keeps the
    current verbosity.
    """

    global _active
    if verbose is None:
        verbose = _active[1] if _active else False
    directory = log_dir()
    if _active != (directory, verbose):
        (directory / "hunters").mkdir(parents=True, exist_ok=True)
        level = "DEBUG" if verbose else "INFO"
        logging.config.dictConfig(
            {
                "version": 1,
                "disable_existing_loggers": False,
                "formatters": {
                    "json": {
                        "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                        "fmt": JSON_FORMAT,
                    }
                },
                "handlers": {
                    "console": {
                        "class": "logging.StreamHandler",
                        "level": level if verbose else "WARNING",
                        "formatter": "json",
                    },
                    "swarm_file": _file_handler(log_file(), level),
                    "error_file": _file_handler(log_file(errors=True), "ERROR"),
                },
                "loggers": {
                    ROOT_LOGGER: {
                        "handlers": ["console", "swarm_file", "error_file"],
                        "level": level,
                        "propagate": False,
                    },
                },
            }
        )
        if _active is None:
            structlog.configure(
                processors=[
                    structlog.contextvars.merge_contextvars,
                    structlog.processors.TimeStamper(fmt="iso"),
                    structlog.stdlib.add_log_level,
                    structlog.processors.StackInfoRenderer(),
                    structlog.processors.format_exc_info,
                    structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
                ],
                logger_factory=structlog.stdlib.LoggerFactory(),
                cache_logger_on_first_use=True,
            )
        _active = (directory, verbose)
    return structlog.get_logger(ROOT_LOGGER)


def hunter_logger(hunter_name: str) -> structlog.BoundLogger:
    """Logger bound to one hunter; its events also land in the hunter's file."""

    configure_logging()
    path = log_file(hunter_name)
    py_logger = logging.getLogger(f"{ROOT_LOGGER}.hunter.{hunter_name}")
    for handler in list(py_logger.handlers):
        if isinstance(handler, logging.FileHandler) and handler.baseFilename != str(path):
            # Log home moved since this hunter last logged.
            py_logger.removeHandler(handler)
            handler.close()
    if not py_logger.handlers:
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(logging.getLogger(ROOT_LOGGER).handlers[0].formatter)
        handler.setLevel(logging.INFO)
        py_logger.addHandler(handler)
    return structlog.get_logger(py_logger.name).bind(hunter=hunter_name)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        lines = stream.readlines()
    return lines[-line_count:]


def available_logs() -> Iterable[Path]:
    directory = log_dir()
    if not directory.exists():
        return []
    return sorted(directory.rglob("*.log"))


__all__ = [
    "available_logs",
    "configure_logging",
    "hunter_logger",
    "log_dir",
    "log_file",
    "tail_log",
]
