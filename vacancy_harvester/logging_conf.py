"""structlog wiring for the harvester.

Every record ends up as one JSON line. The ``vacancy_harvester`` stdlib logger
fans out to the console, ``logs/harvester.log`` and ``logs/error.log``; each
listing source additionally gets ``logs/sources/<source>.log`` through
:func:`source_logger`.
"""

from __future__ import annotations

import logging
import logging.config
import os
from pathlib import Path
from typing import Any, Iterable

import structlog

ROOT_LOGGER_NAME = "vacancy_harvester"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_SHARED_PROCESSORS = (
    structlog.contextvars.merge_contextvars,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.stdlib.add_log_level,
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
)

_configured_level: str | None = None


def _log_root() -> Path:
    home = os.environ.get("VACANCY_HARVESTER_HOME")
    if home:
        return Path(home).expanduser().resolve() / "logs"
    return Path(__file__).resolve().parents[1] / "logs"


def global_log_path() -> Path:
    return _log_root() / "harvester.log"


def error_log_path() -> Path:
    return _log_root() / "error.log"


def source_log_path(source_name: str) -> Path:
    return _log_root() / "sources" / f"{source_name}.log"


def _file_handler(path: Path, level: str) -> dict[str, Any]:
    return {
        "class": "logging.FileHandler",
        "filename": str(path),
        "encoding": "utf-8",
        "level": level,
        "formatter": "json",
    }


def _dict_config(level: str) -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": "pythonjsonlogger.jsonlogger.JsonFormatter", "fmt": JSON_FORMAT},
        },
        "handlers": {
            "stderr": {"class": "logging.StreamHandler", "level": level, "formatter": "json"},
            "harvester_file": _file_handler(global_log_path(), "INFO"),
            "error_file": _file_handler(error_log_path(), "ERROR"),
        },
        "loggers": {
            ROOT_LOGGER_NAME: {
                "level": level,
                "handlers": ["stderr", "harvester_file", "error_file"],
                "propagate": False,
            },
        },
    }


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Install handlers once and hand back the application logger.

    Later calls are cheap; passing ``verbose=True`` after a non-verbose setup
    lowers the level to DEBUG.
    """

    global _configured_level
    level = "DEBUG" if verbose else "INFO"
    if _configured_level is None or (verbose and _configured_level != level):
        source_log_path("_").parent.mkdir(parents=True, exist_ok=True)
        for path in (global_log_path(), error_log_path()):
            path.touch(exist_ok=True)
        logging.config.dictConfig(_dict_config(level))
        structlog.configure(
            processors=[*_SHARED_PROCESSORS, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _configured_level = level
    return structlog.get_logger(ROOT_LOGGER_NAME)


def source_logger(source_name: str, verbose: bool = False) -> structlog.BoundLogger:
    """Logger bound to ``source=<name>`` that also writes to the source's own file."""

    configure_logging(verbose)
    name = f"{ROOT_LOGGER_NAME}.source.{source_name}"
    target = source_log_path(source_name)
    stdlib_logger = logging.getLogger(name)

    attached = {
        getattr(handler, "baseFilename", None) for handler in stdlib_logger.handlers
    }
    if str(target) not in attached:
        target.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(target, encoding="utf-8")
        handler.setLevel(logging.INFO)
        parent_handlers = logging.getLogger(ROOT_LOGGER_NAME).handlers
        if parent_handlers:
            handler.setFormatter(parent_handlers[0].formatter)
        stdlib_logger.addHandler(handler)

    return structlog.get_logger(name).bind(source=source_name)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    """Last ``line_count`` lines of ``path``; empty when the file is missing."""

    if not path.is_file():
        return []
    content = path.read_text(encoding="utf-8", errors="ignore")
    return content.splitlines(keepends=True)[-line_count:]


def available_source_logs() -> Iterable[Path]:
    directory = source_log_path("_").parent
    if not directory.is_dir():
        return []
    return sorted(directory.glob("*.log"))


__all__ = [
    "available_source_logs",
    "configure_logging",
    "error_log_path",
    "global_log_path",
    "source_log_path",
    "source_logger",
    "tail_log",
]
