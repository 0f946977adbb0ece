"""structlog setup for TowerWatch.

Events are handed to the standard library logging tree, so every handler on
the root logger (stdout and the rotating ``towerwatch.log``) renders the same
event dicts. Records from uvicorn and other stdlib loggers pass through the
same formatter.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

import structlog

LOG_FILENAME = "towerwatch.log"

_SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.StackInfoRenderer(),
    structlog.dev.set_exc_info,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _formatter(debug: bool) -> structlog.stdlib.ProcessorFormatter:
    if debug:
        renderers = [structlog.dev.ConsoleRenderer(colors=False)]
    else:
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_SHARED_PROCESSORS,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderers],
    )


def setup_logging(
    debug: bool = False,
    log_dir: str = "logs",
    log_max_bytes: int = 10_000_000,
    log_backup_count: int = 5,
) -> None:
    """Route structlog events to stdout and a rotating log file.

    Console rendering in debug mode, JSON lines otherwise. When ``log_dir``
    cannot be created the service keeps logging to stdout only.
    """
    log_level = logging.DEBUG if debug else logging.INFO

    structlog.configure(
        processors=[*_SHARED_PROCESSORS, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = _formatter(debug)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    root_logger.addHandler(stdout_handler)

    try:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, LOG_FILENAME),
            maxBytes=log_max_bytes,
            backupCount=log_backup_count,
            encoding="utf-8",
        )
    except OSError:
        # Read-only deployments still get stdout logging
        return
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
