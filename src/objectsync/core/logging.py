"""
ObjectSync structured logging.

structlog on top of the stdlib ``logging`` module. Every event carries the
UTC time, its level and the emitting thread, so transfer-worker output from
concurrent jobs can be told apart.
"""

from __future__ import annotations

import logging
import sys
import threading
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, WrappedLogger

if TYPE_CHECKING:
    from objectsync.core.config import LoggingConfig

ROOT_LOGGER_NAME = "objectsync"
QUIET_LIBRARIES = ("botocore", "boto3", "s3transfer", "urllib3")

_installed_handlers: list[logging.Handler] = []


def add_timestamp(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Stamp the event with the current UTC time."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return event_dict


def add_log_level(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict["level"] = method_name.upper()
    return event_dict


def add_thread_name(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Tag events emitted from transfer workers with the worker name."""
    name = threading.current_thread().name
    if name != "MainThread":
        event_dict["thread"] = name
    return event_dict


def _replace_handlers(handlers: list[logging.Handler]) -> None:
    root = logging.getLogger()
    for handler in _installed_handlers:
        root.removeHandler(handler)
        handler.close()
    _installed_handlers[:] = handlers
    for handler in handlers:
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
    root.setLevel(logging.DEBUG)


def setup_logging(config: LoggingConfig) -> None:
    """Configure logging for one CLI invocation.

    Calling it again replaces the handlers installed by the previous call.
    """
    handlers: list[logging.Handler] = []

    if config.console_enabled:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(getattr(logging, config.level))
        handlers.append(console)

    if config.file_enabled:
        config.log_directory.mkdir(parents=True, exist_ok=True)
        log_file = config.log_directory / f"objectsync_{datetime.now().strftime('%Y%m%d')}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    _replace_handlers(handlers)

    # S3 client libraries log every request at DEBUG
    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_logger_name,
        add_timestamp,
        add_log_level,
        add_thread_name,
        structlog.processors.StackInfoRenderer(),
    ]
    if config.json_format:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name or ROOT_LOGGER_NAME)


class OperationLogger:
    """Logs the start, completion or failure of one operation with its duration.

    Context added through ``update`` while the operation runs is included in
    the closing event.
    """

    def __init__(
        self,
        operation: str,
        logger: structlog.stdlib.BoundLogger | None = None,
        **context: Any,
    ) -> None:
        self.operation = operation
        self.log = (logger or get_logger()).bind(operation=operation, **context)
        self.result: dict[str, Any] = {}
        self._started: float | None = None

    def __enter__(self) -> OperationLogger:
        self._started = time.monotonic()
        self.log.info(f"Starting {self.operation}")
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        elapsed = round(time.monotonic() - self._started, 3) if self._started is not None else 0.0
        if exc_type is None:
            self.log.info(f"Completed {self.operation}", duration_seconds=elapsed, **self.result)
            return
        self.log.error(
            f"Failed {self.operation}",
            duration_seconds=elapsed,
            error_type=exc_type.__name__,
            error=str(exc_val),
            **self.result,
        )

    def update(self, **result: Any) -> None:
        """Attach outcome fields to the closing event."""
        self.result.update(result)
