"""
btkeysync structured logging.

Every registry query, mount and key write is logged so a run can be
audited afterwards from the daily log file. structlog events are handed
to the stdlib ``btkeysync`` logger and rendered by a ProcessorFormatter
per handler, so the file and stderr can use different renderers.
"""

from __future__ import annotations

import logging
import sys
import time
from datetime import datetime
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from btkeysync.core.config import LoggingConfig

ROOT_LOGGER = "btkeysync"

_configured = False

SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
]


def _formatter(renderer: structlog.types.Processor) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def setup_logging(config: LoggingConfig) -> None:
    """Configure structured logging for btkeysync."""
    global _configured

    if _configured:
        return

    if config.json_format:
        file_renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        console_renderer: structlog.types.Processor = file_renderer
    else:
        file_renderer = structlog.dev.ConsoleRenderer(colors=False)
        console_renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(logging.DEBUG)
    root.propagate = False
    root.handlers.clear()

    if config.console_enabled:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(config.level)
        console_handler.setFormatter(_formatter(console_renderer))
        root.addHandler(console_handler)

    if config.file_enabled:
        config.log_directory.mkdir(parents=True, exist_ok=True)
        log_file = config.log_directory / f"btkeysync_{datetime.now():%Y%m%d}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(_formatter(file_renderer))
        root.addHandler(file_handler)

    if not root.handlers:
        root.addHandler(logging.NullHandler())

    structlog.configure(
        processors=SHARED_PROCESSORS + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configured = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name or ROOT_LOGGER)


class TransferLogger:
    """
    Logs one device's key transfer.

    The adapter, device and dry-run flag are bound to every event. A
    failure is logged as a warning and re-raised; in copy-all mode the
    caller decides whether the batch goes on.
    """

    def __init__(
        self,
        adapter: str,
        device: str,
        dry_run: bool = False,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.logger = (logger or get_logger()).bind(
            adapter=adapter,
            device=device,
            dry_run=dry_run,
        )
        self.started: float | None = None

    def __enter__(self) -> TransferLogger:
        self.started = time.monotonic()
        self.logger.debug("Key transfer started")
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        elapsed = round(time.monotonic() - self.started, 3) if self.started else 0.0

        if exc_type is None:
            self.logger.info("Key transfer finished", elapsed_seconds=elapsed)
        else:
            self.logger.warning(
                "Key transfer failed",
                elapsed_seconds=elapsed,
                error_type=exc_type.__name__,
                error=str(exc_val),
            )
