"""Structured logging for lazywild.

All modules log through ``get_logger(component)``: structlog event dicts that
are rendered by stdlib handlers, one handler per configured output. Events are
snake_case names with key/value context, e.g.
``log.info("index_built", name="people", lines=1_204_331, from_cache=False)``.

Console handlers go quiet while a rich spinner or progress bar owns the
terminal; file handlers keep receiving every record.

A request id can be bound around one host prompt so the sampling calls it
triggers can be told apart in concurrent logs.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from lazywild.config.models import LoggingConfig, LogOutputConfig

_REQUEST_ID_KEY = "request_id"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_log_file_path: Path | None = None


# ---------------------------------------------------------------------------
# Request correlation
# ---------------------------------------------------------------------------


def get_request_id() -> str | None:
    return structlog.contextvars.get_contextvars().get(_REQUEST_ID_KEY)


def set_request_id(request_id: str | None = None) -> str:
    """Bind a request id (generated when omitted) to the current context."""
    rid = request_id or uuid4().hex[:12]
    structlog.contextvars.bind_contextvars(**{_REQUEST_ID_KEY: rid})
    return rid


def clear_request_id() -> None:
    structlog.contextvars.unbind_contextvars(_REQUEST_ID_KEY)


def get_log_file_path() -> Path | None:
    """First file destination of the active configuration, if any."""
    return _log_file_path


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


class ConsoleSuppressingFilter(logging.Filter):
    """Drop console records while a spinner or progress bar owns the terminal."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: ARG002
        from lazywild.core.progress import is_console_suppressed

        return not is_console_suppressed()


def _level(name: str | None, default: int) -> int:
    if name is None:
        return default
    return _LEVELS.get(name.upper(), default)


def _is_console(destination: str) -> bool:
    return destination in ("stderr", "stdout")


def _renderer(output: LogOutputConfig) -> structlog.types.Processor:
    if output.format == "json":
        return structlog.processors.JSONRenderer()
    stream = sys.stdout if output.destination == "stdout" else sys.stderr
    return structlog.dev.ConsoleRenderer(
        colors=_is_console(output.destination) and stream.isatty(),
        pad_event_to=0,
        pad_level=False,
    )


def _handler(output: LogOutputConfig) -> logging.Handler:
    handler: logging.Handler
    if output.destination == "stdout":
        handler = logging.StreamHandler(sys.stdout)
    elif output.destination == "stderr":
        handler = logging.StreamHandler(sys.stderr)
    else:
        path = Path(output.destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    if _is_console(output.destination):
        handler.addFilter(ConsoleSuppressingFilter())
    return handler


def _reset_root(root: logging.Logger) -> None:
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        config: Full logging configuration. When given, ``json_format`` and
            ``level`` are ignored.
        json_format: Single stderr output rendered as JSON instead of console text.
        level: Root level for the single-output setup.
    """
    global _log_file_path
    from lazywild.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )
    root_level = _level(config.level, logging.INFO)

    shared: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
    ]
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfiguration must take effect for loggers created earlier
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    _reset_root(root)
    root.setLevel(root_level)
    _log_file_path = None

    for output in config.outputs:
        if _log_file_path is None and not _is_console(output.destination):
            _log_file_path = Path(output.destination)
        handler = _handler(output)
        handler.setLevel(_level(output.level, root_level))
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=_renderer(output),
                foreign_pre_chain=shared,
            )
        )
        root.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Logger bound to a component name, e.g. ``get_logger("index.registry")``."""
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
