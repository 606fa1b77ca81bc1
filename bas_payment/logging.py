"""Logging configuration for the BAS payment SDK.

Structured logging via structlog with JSON or console rendering and
masking of credentials, tokens and checksums before anything is emitted.
The SDK itself only obtains loggers; applications that want the SDK's
formatting call ``configure_logging`` (or ``configure_logging_from_config``)
once at startup.
"""

from __future__ import annotations

import logging
import re
import sys
from pathlib import Path
from typing import Any, MutableMapping

import structlog

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "json"  # "json" or "console"
LOGGER_NAME = "bas_payment"

SENSITIVE_PATTERNS = [
    re.compile(r".*token.*", re.IGNORECASE),
    re.compile(r".*key.*", re.IGNORECASE),
    re.compile(r".*secret.*", re.IGNORECASE),
    re.compile(r".*password.*", re.IGNORECASE),
    re.compile(r".*signature.*", re.IGNORECASE),
    re.compile(r".*checksum.*", re.IGNORECASE),
    re.compile(r"^iv$", re.IGNORECASE),
    re.compile(r"authorization", re.IGNORECASE),
]

MASK = "***REDACTED***"


def _is_sensitive_key(key: str) -> bool:
    return any(pattern.match(key) for pattern in SENSITIVE_PATTERNS)


def _mask_sensitive_value(value: Any) -> Any:
    """Mask a string value, keeping a short prefix of long values for correlation."""
    if isinstance(value, str) and len(value) > 0:
        if len(value) > 8:
            return value[:4] + MASK
        return MASK
    if value is None:
        return value
    return MASK


def mask_sensitive(data: MutableMapping[str, Any]) -> dict[str, Any]:
    """Recursively mask sensitive entries of a mapping.

    Args:
        data: Mapping to process; left untouched.

    Returns:
        A new dict with sensitive values masked.
    """
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(key, str) and _is_sensitive_key(key):
            result[key] = _mask_sensitive_value(value)
        elif isinstance(value, dict):
            result[key] = mask_sensitive(value)
        elif isinstance(value, list):
            result[key] = [
                mask_sensitive(item) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            result[key] = value
    return result


class SensitiveDataFilter:
    """structlog processor that filters sensitive data from logs."""

    def __call__(
        self,
        logger: logging.Logger,
        method_name: str,
        event_dict: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]:
        return mask_sensitive(event_dict)


_PRE_CHAIN: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    SensitiveDataFilter(),
]


def _get_log_level(level_name: str) -> int:
    level = logging.getLevelName(level_name.upper())
    return level if isinstance(level, int) else logging.INFO


def _build_formatter(log_format: str) -> structlog.stdlib.ProcessorFormatter:
    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_PRE_CHAIN,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def configure_logging(
    level: str = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: str | Path | None = None,
) -> logging.Logger:
    """Route the SDK's log records to stderr and, optionally, a file.

    Only the ``bas_payment`` logger is touched; the root logger and the
    application's own handlers are left alone. Calling it again replaces
    the handlers installed by the previous call.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Output format ("json" or "console").
        log_file: Optional path of a log file, appended to.

    Returns:
        The configured ``bas_payment`` stdlib logger.
    """
    sdk_logger = logging.getLogger(LOGGER_NAME)
    for handler in list(sdk_logger.handlers):
        sdk_logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    formatter = _build_formatter(log_format)
    for handler in handlers:
        handler.setFormatter(formatter)
        sdk_logger.addHandler(handler)
    sdk_logger.setLevel(_get_log_level(level))
    sdk_logger.propagate = False

    structlog.configure(
        processors=_PRE_CHAIN + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )
    return sdk_logger


def configure_logging_from_config(config: Any) -> logging.Logger:
    """Apply the ``log_level``, ``log_format`` and ``log_file`` of a Config."""
    return configure_logging(
        level=config.log_level,
        log_format=config.log_format,
        log_file=config.log_file,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger."""
    return structlog.get_logger(name)


__all__ = [
    "configure_logging",
    "configure_logging_from_config",
    "get_logger",
    "mask_sensitive",
    "SensitiveDataFilter",
    "SENSITIVE_PATTERNS",
    "MASK",
]
