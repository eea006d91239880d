"""
Structured logging for the Kameleoon provider.

USAGE:
    from kameleoon_openfeature.logger import logger
    logger.info("kameleoon_provider_ready", site_code="abc123")

HOW IT WORKS:
    1. Logs are formatted as JSON using structlog
    2. Logs go to stdout through the "kameleoon_openfeature" logger
    3. flag_key and visitor_code of the current evaluation are injected
    4. Datadog trace IDs are automatically injected (if ddtrace is installed)

LAZY CONFIGURATION:
    Importing the provider never configures logging. The first log call
    does, unless the host application called configure_logging() before.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
from typing import Any

import structlog

from .context import inject_evaluation_context

# =============================================================================
# STEP 1: CHECK OPTIONAL DEPENDENCIES
# =============================================================================

# ddtrace: Datadog APM tracing (adds trace_id/span_id to logs)
try:
    from ddtrace import tracer
    DDTRACE_AVAILABLE = True
except ImportError:
    tracer = None
    DDTRACE_AVAILABLE = False


# =============================================================================
# STEP 2: READ CONFIGURATION FROM ENVIRONMENT
# =============================================================================

# Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Service tags added to every log entry
DD_SERVICE = os.getenv("DD_SERVICE", "kameleoon-openfeature")
DD_ENV = os.getenv("DD_ENV", os.getenv("ENVIRONMENT", "dev"))

# Name of the stdlib logger that receives provider logs
LOGGER_NAME = "kameleoon_openfeature"


# =============================================================================
# STEP 3: SINGLETON STATE
# =============================================================================

_logger_instance: structlog.stdlib.BoundLogger | None = None

_logger_lock = threading.Lock()

_is_configured = False

# Tags applied by add_service_tags, set by configure_logging()
_service = DD_SERVICE
_env = DD_ENV


# =============================================================================
# STEP 4: DATADOG TRACE INJECTION
# =============================================================================


def add_datadog_trace_context(
    logger_instance: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Add Datadog trace IDs to log entry.

    This is a structlog processor that runs for every log message.

    WHAT IT ADDS:
        - dd.trace_id, dd.span_id of the active span
        - dd.service, dd.env, dd.version as reported by ddtrace

    Returns:
        The enriched event_dict (unchanged if ddtrace is not installed)
    """
    if not DDTRACE_AVAILABLE or tracer is None:
        return event_dict

    try:
        trace_context = tracer.get_log_correlation_context()
    except Exception:
        # Never fail logging because of trace injection
        return event_dict

    if trace_context:
        event_dict.update(trace_context)
    return event_dict


def add_service_tags(
    logger_instance: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add service and env tags, keeping values already bound by the caller."""
    event_dict.setdefault("service", _service)
    event_dict.setdefault("env", _env)
    return event_dict


# =============================================================================
# STEP 5: MAIN CONFIGURATION FUNCTION
# =============================================================================


def configure_logging(
    *,
    service: str | None = None,
    env: str | None = None,
    level: str | None = None,
    stream: Any = None,
) -> structlog.stdlib.BoundLogger:
    """
    Configure the provider's logging.

    SINGLETON BEHAVIOR:
        Safe to call multiple times. After the first call, subsequent calls
        return the same logger and ignore their arguments.

    THREAD SAFETY:
        Uses double-check locking so only one thread configures logging.

    Args:
        service: Service tag (default: DD_SERVICE env var)
        env: Environment tag (default: DD_ENV env var)
        level: Log level name (default: LOG_LEVEL env var)
        stream: Output stream (default: sys.stdout)

    Returns:
        A configured structlog logger instance

    Example:
        logger = configure_logging(service="checkout", env="production")
        logger.info("kameleoon_provider_ready", site_code="abc123")
    """
    global _logger_instance, _is_configured, _service, _env

    # Fast path: already configured
    if _is_configured and _logger_instance is not None:
        return _logger_instance

    with _logger_lock:
        if _is_configured and _logger_instance is not None:
            return _logger_instance

        _service = service if service is not None else DD_SERVICE
        _env = env if env is not None else DD_ENV
        level_name = (level or LOG_LEVEL).upper()
        resolved_log_level = getattr(logging, level_name, logging.INFO)

        # Provider logs go to their own logger; the host's root logger
        # configuration is left untouched.
        handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
        handler.setLevel(resolved_log_level)
        handler.setFormatter(logging.Formatter("%(message)s"))

        stdlib_logger = logging.getLogger(LOGGER_NAME)
        for existing in list(stdlib_logger.handlers):
            stdlib_logger.removeHandler(existing)
        stdlib_logger.addHandler(handler)
        stdlib_logger.setLevel(resolved_log_level)
        stdlib_logger.propagate = False

        # Processors run in order for each log message:
        # level, timestamp, service tags, evaluation scope, Datadog trace,
        # stack/exception formatting, "event" renamed to "msg", JSON.
        structlog.configure(
            processors=[
                structlog.processors.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                add_service_tags,
                inject_evaluation_context,
                add_datadog_trace_context,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.UnicodeDecoder(),
                structlog.processors.EventRenamer("msg"),
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        _is_configured = True
        _logger_instance = structlog.get_logger(LOGGER_NAME)

        return _logger_instance


# =============================================================================
# STEP 6: LAZY LOGGER PROXY
# =============================================================================


class LazyLoggerProxy:
    """
    A proxy that delays logger configuration until first use.

    HOW IT WORKS:
        `logger.info(...)` goes through __getattr__, which calls
        configure_logging() and returns the method of the real logger.
    """

    def __getattr__(self, attribute_name: str) -> Any:
        real_logger = configure_logging()
        return getattr(real_logger, attribute_name)


logger = LazyLoggerProxy()
