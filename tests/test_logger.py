"""
Tests for kameleoon_openfeature.logger module.

Run with:
    pytest tests/test_logger.py -v
"""

import asyncio
import io
import json
import logging
import threading
import time
from unittest.mock import MagicMock, patch

import pytest
import structlog
from openfeature.evaluation_context import EvaluationContext

from kameleoon_openfeature.provider.memory import InMemoryKameleoonClient
from kameleoon_openfeature.provider.resolver import KameleoonResolver
from kameleoon_openfeature.provider.types import ALLOWED_BOOLEAN


# =============================================================================
# FIXTURES
# =============================================================================


def _reset(sl):
    sl._is_configured = False
    sl._logger_instance = None
    structlog.reset_defaults()
    stdlib_logger = logging.getLogger(sl.LOGGER_NAME)
    for handler in list(stdlib_logger.handlers):
        stdlib_logger.removeHandler(handler)


@pytest.fixture(autouse=True)
def reset_logger_state():
    """Reset logger singleton state before and after each test."""
    import kameleoon_openfeature.logger.structured_logger as sl

    _reset(sl)
    yield
    _reset(sl)


@pytest.fixture
def stream():
    return io.StringIO()


def read_logs(stream):
    """Parse every JSON log line written to the stream."""
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


# =============================================================================
# TESTS: BASIC LOGGING
# =============================================================================


class TestBasicLogging:
    """Test basic logging functionality."""

    def test_logger_is_lazy_proxy(self):
        """Test that logger is a lazy proxy, not configured at import."""
        from kameleoon_openfeature.logger import logger
        from kameleoon_openfeature.logger.structured_logger import LazyLoggerProxy
        import kameleoon_openfeature.logger.structured_logger as sl

        assert isinstance(logger, LazyLoggerProxy)
        assert sl._is_configured is False

    def test_configure_logging_is_singleton(self, stream):
        """Test that configure_logging returns the same instance."""
        from kameleoon_openfeature.logger import configure_logging

        logger1 = configure_logging(service="test-1", stream=stream)
        logger2 = configure_logging(service="test-2")  # Different params

        assert logger1 is logger2

    def test_json_output(self, stream):
        """Test log entries are JSON with level, timestamp and tags."""
        from kameleoon_openfeature.logger import configure_logging

        logger = configure_logging(service="checkout", env="cicd", level="DEBUG", stream=stream)
        logger.info("kameleoon_provider_ready", site_code="abc123")

        entry = read_logs(stream)[-1]
        assert entry["msg"] == "kameleoon_provider_ready"
        assert entry["level"] == "info"
        assert entry["service"] == "checkout"
        assert entry["env"] == "cicd"
        assert entry["site_code"] == "abc123"
        assert "timestamp" in entry

    def test_lazy_proxy_configures_on_first_use(self, stream):
        """Test the proxy logs through the configured logger."""
        from kameleoon_openfeature.logger import configure_logging, logger

        configure_logging(stream=stream)
        logger.warning("kameleoon_client_init_failed", error="timeout")

        entry = read_logs(stream)[-1]
        assert entry["msg"] == "kameleoon_client_init_failed"
        assert entry["level"] == "warning"

    def test_level_filtering(self, stream):
        """Test entries below the configured level are dropped."""
        from kameleoon_openfeature.logger import configure_logging

        logger = configure_logging(level="WARNING", stream=stream)
        logger.info("hidden")
        logger.warning("shown")

        assert [entry["msg"] for entry in read_logs(stream)] == ["shown"]

    def test_host_root_logger_untouched(self, stream):
        """Test provider logs do not propagate to the root logger."""
        from kameleoon_openfeature.logger import configure_logging
        import kameleoon_openfeature.logger.structured_logger as sl

        configure_logging(stream=stream)

        assert logging.getLogger(sl.LOGGER_NAME).propagate is False


# =============================================================================
# TESTS: EVALUATION CONTEXT
# =============================================================================


class TestEvaluationContext:
    """Test evaluation context propagation."""

    def test_scope_sets_and_resets(self):
        from kameleoon_openfeature.logger import evaluation_scope, get_evaluation_context

        with evaluation_scope("flag", "visitor") as fields:
            assert fields == {"flag_key": "flag", "visitor_code": "visitor"}
            assert get_evaluation_context() == fields

        assert get_evaluation_context() == {}

    def test_scopes_nest(self):
        from kameleoon_openfeature.logger import evaluation_scope, get_evaluation_context

        with evaluation_scope("outer", "visitor"):
            with evaluation_scope("inner"):
                assert get_evaluation_context() == {"flag_key": "inner"}
            assert get_evaluation_context()["flag_key"] == "outer"

    def test_scope_fields_in_logs(self, stream):
        from kameleoon_openfeature.logger import configure_logging, evaluation_scope

        logger = configure_logging(level="DEBUG", stream=stream)
        with evaluation_scope("new-checkout", "visitor-123"):
            logger.info("kameleoon_flag_resolved", variant="on")

        entry = read_logs(stream)[-1]
        assert entry["flag_key"] == "new-checkout"
        assert entry["visitor_code"] == "visitor-123"
        assert entry["variant"] == "on"

    def test_resolution_errors_are_logged(self, stream):
        """Test a failed resolution logs its error with the evaluation fields."""
        from kameleoon_openfeature.logger import configure_logging

        configure_logging(stream=stream, level="DEBUG")
        resolver = KameleoonResolver(InMemoryKameleoonClient())

        resolver.resolve(ALLOWED_BOOLEAN, "missing", False, EvaluationContext(targeting_key="v1"))

        entry = read_logs(stream)[-1]
        assert entry["msg"] == "kameleoon_flag_resolution_error"
        assert entry["level"] == "warning"
        assert entry["error_code"] == "FLAG_NOT_FOUND"
        assert entry["flag_key"] == "missing"
        assert entry["visitor_code"] == "v1"


# =============================================================================
# TESTS: STRUCTLOG PROCESSORS
# =============================================================================


class TestStructlogProcessors:
    """Test the custom structlog processors."""

    def test_inject_evaluation_context(self):
        from kameleoon_openfeature.logger import evaluation_scope, inject_evaluation_context

        with evaluation_scope("flag", "visitor"):
            result = inject_evaluation_context(None, "info", {"msg": "test"})

        assert result == {"msg": "test", "flag_key": "flag", "visitor_code": "visitor"}

    def test_inject_evaluation_context_does_not_overwrite(self):
        from kameleoon_openfeature.logger import evaluation_scope, inject_evaluation_context

        with evaluation_scope("context-flag"):
            result = inject_evaluation_context(None, "info", {"msg": "test", "flag_key": "explicit"})

        assert result["flag_key"] == "explicit"

    def test_datadog_trace_context_added(self):
        import kameleoon_openfeature.logger.structured_logger as sl

        tracer = MagicMock()
        tracer.get_log_correlation_context.return_value = {"dd.trace_id": "123", "dd.span_id": "456"}

        with patch.object(sl, "DDTRACE_AVAILABLE", True), patch.object(sl, "tracer", tracer):
            result = sl.add_datadog_trace_context(None, "info", {"msg": "test"})

        assert result["dd.trace_id"] == "123"
        assert result["dd.span_id"] == "456"

    def test_datadog_trace_failure_is_ignored(self):
        import kameleoon_openfeature.logger.structured_logger as sl

        tracer = MagicMock()
        tracer.get_log_correlation_context.side_effect = RuntimeError("no tracer")

        with patch.object(sl, "DDTRACE_AVAILABLE", True), patch.object(sl, "tracer", tracer):
            result = sl.add_datadog_trace_context(None, "info", {"msg": "test"})

        assert result == {"msg": "test"}

    def test_datadog_not_installed(self):
        import kameleoon_openfeature.logger.structured_logger as sl

        with patch.object(sl, "DDTRACE_AVAILABLE", False):
            result = sl.add_datadog_trace_context(None, "info", {"msg": "test"})

        assert result == {"msg": "test"}

    def test_service_tags_keep_bound_values(self):
        import kameleoon_openfeature.logger.structured_logger as sl

        result = sl.add_service_tags(None, "info", {"msg": "test", "service": "explicit"})

        assert result["service"] == "explicit"
        assert "env" in result


# =============================================================================
# TESTS: THREAD SAFETY
# =============================================================================


class TestThreadSafety:
    """Test thread safety of logger components."""

    def test_concurrent_configure(self, stream):
        """Test concurrent configure_logging calls share one logger."""
        from kameleoon_openfeature.logger import configure_logging

        results = []

        def configure():
            results.append(configure_logging(stream=stream))

        threads = [threading.Thread(target=configure) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert all(result is results[0] for result in results)

    def test_concurrent_context_isolation(self):
        """Test that evaluation scopes are isolated between threads."""
        from kameleoon_openfeature.logger import evaluation_scope, get_evaluation_context

        results = {}

        def resolve_in_thread(thread_id: int):
            with evaluation_scope(f"flag-{thread_id}"):
                # Small delay to allow other threads to interfere
                time.sleep(0.01)
                results[thread_id] = get_evaluation_context()["flag_key"]

        threads = [threading.Thread(target=resolve_in_thread, args=(i,)) for i in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        for thread_id, result in results.items():
            assert result == f"flag-{thread_id}"


# =============================================================================
# TESTS: ASYNC CONTEXT ISOLATION
# =============================================================================


@pytest.mark.asyncio
class TestAsyncContextIsolation:
    """Test context isolation in async code."""

    async def test_concurrent_async_context(self):
        """Test evaluation scope isolation between concurrent async tasks."""
        from kameleoon_openfeature.logger import evaluation_scope, get_evaluation_context

        results = {}

        async def task_with_scope(task_id: int):
            with evaluation_scope(f"flag-{task_id}", f"visitor-{task_id}"):
                # Yield to other tasks
                await asyncio.sleep(0.01)
                results[task_id] = get_evaluation_context()

        await asyncio.gather(*[task_with_scope(i) for i in range(10)])

        for task_id, result in results.items():
            assert result == {"flag_key": f"flag-{task_id}", "visitor_code": f"visitor-{task_id}"}
