"""
Evaluation context propagation for provider logs.

PROBLEM:
    A single flag resolution logs from several places (resolver, vendor
    adapter). Passing flag_key and visitor_code to every log call is noisy
    and easy to forget.

SOLUTION:
    1. The resolver opens an evaluation scope for each resolution
    2. The scope is stored in contextvars (thread- and async-safe)
    3. inject_evaluation_context adds it to every log entry

USAGE:
    from kameleoon_openfeature.logger.context import evaluation_scope
    from kameleoon_openfeature.logger import logger

    with evaluation_scope("new-checkout", "visitor-123"):
        logger.info("kameleoon_flag_resolved", variant="on")
        # -> {"msg": "kameleoon_flag_resolved", "flag_key": "new-checkout",
        #     "visitor_code": "visitor-123", "variant": "on", ...}
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import Any, Iterator

# =============================================================================
# CONTEXT VARIABLES
# =============================================================================

# Fields of the evaluation currently running in this context
_evaluation_context: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar(
    "kameleoon_evaluation_context",
    default={},
)


# =============================================================================
# CONTEXT ACCESS
# =============================================================================


def get_evaluation_context() -> dict[str, Any]:
    """Return a copy of the current evaluation fields."""
    return _evaluation_context.get().copy()


@contextmanager
def evaluation_scope(
    flag_key: str | None,
    visitor_code: str | None = None,
) -> Iterator[dict[str, Any]]:
    """
    Bind flag_key and visitor_code to all logs inside the block.

    The previous context is restored on exit, so scopes can nest.

    Args:
        flag_key: The flag being resolved
        visitor_code: The visitor (targeting key), if known

    Yields:
        The fields bound for the block
    """
    fields = {"flag_key": flag_key, "visitor_code": visitor_code}
    token = _evaluation_context.set(
        {key: value for key, value in fields.items() if value is not None}
    )
    try:
        yield get_evaluation_context()
    finally:
        _evaluation_context.reset(token)


# =============================================================================
# STRUCTLOG PROCESSOR
# =============================================================================


def inject_evaluation_context(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Structlog processor that injects the evaluation scope into logs.

    Fields passed explicitly to the log call are never overwritten.
    """
    for key, value in _evaluation_context.get().items():
        if key not in event_dict:
            event_dict[key] = value
    return event_dict
