"""
Kameleoon provider logger - structured JSON logging with structlog.

BASIC USAGE:
    from kameleoon_openfeature.logger import logger
    logger.info("kameleoon_provider_ready", site_code="abc123")

CONFIGURING FROM THE HOST APPLICATION:
    from kameleoon_openfeature.logger import configure_logging
    configure_logging(service="checkout", env="production", level="DEBUG")

EVALUATION SCOPE:
    from kameleoon_openfeature.logger import evaluation_scope

    with evaluation_scope("new-checkout", "visitor-123"):
        logger.info("resolving")  # includes flag_key and visitor_code
"""

from .context import (
    evaluation_scope,
    get_evaluation_context,
    inject_evaluation_context,
)
from .structured_logger import configure_logging, logger

__all__ = [
    # Main logger
    "logger",
    "configure_logging",
    # Evaluation context
    "evaluation_scope",
    "get_evaluation_context",
    "inject_evaluation_context",
]
