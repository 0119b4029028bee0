"""Service layer logging utilities.

Provides structured logging functions for service operations, enabling
consistent log format and context across costing, history and catalog
operations.

Usage:
    from recipe_costing.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="record_recipe_cost_history",
        outcome="appended",
        recipe_id=45,
        cost=12.5,
    )
"""

import logging
from typing import Any


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger instance with the 'recipe_costing.services' prefix.

    Example:
        >>> logger = get_service_logger("recipe_costing.services.costing.aggregator")
        >>> logger.name
        'recipe_costing.services.aggregator'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"recipe_costing.services.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The context is passed via the 'extra' parameter for structured logging.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "calculate_recipe_cost_breakdown")
        outcome: Outcome description (e.g., "success", "circular_reference")
        level: Log level (default: INFO). Use DEBUG for verbose/frequent logs.
        **context: Additional context fields (entity IDs, costs, error details)

    Example:
        >>> log_operation(
        ...     logger,
        ...     operation="cost_ingredient",
        ...     outcome="missing_conversion",
        ...     level=logging.WARNING,
        ...     item_id=7,
        ...     from_unit="cup",
        ...     to_unit="kg",
        ... )
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)
