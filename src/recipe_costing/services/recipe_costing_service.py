"""
Recipe Costing Service - Costs stored recipes.

Bridges the database and the pure costing engine:

1. Load the recipe and its business's catalog snapshot in one session
2. Run a fresh CostingPass over the snapshot
3. Optionally persist the result into the recipe's cost history

Transaction boundary: every public function reads (and, for history,
writes) inside a single session, so one costing request sees one
consistent catalog.

Example Usage:
    >>> from recipe_costing.services import recipe_costing_service
    >>> breakdown = recipe_costing_service.calculate_recipe_cost_breakdown(12)
    >>> breakdown.cost_per_serving
    0.36
    >>> recipe_costing_service.suggest_price_for_recipe(12)
    1.2
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Recipe, RecipeCostHistory
from ..utils.constants import HISTORY_DEBOUNCE_SECONDS
from ..utils.datetime_utils import ensure_aware, utc_now
from .catalog_service import load_costing_context
from .costing.aggregator import calculate_recipe_cost_breakdown as compute_breakdown
from .costing.history import (
    HISTORY_APPENDED,
    HISTORY_UNCHANGED,
    HISTORY_UPDATED,
    apply_history_entry,
    cost_trend,
)
from .costing.pricing import food_cost_percent, suggest_price
from .costing.types import CostHistoryEntry, RecipeCostBreakdown, RecipeData
from .database import session_scope
from .exceptions import BusinessNotFound, DatabaseError, RecipeNotFound
from .logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)


def _get_recipe_or_raise(recipe_id: int, session: Session) -> Recipe:
    recipe = session.query(Recipe).filter_by(id=recipe_id).first()
    if not recipe:
        raise RecipeNotFound(recipe_id)
    return recipe


def _breakdown_impl(recipe: Recipe, session: Session) -> RecipeCostBreakdown:
    catalog, settings = load_costing_context(recipe.business_id, session=session)
    return compute_breakdown(recipe.to_costing_data(), catalog, settings)


# ============================================================================
# Cost Calculation
# ============================================================================


def calculate_recipe_cost_breakdown(
    recipe_id: int, session: Optional[Session] = None
) -> RecipeCostBreakdown:
    """
    Full cost breakdown of a stored recipe.

    Args:
        recipe_id: Recipe ID
        session: Optional session for transaction sharing

    Returns:
        RecipeCostBreakdown; missing references, missing conversions and
        cycles are reported in ``diagnostics`` rather than raised

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    if session is not None:
        return _breakdown_impl(_get_recipe_or_raise(recipe_id, session), session)

    try:
        with session_scope() as session:
            return _breakdown_impl(_get_recipe_or_raise(recipe_id, session), session)
    except (RecipeNotFound, BusinessNotFound):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to calculate cost breakdown for recipe {recipe_id}", e)


def calculate_recipe_cost(recipe_id: int, session: Optional[Session] = None) -> float:
    """
    Raw material cost of a stored recipe (ingredients only, before wastage).

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    return calculate_recipe_cost_breakdown(recipe_id, session=session).raw_material_cost


def preview_recipe_cost_breakdown(business_id: int, recipe: RecipeData) -> RecipeCostBreakdown:
    """
    Cost an unsaved recipe draft against a business's stored catalog.

    The draft replaces any stored recipe with the same id for this pass
    only, so editing a recipe shows its new cost before it is saved.

    Raises:
        BusinessNotFound: If business doesn't exist
        DatabaseError: If database operation fails
    """
    catalog, settings = load_costing_context(business_id)
    return compute_breakdown(recipe, catalog.with_recipe(recipe), settings)


# ============================================================================
# Cost History
# ============================================================================


def record_recipe_cost_history(
    recipe_id: int,
    now: Optional[datetime] = None,
    debounce_seconds: float = HISTORY_DEBOUNCE_SECONDS,
    session: Optional[Session] = None,
) -> Dict[str, Any]:
    """
    Record a recipe's current total cost into its cost history.

    Dedupe policy:
    - Latest entry on the same calendar date (or inside the debounce
      window): overwritten in place
    - Latest entry older and its cost unchanged (within 0.01): nothing
      recorded
    - Otherwise: new entry appended

    Args:
        recipe_id: Recipe ID
        now: Recording time (defaults to current UTC time)
        debounce_seconds: Window in which a repeat recording replaces the latest
        session: Optional session for transaction sharing

    Returns:
        Dict with keys:
        - "outcome": "appended", "updated" or "unchanged"
        - "cost": Recorded total cost
        - "history_length": Number of entries after recording

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    now = ensure_aware(now) if now else utc_now()

    if session is not None:
        return _record_recipe_cost_history_impl(recipe_id, now, debounce_seconds, session)

    try:
        with session_scope() as session:
            return _record_recipe_cost_history_impl(recipe_id, now, debounce_seconds, session)
    except (RecipeNotFound, BusinessNotFound):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to record cost history for recipe {recipe_id}", e)


def _record_recipe_cost_history_impl(
    recipe_id: int, now: datetime, debounce_seconds: float, session: Session
) -> Dict[str, Any]:
    recipe = _get_recipe_or_raise(recipe_id, session)
    cost = _breakdown_impl(recipe, session).total_cost

    rows = list(recipe.cost_history)
    history = [row.to_costing_data() for row in rows]

    _, outcome = apply_history_entry(history, cost, now, debounce_seconds)
    if outcome == HISTORY_APPENDED:
        recipe.cost_history.append(RecipeCostHistory(recorded_at=now, cost=cost))
        session.flush()
    elif outcome == HISTORY_UPDATED:
        rows[-1].recorded_at = now
        rows[-1].cost = cost
        session.flush()

    log_operation(
        logger,
        "record_recipe_cost_history",
        outcome,
        level=logging.DEBUG if outcome == HISTORY_UNCHANGED else logging.INFO,
        recipe_id=recipe_id,
        cost=cost,
    )
    return {"outcome": outcome, "cost": cost, "history_length": len(recipe.cost_history)}


def get_cost_history(recipe_id: int) -> List[CostHistoryEntry]:
    """
    Ordered cost history of a recipe, oldest first.

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            recipe = _get_recipe_or_raise(recipe_id, session)
            return [row.to_costing_data() for row in recipe.cost_history]
    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve cost history for recipe {recipe_id}", e)


def get_cost_trend(recipe_id: int):
    """Change between the first and last recorded costs of a recipe."""
    return cost_trend(get_cost_history(recipe_id))


# ============================================================================
# Pricing
# ============================================================================


def suggest_price_for_recipe(
    recipe_id: int, target_food_cost_percent: Optional[float] = None
) -> Optional[float]:
    """
    Suggested sale price per serving for a stored recipe.

    Args:
        recipe_id: Recipe ID
        target_food_cost_percent: Override of the business food cost target

    Returns:
        Price per serving, or None when the recipe has no positive cost or
        the target is invalid

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            recipe = _get_recipe_or_raise(recipe_id, session)
            catalog, settings = load_costing_context(recipe.business_id, session=session)
            breakdown = compute_breakdown(recipe.to_costing_data(), catalog, settings)
    except (RecipeNotFound, BusinessNotFound):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to price recipe {recipe_id}", e)

    target = (
        target_food_cost_percent
        if target_food_cost_percent is not None
        else settings.food_cost_target
    )
    return suggest_price(breakdown.cost_per_serving, target)


def get_pricing_summary(recipe_id: int) -> Dict[str, Any]:
    """
    Pricing figures for a stored recipe.

    Returns:
        Dict with keys:
        - "cost_per_serving": Cost of one serving
        - "food_cost_target": Business target percent
        - "suggested_price": Price meeting the target (None if undefined)
        - "target_sale_price": Recipe's own sale price (None if unset)
        - "food_cost_percent": Achieved percent at the target sale price

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            recipe = _get_recipe_or_raise(recipe_id, session)
            catalog, settings = load_costing_context(recipe.business_id, session=session)
            breakdown = compute_breakdown(recipe.to_costing_data(), catalog, settings)
            sale_price = recipe.target_sale_price_per_serving
    except (RecipeNotFound, BusinessNotFound):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to price recipe {recipe_id}", e)

    return {
        "cost_per_serving": breakdown.cost_per_serving,
        "food_cost_target": settings.food_cost_target,
        "suggested_price": suggest_price(breakdown.cost_per_serving, settings.food_cost_target),
        "target_sale_price": sale_price,
        "food_cost_percent": food_cost_percent(breakdown.cost_per_serving, sale_price),
    }
