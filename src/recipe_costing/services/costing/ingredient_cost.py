"""
Ingredient cost resolution.

Prices one ingredient line of a recipe:

- Inventory item: ``unit_cost * quantity * factor(ingredient.unit -> item.unit)``,
  divided by the item's trim yield and the line's prep yield.
- Sub-recipe: cost of one production unit (total cost / production yield)
  or, without a production yield, cost per serving; multiplied by quantity,
  converted from the line's unit to the production unit (or to servings),
  and divided by the line's prep yield. The sub-recipe is costed through the
  same costing pass so cycle detection and memoization are shared.

Missing references, missing conversions and invalid yields degrade to a
best-effort number plus a Diagnostic. A sub-recipe already on the current
path is a circular reference: the line costs 0 and recursion stops.
"""

import logging
from typing import TYPE_CHECKING, AbstractSet, List, Optional

from recipe_costing.utils.constants import SERVING_UNIT

from ..logging_utils import get_service_logger, log_operation
from .types import Diagnostic, DiagnosticKind, IngredientCost, IngredientLine

if TYPE_CHECKING:
    from .aggregator import CostingPass

logger = get_service_logger(__name__)


def _record(diagnostics: List[Diagnostic], diagnostic: Optional[Diagnostic]) -> None:
    if diagnostic is None:
        return
    level = logging.ERROR if diagnostic.is_structural else logging.WARNING
    log_operation(
        logger,
        operation="cost_ingredient",
        outcome=diagnostic.kind.value,
        level=level,
        recipe_id=diagnostic.recipe_id,
        item_id=diagnostic.item_id,
        detail=diagnostic.message,
    )
    diagnostics.append(diagnostic)


def apply_yield(
    cost: float,
    yield_percentage: Optional[float],
    diagnostics: List[Diagnostic],
    recipe_id=None,
    item_id=None,
) -> float:
    """
    Gross up a cost for usable-portion loss.

    A yield of 80% means 1/0.8 as much raw material is needed. Yields that
    are unset or >= 100 leave the cost unchanged; yields <= 0 are invalid
    and are skipped with a diagnostic.

    Examples:
        >>> apply_yield(8.0, 80, [])
        10.0
        >>> apply_yield(8.0, None, [])
        8.0
    """
    if yield_percentage is None or yield_percentage >= 100:
        return cost
    if yield_percentage <= 0:
        _record(
            diagnostics,
            Diagnostic(
                kind=DiagnosticKind.INVALID_YIELD,
                message=f"Yield percentage {yield_percentage} is not usable; ignored",
                recipe_id=recipe_id,
                item_id=item_id,
            ),
        )
        return cost
    return cost / (yield_percentage / 100)


def cost_of(
    ingredient: IngredientLine,
    visiting: AbstractSet,
    costing_pass: "CostingPass",
    recipe_id=None,
) -> IngredientCost:
    """
    Price one ingredient line.

    Args:
        ingredient: The line to price
        visiting: Recipe ids on the current path from the top-level recipe
        costing_pass: The top-level costing pass (catalog, settings, memo)
        recipe_id: Recipe the line belongs to, for diagnostics

    Returns:
        IngredientCost with the line cost, factor used and diagnostics
        (including those of any sub-recipe reached through this line)
    """
    if ingredient.is_sub_recipe:
        return _cost_of_sub_recipe(ingredient, visiting, costing_pass, recipe_id)
    return _cost_of_item(ingredient, costing_pass, recipe_id)


def _cost_of_item(
    ingredient: IngredientLine, costing_pass: "CostingPass", recipe_id
) -> IngredientCost:
    diagnostics: List[Diagnostic] = []
    catalog = costing_pass.catalog

    item = catalog.get_inventory_item_by_id(ingredient.item_id)
    if item is None:
        _record(
            diagnostics,
            Diagnostic(
                kind=DiagnosticKind.MISSING_ITEM,
                message=f"Inventory item {ingredient.item_id!r} not found",
                recipe_id=recipe_id,
                item_id=ingredient.item_id,
            ),
        )
        return IngredientCost(ingredient=ingredient, cost=0.0, diagnostics=tuple(diagnostics))

    factor, missing = catalog.resolver.resolve_or_identity(
        ingredient.unit, item.unit, item_id=item.id, recipe_id=recipe_id
    )
    _record(diagnostics, missing)

    cost = item.unit_cost * ingredient.quantity * factor
    cost = apply_yield(cost, item.yield_percentage, diagnostics, recipe_id, item.id)
    cost = apply_yield(cost, ingredient.yield_percentage, diagnostics, recipe_id, item.id)

    return IngredientCost(
        ingredient=ingredient,
        cost=cost,
        conversion_factor=factor,
        diagnostics=tuple(diagnostics),
    )


def _cost_of_sub_recipe(
    ingredient: IngredientLine,
    visiting: AbstractSet,
    costing_pass: "CostingPass",
    recipe_id,
) -> IngredientCost:
    diagnostics: List[Diagnostic] = []
    sub_recipe_id = ingredient.item_id

    if sub_recipe_id in visiting:
        _record(
            diagnostics,
            Diagnostic(
                kind=DiagnosticKind.CIRCULAR_REFERENCE,
                message=(
                    f"Recipe {recipe_id!r} includes sub-recipe {sub_recipe_id!r}, "
                    f"which is already being costed on this path"
                ),
                recipe_id=recipe_id,
                item_id=sub_recipe_id,
            ),
        )
        return IngredientCost(ingredient=ingredient, cost=0.0, diagnostics=tuple(diagnostics))

    sub_recipe = costing_pass.catalog.get_recipe_by_id(sub_recipe_id)
    if sub_recipe is None:
        _record(
            diagnostics,
            Diagnostic(
                kind=DiagnosticKind.MISSING_RECIPE,
                message=f"Sub-recipe {sub_recipe_id!r} not found",
                recipe_id=recipe_id,
                item_id=sub_recipe_id,
            ),
        )
        return IngredientCost(ingredient=ingredient, cost=0.0, diagnostics=tuple(diagnostics))

    breakdown = costing_pass.breakdown(sub_recipe, visiting | {sub_recipe.id})
    diagnostics.extend(breakdown.diagnostics)

    if sub_recipe.has_production_yield:
        unit_cost = breakdown.total_cost / sub_recipe.production_yield
        factor, missing = costing_pass.catalog.resolver.resolve_or_identity(
            ingredient.unit, sub_recipe.production_unit, recipe_id=recipe_id
        )
        _record(diagnostics, missing)
    else:
        # Quantity is measured in servings of the sub-recipe
        unit_cost = breakdown.cost_per_serving
        factor, missing = costing_pass.catalog.resolver.resolve_or_identity(
            ingredient.unit, SERVING_UNIT, recipe_id=recipe_id
        )
        _record(diagnostics, missing)

    cost = unit_cost * ingredient.quantity * factor
    cost = apply_yield(cost, ingredient.yield_percentage, diagnostics, recipe_id, sub_recipe.id)

    return IngredientCost(
        ingredient=ingredient,
        cost=cost,
        conversion_factor=factor,
        diagnostics=tuple(diagnostics),
    )
