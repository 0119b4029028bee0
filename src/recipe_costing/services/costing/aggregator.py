"""
Recipe cost aggregation.

Walks a recipe's ingredient graph and folds the ingredient costs into a
RecipeCostBreakdown:

    raw_material_cost      = sum of ingredient line costs
    adjusted_rmc           = raw_material_cost / (1 - wastage_factor / 100)
    labour_cost            = hourly rate * labour_minutes / 60 * servings
    variable_overhead_cost = variable overheads / dishes produced * servings
    fixed_overhead_cost    = fixed overheads / dishes sold * servings
    packaging_cost         = packaging_cost_per_serving * servings
    total_cost             = sum of the five above
    cost_per_serving       = total_cost / servings (0 when servings <= 0)

Each top-level call creates a fresh CostingPass. The pass owns the memo of
sub-recipe breakdowns, so a sub-recipe reached through several ingredient
paths is costed once per call and every path sees the same numbers.
Nothing is shared between calls.
"""

import logging
from typing import AbstractSet, Dict, Iterable, List, Optional

from ..logging_utils import get_service_logger, log_operation
from .catalog import CostingCatalog
from .ingredient_cost import cost_of
from .types import (
    CostingSettings,
    Diagnostic,
    DiagnosticKind,
    RecipeCostBreakdown,
    RecipeData,
)

logger = get_service_logger(__name__)


def _unique(diagnostics: Iterable[Diagnostic]) -> tuple:
    seen = set()
    result = []
    for diagnostic in diagnostics:
        if diagnostic not in seen:
            seen.add(diagnostic)
            result.append(diagnostic)
    return tuple(result)


def labour_hourly_rate(recipe: RecipeData, settings: CostingSettings) -> float:
    """
    Hourly labour rate used for a recipe.

    With ``use_custom_labour_cost`` the rate is the custom salary spread
    over the custom working days and hours (each falling back to the
    business setting when unset); otherwise it is the business's total
    staff salary spread over the business working time.
    """
    if recipe.use_custom_labour_cost:
        days = recipe.custom_working_days or settings.working_days_per_month
        hours = recipe.custom_working_hours or settings.hours_per_day
        salary = recipe.custom_labour_salary or 0.0
    else:
        days = settings.working_days_per_month
        hours = settings.hours_per_day
        salary = settings.total_monthly_salary

    working_hours = (days or 0) * (hours or 0)
    if working_hours <= 0:
        return 0.0
    return salary / working_hours


def overhead_per_dish(settings: CostingSettings) -> tuple:
    """Return (variable, fixed) overhead allocated to one dish."""
    variable = (
        settings.variable_overhead_monthly / settings.total_dishes_produced
        if settings.total_dishes_produced and settings.total_dishes_produced > 0
        else 0.0
    )
    fixed = (
        settings.fixed_overhead_monthly / settings.total_dishes_sold
        if settings.total_dishes_sold and settings.total_dishes_sold > 0
        else 0.0
    )
    return variable, fixed


def adjust_for_wastage(
    raw_material_cost: float, wastage_factor: Optional[float], diagnostics: List[Diagnostic],
    recipe_id=None,
) -> float:
    """
    Inflate raw material cost for production wastage.

    A 10% wastage factor means the finished product holds only 90% of the
    material bought, so the effective material cost is RMC / 0.9.

    Examples:
        >>> adjust_for_wastage(90.0, 10, [])
        100.0
        >>> adjust_for_wastage(90.0, 0, [])
        90.0
    """
    wastage = wastage_factor or 0.0
    if wastage == 0:
        return raw_material_cost
    if wastage < 0 or wastage >= 100:
        diagnostic = Diagnostic(
            kind=DiagnosticKind.INVALID_WASTAGE,
            message=f"Wastage factor {wastage} is outside [0, 100); ignored",
            recipe_id=recipe_id,
        )
        log_operation(
            logger,
            operation="cost_recipe",
            outcome=diagnostic.kind.value,
            level=logging.WARNING,
            recipe_id=recipe_id,
            wastage_factor=wastage,
        )
        diagnostics.append(diagnostic)
        return raw_material_cost
    return raw_material_cost / (1 - wastage / 100)


class CostingPass:
    """State of one top-level costing invocation.

    Holds the catalog snapshot, the business settings and the memo of
    breakdowns computed so far. Create one per request; never share a pass
    between concurrent requests.
    """

    def __init__(self, catalog: CostingCatalog, settings: Optional[CostingSettings] = None):
        self.catalog = catalog
        self.settings = settings or CostingSettings()
        self._memo: Dict[object, RecipeCostBreakdown] = {}

    def breakdown(
        self, recipe: RecipeData, visiting: Optional[AbstractSet] = None
    ) -> RecipeCostBreakdown:
        """
        Cost a recipe within this pass.

        Args:
            recipe: Recipe to cost
            visiting: Recipe ids on the path from the top-level recipe,
                including ``recipe.id``; defaults to ``{recipe.id}``

        Returns:
            RecipeCostBreakdown, memoized per recipe id for this pass
        """
        cached = self._memo.get(recipe.id)
        if cached is not None:
            return cached

        if visiting is None:
            visiting = frozenset([recipe.id])
        else:
            visiting = frozenset(visiting) | {recipe.id}

        result = self._compute(recipe, visiting)
        self._memo[recipe.id] = result
        return result

    def _compute(self, recipe: RecipeData, visiting: frozenset) -> RecipeCostBreakdown:
        diagnostics: List[Diagnostic] = []

        ingredient_costs = []
        for ingredient in recipe.ingredients:
            line = cost_of(ingredient, visiting, self, recipe_id=recipe.id)
            ingredient_costs.append(line)
            diagnostics.extend(line.diagnostics)

        raw_material_cost = sum(line.cost for line in ingredient_costs)
        adjusted_rmc = adjust_for_wastage(
            raw_material_cost, recipe.wastage_factor, diagnostics, recipe.id
        )

        servings = recipe.servings or 0
        if servings <= 0:
            diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.NON_POSITIVE_SERVINGS,
                    message=f"Recipe has {servings} servings; per-serving costs are 0",
                    recipe_id=recipe.id,
                )
            )
            log_operation(
                logger,
                operation="cost_recipe",
                outcome=DiagnosticKind.NON_POSITIVE_SERVINGS.value,
                level=logging.WARNING,
                recipe_id=recipe.id,
                servings=servings,
            )
            servings = 0

        labour_cost = (
            labour_hourly_rate(recipe, self.settings)
            * (recipe.labour_minutes or 0)
            / 60
            * servings
        )
        variable_per_dish, fixed_per_dish = overhead_per_dish(self.settings)
        variable_overhead_cost = variable_per_dish * servings
        fixed_overhead_cost = fixed_per_dish * servings
        packaging_cost = (recipe.packaging_cost_per_serving or 0) * servings

        total_cost = (
            adjusted_rmc
            + labour_cost
            + variable_overhead_cost
            + fixed_overhead_cost
            + packaging_cost
        )
        cost_per_serving = total_cost / servings if servings > 0 else 0.0

        result = RecipeCostBreakdown(
            recipe_id=recipe.id,
            raw_material_cost=raw_material_cost,
            adjusted_rmc=adjusted_rmc,
            labour_cost=labour_cost,
            variable_overhead_cost=variable_overhead_cost,
            fixed_overhead_cost=fixed_overhead_cost,
            packaging_cost=packaging_cost,
            total_cost=total_cost,
            cost_per_serving=cost_per_serving,
            ingredient_costs=tuple(ingredient_costs),
            diagnostics=_unique(diagnostics),
        )

        log_operation(
            logger,
            operation="cost_recipe",
            outcome="cycle_detected" if result.has_cycle else "success",
            level=logging.DEBUG,
            recipe_id=recipe.id,
            total_cost=total_cost,
            diagnostic_count=len(result.diagnostics),
        )
        return result


def calculate_recipe_cost_breakdown(
    recipe: RecipeData,
    catalog: CostingCatalog,
    settings: Optional[CostingSettings] = None,
) -> RecipeCostBreakdown:
    """
    Full cost breakdown of a recipe.

    Transaction boundary: Pure computation (no database access).

    Args:
        recipe: Recipe to cost; does not need to be in the catalog
        catalog: Items, sub-recipes and conversions to resolve against
        settings: Business labour/overhead basis (defaults: no labour or
            overhead cost)

    Returns:
        RecipeCostBreakdown. Never raises for missing data or cycles; check
        ``breakdown.diagnostics`` and ``breakdown.has_cycle``.

    Example:
        >>> catalog = CostingCatalog(items=[InventoryItemData(1, "Flour", "kg", 18.0)])
        >>> recipe = RecipeData(1, "Bread", servings=500,
        ...                     ingredients=(IngredientLine(1, 10, "kg"),))
        >>> calculate_recipe_cost_breakdown(recipe, catalog).cost_per_serving
        0.36
    """
    return CostingPass(catalog, settings).breakdown(recipe)


def calculate_recipe_cost(
    recipe: RecipeData,
    catalog: CostingCatalog,
    settings: Optional[CostingSettings] = None,
) -> float:
    """
    Raw material cost of a recipe (ingredients only, before wastage).

    Transaction boundary: Pure computation (no database access).
    """
    return calculate_recipe_cost_breakdown(recipe, catalog, settings).raw_material_cost
