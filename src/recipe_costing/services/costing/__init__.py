"""
Recipe costing engine.

Pure, synchronous computation over immutable snapshots; no database
access happens in this package.

Usage:
    from recipe_costing.services.costing import (
        CostingCatalog,
        CostingSettings,
        RecipeData,
        IngredientLine,
        InventoryItemData,
        calculate_recipe_cost_breakdown,
        suggest_price,
    )

    catalog = CostingCatalog(items=[InventoryItemData(1, "Flour", "kg", 18.0)])
    recipe = RecipeData(10, "Bread", servings=500, ingredients=(IngredientLine(1, 10, "kg"),))
    breakdown = calculate_recipe_cost_breakdown(recipe, catalog, CostingSettings())
    price = suggest_price(breakdown.cost_per_serving, 30)
"""

from .aggregator import (
    CostingPass,
    adjust_for_wastage,
    calculate_recipe_cost,
    calculate_recipe_cost_breakdown,
    labour_hourly_rate,
    overhead_per_dish,
)
from .catalog import CostingCatalog
from .graph import find_cycle, sub_recipe_graph, sub_recipe_path, would_create_cycle
from .history import (
    CostHistoryTracker,
    CostTrend,
    apply_history_entry,
    cost_trend,
    should_replace_latest,
)
from .ingredient_cost import apply_yield, cost_of
from .pricing import food_cost_percent, suggest_price, suggest_price_from_breakdown
from .types import (
    ConversionData,
    CostHistoryEntry,
    CostingSettings,
    Diagnostic,
    DiagnosticKind,
    IngredientCost,
    IngredientLine,
    InventoryItemData,
    RecipeCostBreakdown,
    RecipeData,
)
from .unit_resolution import UnitConversionResolver, normalize_unit

__all__ = [
    # Types
    "ConversionData",
    "CostHistoryEntry",
    "CostingSettings",
    "Diagnostic",
    "DiagnosticKind",
    "IngredientCost",
    "IngredientLine",
    "InventoryItemData",
    "RecipeCostBreakdown",
    "RecipeData",
    # Unit conversion
    "UnitConversionResolver",
    "normalize_unit",
    # Catalog
    "CostingCatalog",
    # Ingredient costs
    "apply_yield",
    "cost_of",
    # Aggregation
    "CostingPass",
    "adjust_for_wastage",
    "calculate_recipe_cost",
    "calculate_recipe_cost_breakdown",
    "labour_hourly_rate",
    "overhead_per_dish",
    # History
    "CostHistoryTracker",
    "CostTrend",
    "apply_history_entry",
    "cost_trend",
    "should_replace_latest",
    # Pricing
    "food_cost_percent",
    "suggest_price",
    "suggest_price_from_breakdown",
    # Graph
    "find_cycle",
    "sub_recipe_graph",
    "sub_recipe_path",
    "would_create_cycle",
]
