"""
Value objects for the recipe costing engine.

Snapshot types (inputs):
- InventoryItemData: priced raw material
- IngredientLine: one line of a recipe, referencing an item or a sub-recipe
- RecipeData: recipe with its costing parameters
- ConversionData: stored unit conversion factor
- CostingSettings: business-wide labour and overhead basis

Result types (outputs):
- Diagnostic: recoverable problem found while costing
- IngredientCost: priced ingredient line
- RecipeCostBreakdown: full cost breakdown of one recipe
- CostHistoryEntry: dated cost snapshot

All types are frozen so a costing pass can never mutate its inputs.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from recipe_costing.utils.constants import (
    DEFAULT_FOOD_COST_TARGET,
    DEFAULT_HOURS_PER_DAY,
    DEFAULT_WORKING_DAYS_PER_MONTH,
    INGREDIENT_TYPE_ITEM,
    INGREDIENT_TYPE_RECIPE,
)


class DiagnosticKind(str, Enum):
    """
    Classification of costing diagnostics.

    Values:
        MISSING_ITEM: Ingredient references an unknown inventory item
        MISSING_RECIPE: Ingredient references an unknown sub-recipe
        MISSING_CONVERSION: No conversion between two units, factor 1 used
        CIRCULAR_REFERENCE: Sub-recipe graph loops back to an ancestor
        INVALID_YIELD: Yield percentage <= 0, adjustment skipped
        INVALID_WASTAGE: Wastage factor outside [0, 100), adjustment skipped
        NON_POSITIVE_SERVINGS: Servings <= 0, per-serving cost reported as 0
    """

    MISSING_ITEM = "missing_item"
    MISSING_RECIPE = "missing_recipe"
    MISSING_CONVERSION = "missing_conversion"
    CIRCULAR_REFERENCE = "circular_reference"
    INVALID_YIELD = "invalid_yield"
    INVALID_WASTAGE = "invalid_wastage"
    NON_POSITIVE_SERVINGS = "non_positive_servings"


@dataclass(frozen=True)
class Diagnostic:
    """A recoverable problem recorded during a costing pass.

    Circular references are structural (a data-integrity bug); everything
    else is an incomplete catalog the user can fix.
    """

    kind: DiagnosticKind
    message: str
    recipe_id: Any = None
    item_id: Any = None
    from_unit: Optional[str] = None
    to_unit: Optional[str] = None

    @property
    def is_structural(self) -> bool:
        return self.kind == DiagnosticKind.CIRCULAR_REFERENCE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "recipe_id": self.recipe_id,
            "item_id": self.item_id,
            "from_unit": self.from_unit,
            "to_unit": self.to_unit,
        }


@dataclass(frozen=True)
class InventoryItemData:
    """Inventory item snapshot.

    Attributes:
        id: Item identifier
        name: Display name
        unit: Canonical unit the unit_cost is expressed in
        unit_cost: Cost of one unit
        category: Inventory category
        yield_percentage: Usable fraction after trimming/peeling (None = 100)
    """

    id: Any
    name: str
    unit: str
    unit_cost: float
    category: str = ""
    yield_percentage: Optional[float] = None


@dataclass(frozen=True)
class IngredientLine:
    """One ingredient line of a recipe.

    ``item_id`` references an InventoryItemData when ``type`` is ``item``
    and a RecipeData when ``type`` is ``recipe``.
    """

    item_id: Any
    quantity: float
    unit: str
    type: str = INGREDIENT_TYPE_ITEM
    id: Any = None
    yield_percentage: Optional[float] = None

    @property
    def is_sub_recipe(self) -> bool:
        return self.type == INGREDIENT_TYPE_RECIPE


@dataclass(frozen=True)
class CostHistoryEntry:
    """Dated cost snapshot of a recipe."""

    date: datetime
    cost: float

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date.isoformat(), "cost": self.cost}


@dataclass(frozen=True)
class RecipeData:
    """Recipe snapshot with everything the engine needs to cost it.

    Attributes:
        id: Recipe identifier
        name: Display name
        servings: Servings produced by one batch
        ingredients: Ingredient lines
        production_yield: Quantity produced per batch in production_unit,
            used instead of servings when costing this recipe as a sub-recipe
        production_unit: Unit of production_yield
        labour_minutes: Labour minutes per serving
        packaging_cost_per_serving: Packaging cost per serving
        wastage_factor: Percent of material lost during production
        use_custom_labour_cost: Use the custom_* fields instead of business staff
        custom_labour_salary: Monthly salary for the custom labour rate
        custom_working_days: Working days per month for the custom rate
        custom_working_hours: Working hours per day for the custom rate
        cost_history: Recorded cost snapshots, oldest first
    """

    id: Any
    name: str
    servings: float
    ingredients: Tuple[IngredientLine, ...] = ()
    category: str = ""
    instructions: Tuple[str, ...] = ()
    production_yield: Optional[float] = None
    production_unit: Optional[str] = None
    labour_minutes: float = 0.0
    packaging_cost_per_serving: float = 0.0
    wastage_factor: float = 0.0
    use_custom_labour_cost: bool = False
    custom_labour_salary: Optional[float] = None
    custom_working_days: Optional[float] = None
    custom_working_hours: Optional[float] = None
    target_sale_price_per_serving: Optional[float] = None
    cost_history: Tuple[CostHistoryEntry, ...] = ()

    @property
    def has_production_yield(self) -> bool:
        return bool(self.production_yield and self.production_yield > 0 and self.production_unit)


@dataclass(frozen=True)
class ConversionData:
    """Stored conversion: 1 ``from_unit`` equals ``factor`` ``to_unit``.

    Entries with ``item_id`` only apply to that inventory item.
    """

    from_unit: str
    to_unit: str
    factor: float
    item_id: Any = None


@dataclass(frozen=True)
class CostingSettings:
    """Business-wide basis for labour and overhead allocation.

    Attributes:
        working_days_per_month: Days staff work per month
        hours_per_day: Hours staff work per day
        total_monthly_salary: Sum of monthly staff salaries
        variable_overhead_monthly: Sum of monthly variable overheads
        fixed_overhead_monthly: Sum of monthly fixed overheads
        total_dishes_produced: Monthly production volume (variable overhead basis)
        total_dishes_sold: Monthly sales volume (fixed overhead basis)
        food_cost_target: Target ingredient cost as percent of sale price
    """

    working_days_per_month: float = DEFAULT_WORKING_DAYS_PER_MONTH
    hours_per_day: float = DEFAULT_HOURS_PER_DAY
    total_monthly_salary: float = 0.0
    variable_overhead_monthly: float = 0.0
    fixed_overhead_monthly: float = 0.0
    total_dishes_produced: float = 0.0
    total_dishes_sold: float = 0.0
    food_cost_target: float = DEFAULT_FOOD_COST_TARGET


@dataclass(frozen=True)
class IngredientCost:
    """Cost of one ingredient line within a recipe."""

    ingredient: IngredientLine
    cost: float
    conversion_factor: float = 1.0
    diagnostics: Tuple[Diagnostic, ...] = ()


@dataclass(frozen=True)
class RecipeCostBreakdown:
    """Structured cost breakdown of one recipe batch.

    Monetary fields are for the whole batch except ``cost_per_serving``.
    ``diagnostics`` covers the recipe and every sub-recipe reached from it.
    """

    recipe_id: Any
    raw_material_cost: float = 0.0
    adjusted_rmc: float = 0.0
    labour_cost: float = 0.0
    variable_overhead_cost: float = 0.0
    fixed_overhead_cost: float = 0.0
    packaging_cost: float = 0.0
    total_cost: float = 0.0
    cost_per_serving: float = 0.0
    ingredient_costs: Tuple[IngredientCost, ...] = ()
    diagnostics: Tuple[Diagnostic, ...] = field(default=())

    @property
    def has_cycle(self) -> bool:
        return any(d.is_structural for d in self.diagnostics)

    @property
    def warnings(self) -> List[Diagnostic]:
        """Non-structural diagnostics."""
        return [d for d in self.diagnostics if not d.is_structural]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recipe_id": self.recipe_id,
            "raw_material_cost": self.raw_material_cost,
            "adjusted_rmc": self.adjusted_rmc,
            "labour_cost": self.labour_cost,
            "variable_overhead_cost": self.variable_overhead_cost,
            "fixed_overhead_cost": self.fixed_overhead_cost,
            "packaging_cost": self.packaging_cost,
            "total_cost": self.total_cost,
            "cost_per_serving": self.cost_per_serving,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
