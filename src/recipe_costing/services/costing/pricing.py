"""
Pricing advice from cost per serving.

The food cost target is the share of the sale price that ingredients and
production should consume; a 30% target prices a 3.00 plate at 10.00.
"""

from typing import Optional

from recipe_costing.utils.constants import DEFAULT_FOOD_COST_TARGET

from .types import CostingSettings, RecipeCostBreakdown


def suggest_price(
    cost_per_serving: float, target_food_cost_percent: float = DEFAULT_FOOD_COST_TARGET
) -> Optional[float]:
    """
    Suggested sale price per serving.

    Args:
        cost_per_serving: Cost of one serving
        target_food_cost_percent: Target food cost as a percent of price

    Returns:
        cost_per_serving / (target / 100), or None when the cost is not
        positive or the target is outside (0, 100]

    Examples:
        >>> suggest_price(3.0, 30)
        10.0
        >>> suggest_price(0, 30) is None
        True
    """
    if cost_per_serving is None or cost_per_serving <= 0:
        return None
    if target_food_cost_percent is None or not 0 < target_food_cost_percent <= 100:
        return None
    return cost_per_serving / (target_food_cost_percent / 100)


def suggest_price_from_breakdown(
    breakdown: RecipeCostBreakdown, settings: Optional[CostingSettings] = None
) -> Optional[float]:
    """Suggested price for a breakdown using the business food cost target."""
    target = settings.food_cost_target if settings else DEFAULT_FOOD_COST_TARGET
    return suggest_price(breakdown.cost_per_serving, target)


def food_cost_percent(cost_per_serving: float, sale_price: float) -> Optional[float]:
    """
    Achieved food cost percentage at a given sale price.

    Returns:
        cost / price * 100, or None when the price is not positive
    """
    if sale_price is None or sale_price <= 0:
        return None
    return cost_per_serving / sale_price * 100
