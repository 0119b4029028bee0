"""
Constants for the Recipe Costing application.

This module defines all system-wide constants including:
- Application metadata
- Measurement units
- Ingredient and overhead types
- Costing defaults (food cost target, history debounce)
- Standard conversion pairs
"""

from typing import Dict, List, Tuple

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Recipe Costing"
APP_VERSION = "0.1.0"
DATABASE_FILENAME = "recipe_costing.db"

# ============================================================================
# Units
# ============================================================================

# Unit a sub-recipe is measured in when it defines no production unit
SERVING_UNIT = "serving"

# ============================================================================
# Types
# ============================================================================

INGREDIENT_TYPE_ITEM = "item"
INGREDIENT_TYPE_RECIPE = "recipe"
INGREDIENT_TYPES: List[str] = [INGREDIENT_TYPE_ITEM, INGREDIENT_TYPE_RECIPE]

OVERHEAD_VARIABLE = "Variable"
OVERHEAD_FIXED = "Fixed"
OVERHEAD_TYPES: List[str] = [OVERHEAD_VARIABLE, OVERHEAD_FIXED]

# ============================================================================
# Costing Defaults
# ============================================================================

DEFAULT_FOOD_COST_TARGET = 30.0
DEFAULT_WORKING_DAYS_PER_MONTH = 26
DEFAULT_HOURS_PER_DAY = 8.0

# Repeated history recordings inside this window replace the latest entry
HISTORY_DEBOUNCE_SECONDS = 300

# Two recorded costs closer than this are considered unchanged
COST_EPSILON = 0.01

# ============================================================================
# Validation Limits
# ============================================================================

MAX_NAME_LENGTH = 200
MIN_PERCENTAGE = 0.0
MAX_PERCENTAGE = 100.0

ERROR_REQUIRED_FIELD = "This field is required"
ERROR_INVALID_NUMBER = "Must be a valid number"
ERROR_INVALID_POSITIVE = "Must be greater than zero"
ERROR_INVALID_NON_NEGATIVE = "Must be zero or greater"
ERROR_INVALID_PERCENTAGE = "Must be between 0 and 100"

# ============================================================================
# Standard Conversions
# ============================================================================

# (from_unit, to_unit, factor): 1 from_unit == factor to_unit
STANDARD_CONVERSIONS: List[Tuple[str, str, float]] = [
    ("kg", "g", 1000.0),
    ("kg", "lb", 2.20462),
    ("kg", "oz", 35.274),
    ("g", "oz", 0.035274),
    ("lb", "g", 453.592),
    ("lb", "oz", 16.0),
    ("l", "ml", 1000.0),
    ("gal", "l", 3.78541),
    ("dozen", "unit", 12.0),
]

UNIT_ALIASES: Dict[str, str] = {
    "kgs": "kg",
    "grams": "g",
    "gram": "g",
    "litre": "l",
    "liter": "l",
    "litres": "l",
    "liters": "l",
    "each": "unit",
    "units": "unit",
    "servings": SERVING_UNIT,
}
