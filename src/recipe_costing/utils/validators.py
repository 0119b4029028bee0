"""
Input validation functions for the Recipe Costing application.

Each validator returns ``(is_valid, error_message)``; the ``validate_*_data``
functions collect every failure and return ``(is_valid, errors)`` so the
service layer can raise a single ValidationError.
"""

from typing import Any, Dict, List, Optional, Tuple

from .constants import (
    ERROR_INVALID_NON_NEGATIVE,
    ERROR_INVALID_NUMBER,
    ERROR_INVALID_PERCENTAGE,
    ERROR_INVALID_POSITIVE,
    ERROR_REQUIRED_FIELD,
    INGREDIENT_TYPES,
    MAX_NAME_LENGTH,
    MAX_PERCENTAGE,
    MIN_PERCENTAGE,
    OVERHEAD_TYPES,
)


def validate_required_string(value: Optional[str], field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a string field is not empty.

    Args:
        value: The string value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    if len(value) > MAX_NAME_LENGTH:
        return False, f"{field_name}: Must be {MAX_NAME_LENGTH} characters or less"
    return True, ""


def validate_positive_number(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """Validate that a value is a number greater than zero."""
    try:
        if float(value) <= 0:
            return False, f"{field_name}: {ERROR_INVALID_POSITIVE}"
        return True, ""
    except (ValueError, TypeError):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"


def validate_non_negative_number(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """Validate that a value is a number greater than or equal to zero."""
    try:
        if float(value) < 0:
            return False, f"{field_name}: {ERROR_INVALID_NON_NEGATIVE}"
        return True, ""
    except (ValueError, TypeError):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"


def validate_percentage(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """Validate that a value is a percentage in [0, 100]."""
    try:
        num_value = float(value)
    except (ValueError, TypeError):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if num_value < MIN_PERCENTAGE or num_value > MAX_PERCENTAGE:
        return False, f"{field_name}: {ERROR_INVALID_PERCENTAGE}"
    return True, ""


def _collect(errors: List[str], result: Tuple[bool, str]) -> None:
    is_valid, message = result
    if not is_valid:
        errors.append(message)


def validate_ingredient_data(data: Dict, position: int = 0) -> Tuple[bool, List[str]]:
    """
    Validate one recipe ingredient line.

    Args:
        data: Dict with type, item_id, quantity, unit, optional yield_percentage
        position: 1-based line number used in error messages

    Returns:
        Tuple of (is_valid, errors)
    """
    errors: List[str] = []
    label = f"Ingredient {position}" if position else "Ingredient"

    ingredient_type = data.get("type", "item")
    if ingredient_type not in INGREDIENT_TYPES:
        errors.append(f"{label}: type must be one of {', '.join(INGREDIENT_TYPES)}")
    if data.get("item_id") is None:
        errors.append(f"{label} reference: {ERROR_REQUIRED_FIELD}")
    _collect(errors, validate_positive_number(data.get("quantity"), f"{label} quantity"))
    _collect(errors, validate_required_string(data.get("unit"), f"{label} unit"))
    if data.get("yield_percentage") is not None:
        _collect(
            errors, validate_percentage(data["yield_percentage"], f"{label} yield percentage")
        )

    return len(errors) == 0, errors


def validate_recipe_data(data: Dict, partial: bool = False) -> Tuple[bool, List[str]]:
    """
    Validate recipe fields.

    Args:
        data: Recipe field dict
        partial: If True only validate fields that are present (updates)

    Returns:
        Tuple of (is_valid, errors)
    """
    errors: List[str] = []

    if not partial or "name" in data:
        _collect(errors, validate_required_string(data.get("name"), "Name"))
    if not partial or "category" in data:
        _collect(errors, validate_required_string(data.get("category"), "Category"))
    if not partial or "servings" in data:
        _collect(errors, validate_positive_number(data.get("servings"), "Servings"))

    for field in ("labour_minutes", "packaging_cost_per_serving"):
        if data.get(field) is not None:
            _collect(errors, validate_non_negative_number(data[field], field))
    if data.get("wastage_factor") is not None:
        _collect(errors, validate_percentage(data["wastage_factor"], "Wastage factor"))
    if data.get("production_yield") is not None:
        _collect(errors, validate_positive_number(data["production_yield"], "Production yield"))

    if data.get("use_custom_labour_cost"):
        for field in ("custom_labour_salary", "custom_working_days", "custom_working_hours"):
            if data.get(field) is not None:
                _collect(errors, validate_non_negative_number(data[field], field))

    return len(errors) == 0, errors


def validate_inventory_item_data(data: Dict, partial: bool = False) -> Tuple[bool, List[str]]:
    """Validate inventory item fields."""
    errors: List[str] = []

    if not partial or "name" in data:
        _collect(errors, validate_required_string(data.get("name"), "Name"))
    if not partial or "unit" in data:
        _collect(errors, validate_required_string(data.get("unit"), "Unit"))
    if not partial or "unit_cost" in data:
        _collect(errors, validate_non_negative_number(data.get("unit_cost"), "Unit cost"))
    if data.get("yield_percentage") is not None:
        _collect(errors, validate_percentage(data["yield_percentage"], "Yield percentage"))

    return len(errors) == 0, errors


def validate_conversion_data(data: Dict) -> Tuple[bool, List[str]]:
    """Validate a unit conversion entry."""
    errors: List[str] = []

    _collect(errors, validate_required_string(data.get("from_unit"), "From unit"))
    _collect(errors, validate_required_string(data.get("to_unit"), "To unit"))
    _collect(errors, validate_positive_number(data.get("factor"), "Factor"))

    return len(errors) == 0, errors


def validate_overhead_data(data: Dict) -> Tuple[bool, List[str]]:
    """Validate an overhead record."""
    errors: List[str] = []

    _collect(errors, validate_required_string(data.get("name"), "Name"))
    if data.get("type") not in OVERHEAD_TYPES:
        errors.append(f"Type: must be one of {', '.join(OVERHEAD_TYPES)}")
    _collect(errors, validate_non_negative_number(data.get("monthly_cost"), "Monthly cost"))

    return len(errors) == 0, errors
