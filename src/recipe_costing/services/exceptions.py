"""Service layer exception classes for Recipe Costing.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the application.

The costing engine itself never raises for missing references, missing
conversions or cycles; it records Diagnostics instead. These exceptions
cover lookups by id and write operations that would corrupt the catalog.

Exception Hierarchy:
    ServiceError (base)
    ├── RecipeNotFound
    ├── InventoryItemNotFound
    ├── BusinessNotFound
    ├── UnitConversionNotFound
    ├── CircularReferenceError
    ├── RecipeInUse
    ├── InventoryItemInUse
    ├── ValidationError
    └── DatabaseError
"""

from typing import List, Sequence


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.
    """

    pass


class RecipeNotFound(ServiceError):
    """Raised when a recipe cannot be found by ID."""

    def __init__(self, recipe_id: int):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe with ID {recipe_id} not found")


class InventoryItemNotFound(ServiceError):
    """Raised when inventory item cannot be found by ID.

    Args:
        inventory_item_id: The inventory item ID that was not found

    Example:
        >>> raise InventoryItemNotFound(456)
        InventoryItemNotFound: Inventory item with ID 456 not found
    """

    def __init__(self, inventory_item_id: int):
        self.inventory_item_id = inventory_item_id
        super().__init__(f"Inventory item with ID {inventory_item_id} not found")


class BusinessNotFound(ServiceError):
    """Raised when a business cannot be found by ID."""

    def __init__(self, business_id: int):
        self.business_id = business_id
        super().__init__(f"Business with ID {business_id} not found")


class UnitConversionNotFound(ServiceError):
    """Raised when a stored unit conversion cannot be found by ID."""

    def __init__(self, conversion_id: int):
        self.conversion_id = conversion_id
        super().__init__(f"Unit conversion with ID {conversion_id} not found")


class CircularReferenceError(ServiceError):
    """Raised when a sub-recipe reference would make the recipe graph cyclic.

    Args:
        recipe_id: Recipe being saved
        path: Recipe ids forming the loop, first id repeated at the end

    Example:
        >>> raise CircularReferenceError(1, [1, 2, 1])
        CircularReferenceError: Recipe 1 would create a circular reference: 1 -> 2 -> 1
    """

    def __init__(self, recipe_id: int, path: Sequence[int] = ()):
        self.recipe_id = recipe_id
        self.path = list(path)
        detail = " -> ".join(str(node) for node in self.path) if self.path else str(recipe_id)
        super().__init__(f"Recipe {recipe_id} would create a circular reference: {detail}")


class RecipeInUse(ServiceError):
    """Raised when deleting a recipe that other recipes use as a sub-recipe.

    Args:
        recipe_id: The recipe being deleted
        parent_names: Names of the recipes that use it
    """

    def __init__(self, recipe_id: int, parent_names: List[str]):
        self.recipe_id = recipe_id
        self.parent_names = parent_names
        super().__init__(
            f"Cannot delete recipe {recipe_id}: used as a sub-recipe in "
            f"{len(parent_names)} recipe(s): {', '.join(parent_names)}"
        )


class InventoryItemInUse(ServiceError):
    """Raised when deleting an inventory item that recipes still reference."""

    def __init__(self, inventory_item_id: int, recipe_names: List[str]):
        self.inventory_item_id = inventory_item_id
        self.recipe_names = recipe_names
        super().__init__(
            f"Cannot delete inventory item {inventory_item_id}: used in "
            f"{len(recipe_names)} recipe(s): {', '.join(recipe_names)}"
        )


class ValidationError(ServiceError):
    """Raised when data validation fails."""

    def __init__(self, errors: list):
        self.errors = errors
        error_msg = "; ".join(errors)
        super().__init__(f"Validation failed: {error_msg}")


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")
