"""Inventory Item Service - Priced raw materials.

This module provides business logic for managing the inventory items that
recipes are costed against. An item's ``unit_cost`` is the price of one
``unit``; recipes convert their own quantities into that unit at costing
time.

All functions are stateless and use session_scope() for transaction management.

Example Usage:
      >>> from recipe_costing.services.inventory_item_service import create_inventory_item
      >>> item = create_inventory_item(
      ...     business_id=1,
      ...     data={"name": "Flour", "unit": "kg", "unit_cost": 1.20, "category": "Pantry"},
      ... )
      >>> update_inventory_item(item.id, {"unit_cost": 1.35})
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Business, InventoryItem, Recipe, RecipeIngredient
from ..utils.constants import INGREDIENT_TYPE_ITEM
from ..utils.validators import validate_inventory_item_data
from .database import session_scope
from .exceptions import (
    BusinessNotFound,
    DatabaseError,
    InventoryItemInUse,
    InventoryItemNotFound,
    ValidationError,
)
from .logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)

ITEM_FIELDS = ("name", "category", "unit", "unit_cost", "quantity", "yield_percentage")


def create_inventory_item(business_id: int, data: Dict[str, Any]) -> InventoryItem:
    """Create a new inventory item.

    Args:
        business_id: Owning business
        data: Dict with name, unit, unit_cost and optional category,
            quantity, yield_percentage

    Returns:
        Created InventoryItem

    Raises:
        BusinessNotFound: If the business doesn't exist
        ValidationError: If data validation fails
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_inventory_item_data(data)
    if not is_valid:
        raise ValidationError(errors)

    try:
        with session_scope() as session:
            if not session.query(Business).filter_by(id=business_id).first():
                raise BusinessNotFound(business_id)

            item = InventoryItem(
                business_id=business_id,
                **{field: data[field] for field in ITEM_FIELDS if field in data},
            )
            item.name = item.name.strip()
            session.add(item)
            session.flush()

            log_operation(
                logger, "create_inventory_item", "success", item_id=item.id, business_id=business_id
            )
            return item

    except BusinessNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create inventory item", e)


def get_inventory_item(item_id: int, session: Optional[Session] = None) -> InventoryItem:
    """Retrieve an inventory item by ID.

    Raises:
        InventoryItemNotFound: If item doesn't exist
        DatabaseError: If database operation fails
    """
    if session is not None:
        return _get_inventory_item_impl(item_id, session)

    try:
        with session_scope() as session:
            return _get_inventory_item_impl(item_id, session)
    except InventoryItemNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve inventory item {item_id}", e)


def _get_inventory_item_impl(item_id: int, session: Session) -> InventoryItem:
    item = session.query(InventoryItem).filter_by(id=item_id).first()
    if not item:
        raise InventoryItemNotFound(item_id)
    return item


def get_inventory_items(
    business_id: int,
    category: Optional[str] = None,
    name_search: Optional[str] = None,
) -> List[InventoryItem]:
    """Retrieve a business's inventory items with optional filtering.

    Args:
        business_id: Owning business
        category: Filter by category (exact match)
        name_search: Filter by name (case-insensitive partial match)

    Returns:
        List of InventoryItem ordered by name
    """
    try:
        with session_scope() as session:
            query = session.query(InventoryItem).filter(InventoryItem.business_id == business_id)
            if category:
                query = query.filter(InventoryItem.category == category)
            if name_search:
                query = query.filter(InventoryItem.name.ilike(f"%{name_search}%"))
            return query.order_by(InventoryItem.name).all()

    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve inventory items", e)


def update_inventory_item(item_id: int, data: Dict[str, Any]) -> InventoryItem:
    """Update an inventory item.

    Only name, category, unit, unit_cost, quantity and yield_percentage can
    change; the owning business is fixed.

    Raises:
        InventoryItemNotFound: If item doesn't exist
        ValidationError: If data validation fails
        DatabaseError: If database operation fails
    """
    updates = {field: value for field, value in data.items() if field in ITEM_FIELDS}
    is_valid, errors = validate_inventory_item_data(updates, partial=True)
    if not is_valid:
        raise ValidationError(errors)

    try:
        with session_scope() as session:
            item = _get_inventory_item_impl(item_id, session)
            item.update_from_dict(updates)
            session.flush()

            log_operation(
                logger, "update_inventory_item", "success", item_id=item_id, fields=sorted(updates)
            )
            return item

    except InventoryItemNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update inventory item {item_id}", e)


def delete_inventory_item(item_id: int) -> bool:
    """Delete an inventory item that no recipe references.

    Item-specific unit conversions are deleted with it.

    Returns:
        True if deleted successfully

    Raises:
        InventoryItemNotFound: If item doesn't exist
        InventoryItemInUse: If any recipe uses the item
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            item = _get_inventory_item_impl(item_id, session)

            recipe_names = [
                name
                for (name,) in session.query(Recipe.name)
                .join(RecipeIngredient, RecipeIngredient.recipe_id == Recipe.id)
                .filter(
                    RecipeIngredient.ingredient_type == INGREDIENT_TYPE_ITEM,
                    RecipeIngredient.item_id == item_id,
                )
                .distinct()
                .order_by(Recipe.name)
            ]
            if recipe_names:
                raise InventoryItemInUse(item_id, recipe_names)

            session.delete(item)

            log_operation(logger, "delete_inventory_item", "success", item_id=item_id)
            return True

    except (InventoryItemNotFound, InventoryItemInUse):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete inventory item {item_id}", e)
