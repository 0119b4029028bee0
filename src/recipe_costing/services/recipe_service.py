"""
Recipe Service - Business logic for recipe management.

This service provides CRUD operations for recipes with:
- Input validation
- Ingredient line management (inventory items and sub-recipes)
- Sub-recipe cycle prevention
- Duplication with optional cost history
- Bulk creation with duplicate-name skipping
- Reverse lookups (which recipes use an item or a sub-recipe)

Recipe data dicts accept the Recipe columns (name, category, servings,
production_yield, production_unit, labour_minutes,
packaging_cost_per_serving, wastage_factor, use_custom_labour_cost,
custom_labour_salary, custom_working_days, custom_working_hours,
target_sale_price_per_serving, notes). Ingredient dicts carry type
('item' or 'recipe'), item_id, quantity, unit and optional
yield_percentage.
"""

from typing import Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import (
    Business,
    InventoryItem,
    Recipe,
    RecipeCostHistory,
    RecipeIngredient,
    RecipeInstruction,
)
from ..utils.constants import INGREDIENT_TYPE_ITEM, INGREDIENT_TYPE_RECIPE
from ..utils.datetime_utils import utc_now
from ..utils.validators import validate_ingredient_data, validate_recipe_data
from .costing.graph import sub_recipe_path
from .database import session_scope
from .exceptions import (
    BusinessNotFound,
    CircularReferenceError,
    DatabaseError,
    InventoryItemNotFound,
    RecipeInUse,
    RecipeNotFound,
    ValidationError,
)
from .logging_utils import get_service_logger, log_operation
from .recipe_costing_service import calculate_recipe_cost_breakdown

logger = get_service_logger(__name__)

RECIPE_FIELDS = (
    "name",
    "category",
    "servings",
    "production_yield",
    "production_unit",
    "labour_minutes",
    "packaging_cost_per_serving",
    "wastage_factor",
    "use_custom_labour_cost",
    "custom_labour_salary",
    "custom_working_days",
    "custom_working_hours",
    "target_sale_price_per_serving",
    "notes",
)


# ============================================================================
# Helpers
# ============================================================================


def _get_recipe_or_raise(recipe_id: int, session: Session) -> Recipe:
    recipe = session.query(Recipe).filter_by(id=recipe_id).first()
    if not recipe:
        raise RecipeNotFound(recipe_id)
    return recipe


def _validate_ingredients(ingredients_data: Sequence[Dict]) -> None:
    errors = []
    for position, ing_data in enumerate(ingredients_data, start=1):
        _, line_errors = validate_ingredient_data(ing_data, position)
        errors.extend(line_errors)
    if errors:
        raise ValidationError(errors)


def _check_references(
    business_id: int,
    recipe_id: Optional[int],
    ingredients_data: Sequence[Dict],
    session: Session,
) -> None:
    """Verify ingredient references exist in the business and form no cycle."""
    business_recipes = None

    for ing_data in ingredients_data:
        ingredient_type = ing_data.get("type", INGREDIENT_TYPE_ITEM)
        ref_id = ing_data["item_id"]

        if ingredient_type == INGREDIENT_TYPE_ITEM:
            item = (
                session.query(InventoryItem).filter_by(id=ref_id, business_id=business_id).first()
            )
            if not item:
                raise InventoryItemNotFound(ref_id)
            continue

        sub_recipe = session.query(Recipe).filter_by(id=ref_id, business_id=business_id).first()
        if not sub_recipe:
            raise RecipeNotFound(ref_id)

        if recipe_id is None:
            # A recipe that doesn't exist yet cannot be used by anything
            continue
        if business_recipes is None:
            business_recipes = [
                r.to_costing_data()
                for r in session.query(Recipe).filter_by(business_id=business_id).all()
            ]
        path = sub_recipe_path(business_recipes, ref_id, recipe_id)
        if path is not None:
            raise CircularReferenceError(recipe_id, [recipe_id] + path)


def _ingredient_rows(ingredients_data: Sequence[Dict], start: int = 0) -> List[RecipeIngredient]:
    return [
        RecipeIngredient(
            ingredient_type=ing_data.get("type", INGREDIENT_TYPE_ITEM),
            item_id=ing_data["item_id"],
            quantity=float(ing_data["quantity"]),
            unit=ing_data["unit"].strip(),
            yield_percentage=ing_data.get("yield_percentage"),
            sort_order=start + position,
        )
        for position, ing_data in enumerate(ingredients_data)
    ]


def _instruction_rows(instructions: Sequence[str]) -> List[RecipeInstruction]:
    return [
        RecipeInstruction(step_number=step, text=text)
        for step, text in enumerate((t for t in instructions if t and t.strip()), start=1)
    ]


# ============================================================================
# CRUD Operations
# ============================================================================


def create_recipe(
    business_id: int,
    recipe_data: Dict,
    ingredients_data: Optional[List[Dict]] = None,
    instructions: Optional[List[str]] = None,
    session: Optional[Session] = None,
) -> Recipe:
    """
    Create a new recipe with optional ingredients and instructions.

    Args:
        business_id: Owning business
        recipe_data: Dictionary with recipe fields
        ingredients_data: List of ingredient dicts with:
            - type: 'item' or 'recipe' (default 'item')
            - item_id: int
            - quantity: float
            - unit: str
            - yield_percentage: float (optional)
        instructions: Ordered instruction steps
        session: Optional session for transaction sharing

    Returns:
        Created Recipe instance with ingredients

    Raises:
        ValidationError: If data validation fails
        BusinessNotFound: If the business doesn't exist
        InventoryItemNotFound: If an item reference doesn't exist
        RecipeNotFound: If a sub-recipe reference doesn't exist
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_recipe_data(recipe_data)
    if not is_valid:
        raise ValidationError(errors)
    _validate_ingredients(ingredients_data or [])

    args = (business_id, recipe_data, ingredients_data or [], instructions or [])
    if session is not None:
        return _create_recipe_impl(*args, session)

    try:
        with session_scope() as session:
            return _create_recipe_impl(*args, session)
    except (BusinessNotFound, InventoryItemNotFound, RecipeNotFound):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create recipe", e)


def _create_recipe_impl(
    business_id: int,
    recipe_data: Dict,
    ingredients_data: List[Dict],
    instructions: List[str],
    session: Session,
) -> Recipe:
    if not session.query(Business).filter_by(id=business_id).first():
        raise BusinessNotFound(business_id)
    _check_references(business_id, None, ingredients_data, session)

    recipe = Recipe(
        business_id=business_id,
        **{field: recipe_data[field] for field in RECIPE_FIELDS if field in recipe_data},
    )
    recipe.name = recipe.name.strip()
    recipe.recipe_ingredients = _ingredient_rows(ingredients_data)
    recipe.instructions = _instruction_rows(instructions)

    session.add(recipe)
    session.flush()

    log_operation(
        logger,
        "create_recipe",
        "success",
        recipe_id=recipe.id,
        business_id=business_id,
        ingredient_count=len(ingredients_data),
    )
    return recipe


def get_recipe(recipe_id: int, session: Optional[Session] = None) -> Recipe:
    """
    Retrieve a recipe by ID.

    Args:
        recipe_id: Recipe ID
        session: Optional session for transaction sharing

    Returns:
        Recipe instance with ingredients, instructions and cost history

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    if session is not None:
        return _get_recipe_or_raise(recipe_id, session)

    try:
        with session_scope() as session:
            return _get_recipe_or_raise(recipe_id, session)
    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve recipe {recipe_id}", e)


def get_all_recipes(
    business_id: int,
    category: Optional[str] = None,
    name_search: Optional[str] = None,
) -> List[Recipe]:
    """
    Retrieve a business's recipes with optional filtering.

    Args:
        business_id: Owning business
        category: Filter by category (exact match)
        name_search: Filter by name (case-insensitive partial match)

    Returns:
        List of Recipe instances ordered by name

    Raises:
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            query = session.query(Recipe).filter(Recipe.business_id == business_id)

            if category:
                query = query.filter(Recipe.category == category)

            if name_search:
                query = query.filter(Recipe.name.ilike(f"%{name_search}%"))

            return query.order_by(Recipe.name).all()

    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve recipes", e)


def update_recipe(
    recipe_id: int,
    recipe_data: Dict,
    ingredients_data: Optional[List[Dict]] = None,
    instructions: Optional[List[str]] = None,
) -> Recipe:
    """
    Update a recipe and optionally its ingredients and instructions.

    Args:
        recipe_id: Recipe ID
        recipe_data: Dictionary with recipe fields to update
        ingredients_data: If provided, replaces all ingredient lines
        instructions: If provided, replaces all instruction steps

    Returns:
        Updated Recipe instance

    Raises:
        RecipeNotFound: If recipe (or a sub-recipe reference) doesn't exist
        ValidationError: If data validation fails
        InventoryItemNotFound: If an item reference doesn't exist
        CircularReferenceError: If a sub-recipe line would make the recipe
            (transitively) include itself
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_recipe_data(recipe_data, partial=True)
    if not is_valid:
        raise ValidationError(errors)
    if ingredients_data is not None:
        _validate_ingredients(ingredients_data)

    try:
        with session_scope() as session:
            recipe = _get_recipe_or_raise(recipe_id, session)

            recipe.update_from_dict(
                {field: recipe_data[field] for field in RECIPE_FIELDS if field in recipe_data}
            )

            if ingredients_data is not None:
                _check_references(recipe.business_id, recipe_id, ingredients_data, session)
                recipe.recipe_ingredients = _ingredient_rows(ingredients_data)

            if instructions is not None:
                recipe.instructions = _instruction_rows(instructions)

            session.flush()

            log_operation(logger, "update_recipe", "success", recipe_id=recipe_id)
            return recipe

    except (RecipeNotFound, InventoryItemNotFound, CircularReferenceError):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update recipe {recipe_id}", e)


def delete_recipe(recipe_id: int) -> bool:
    """
    Delete a recipe with its ingredients, instructions and cost history.

    Args:
        recipe_id: Recipe ID

    Returns:
        True if deleted successfully

    Raises:
        RecipeNotFound: If recipe doesn't exist
        RecipeInUse: If another recipe uses it as a sub-recipe
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            recipe = _get_recipe_or_raise(recipe_id, session)

            parents = _recipes_referencing(INGREDIENT_TYPE_RECIPE, recipe_id, session)
            parent_names = [parent.name for parent in parents if parent.id != recipe_id]
            if parent_names:
                raise RecipeInUse(recipe_id, parent_names)

            # Delete recipe (cascade removes lines, instructions and history)
            session.delete(recipe)

            log_operation(logger, "delete_recipe", "success", recipe_id=recipe_id)
            return True

    except (RecipeNotFound, RecipeInUse):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete recipe {recipe_id}", e)


# ============================================================================
# Recipe Ingredient Management
# ============================================================================


def add_ingredient_to_recipe(recipe_id: int, ingredient_data: Dict) -> RecipeIngredient:
    """
    Append an ingredient line to a recipe.

    Args:
        recipe_id: Recipe ID
        ingredient_data: Ingredient dict (type, item_id, quantity, unit,
            optional yield_percentage)

    Returns:
        Created RecipeIngredient instance

    Raises:
        RecipeNotFound: If recipe (or the referenced sub-recipe) doesn't exist
        InventoryItemNotFound: If the referenced item doesn't exist
        ValidationError: If data validation fails
        CircularReferenceError: If the sub-recipe already (transitively)
            uses this recipe, or is this recipe
        DatabaseError: If database operation fails
    """
    _validate_ingredients([ingredient_data])

    try:
        with session_scope() as session:
            recipe = _get_recipe_or_raise(recipe_id, session)
            _check_references(recipe.business_id, recipe_id, [ingredient_data], session)

            next_order = max((ri.sort_order for ri in recipe.recipe_ingredients), default=-1) + 1
            (line,) = _ingredient_rows([ingredient_data], start=next_order)
            recipe.recipe_ingredients.append(line)
            session.flush()

            log_operation(
                logger,
                "add_ingredient_to_recipe",
                "success",
                recipe_id=recipe_id,
                ingredient_type=line.ingredient_type,
                reference_id=line.item_id,
            )
            return line

    except (RecipeNotFound, InventoryItemNotFound, CircularReferenceError):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to add ingredient to recipe", e)


def remove_ingredient_from_recipe(recipe_id: int, recipe_ingredient_id: int) -> bool:
    """
    Remove one ingredient line from a recipe.

    Returns:
        True if removed, False if the line was not part of the recipe

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            recipe = _get_recipe_or_raise(recipe_id, session)

            for line in recipe.recipe_ingredients:
                if line.id == recipe_ingredient_id:
                    recipe.recipe_ingredients.remove(line)
                    return True
            return False

    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to remove ingredient from recipe", e)


# ============================================================================
# Duplication and Bulk Creation
# ============================================================================


def duplicate_recipe(recipe_id: int, include_history: bool = False) -> Recipe:
    """
    Copy a recipe as "<name> (Copy)".

    Args:
        recipe_id: Recipe to copy
        include_history: Copy the cost history too; otherwise the copy
            starts with one entry holding its current total cost

    Returns:
        The new Recipe

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            source = _get_recipe_or_raise(recipe_id, session)

            copy = Recipe(
                business_id=source.business_id,
                **{field: getattr(source, field) for field in RECIPE_FIELDS},
            )
            copy.name = f"{source.name} (Copy)"
            copy.recipe_ingredients = [
                RecipeIngredient(
                    ingredient_type=ri.ingredient_type,
                    item_id=ri.item_id,
                    quantity=ri.quantity,
                    unit=ri.unit,
                    yield_percentage=ri.yield_percentage,
                    sort_order=ri.sort_order,
                )
                for ri in source.recipe_ingredients
            ]
            copy.instructions = [
                RecipeInstruction(step_number=step.step_number, text=step.text)
                for step in source.instructions
            ]

            if include_history:
                copy.cost_history = [
                    RecipeCostHistory(recorded_at=entry.recorded_at, cost=entry.cost)
                    for entry in source.cost_history
                ]
            else:
                # The copy costs exactly what the source costs
                total_cost = calculate_recipe_cost_breakdown(source.id, session=session).total_cost
                copy.cost_history = [RecipeCostHistory(recorded_at=utc_now(), cost=total_cost)]

            session.add(copy)
            session.flush()

            log_operation(
                logger,
                "duplicate_recipe",
                "success",
                recipe_id=recipe_id,
                new_recipe_id=copy.id,
                include_history=include_history,
            )
            return copy

    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to duplicate recipe {recipe_id}", e)


def bulk_create_recipes(business_id: int, recipes: List[Dict]) -> Dict[str, int]:
    """
    Create many recipes at once, skipping names that already exist.

    Each entry is a recipe data dict that may also carry "ingredients"
    (list of ingredient dicts) and "instructions" (list of str). Names are
    compared case-insensitively against the business's recipes and against
    earlier entries of the same batch. Every created recipe starts its cost
    history with its current total cost. The batch is all-or-nothing: one
    invalid entry rejects the whole batch.

    Returns:
        Dict with keys "success_count" and "duplicate_count"

    Raises:
        ValidationError: If any entry fails validation (errors prefixed
            with the entry's position)
        BusinessNotFound: If the business doesn't exist
        InventoryItemNotFound / RecipeNotFound: If a reference doesn't exist
        DatabaseError: If database operation fails
    """
    errors = []
    for position, entry in enumerate(recipes, start=1):
        _, entry_errors = validate_recipe_data(entry)
        errors.extend(f"Recipe {position}: {message}" for message in entry_errors)
        for line_position, ing_data in enumerate(entry.get("ingredients") or [], start=1):
            _, line_errors = validate_ingredient_data(ing_data, line_position)
            errors.extend(f"Recipe {position}: {message}" for message in line_errors)
    if errors:
        raise ValidationError(errors)

    try:
        with session_scope() as session:
            if not session.query(Business).filter_by(id=business_id).first():
                raise BusinessNotFound(business_id)

            existing_names = {
                name.lower()
                for (name,) in session.query(Recipe.name).filter_by(business_id=business_id)
            }

            created = []
            duplicate_count = 0
            for entry in recipes:
                key = entry["name"].strip().lower()
                if key in existing_names:
                    duplicate_count += 1
                    continue
                existing_names.add(key)
                created.append(
                    _create_recipe_impl(
                        business_id,
                        entry,
                        entry.get("ingredients") or [],
                        entry.get("instructions") or [],
                        session,
                    )
                )

            recorded_at = utc_now()
            for recipe in created:
                total_cost = calculate_recipe_cost_breakdown(recipe.id, session=session).total_cost
                recipe.cost_history.append(
                    RecipeCostHistory(recorded_at=recorded_at, cost=total_cost)
                )
            session.flush()

            log_operation(
                logger,
                "bulk_create_recipes",
                "success",
                business_id=business_id,
                success_count=len(created),
                duplicate_count=duplicate_count,
            )
            return {"success_count": len(created), "duplicate_count": duplicate_count}

    except (BusinessNotFound, InventoryItemNotFound, RecipeNotFound):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to bulk create recipes", e)


# ============================================================================
# Reverse Lookups
# ============================================================================


def _recipes_referencing(ingredient_type: str, reference_id: int, session: Session) -> List[Recipe]:
    return (
        session.query(Recipe)
        .join(RecipeIngredient, RecipeIngredient.recipe_id == Recipe.id)
        .filter(
            RecipeIngredient.ingredient_type == ingredient_type,
            RecipeIngredient.item_id == reference_id,
        )
        .distinct()
        .order_by(Recipe.name)
        .all()
    )


def get_recipes_using_item(item_id: int) -> List[Recipe]:
    """
    Get all recipes with an ingredient line referencing an inventory item.

    Args:
        item_id: Inventory item ID

    Returns:
        List of Recipe instances ordered by name
    """
    try:
        with session_scope() as session:
            return _recipes_referencing(INGREDIENT_TYPE_ITEM, item_id, session)
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to find recipes using item {item_id}", e)


def get_recipes_using_sub_recipe(recipe_id: int) -> List[Recipe]:
    """
    Get all recipes that use a recipe directly as a sub-recipe.

    Args:
        recipe_id: Sub-recipe ID

    Returns:
        List of Recipe instances ordered by name
    """
    try:
        with session_scope() as session:
            return _recipes_referencing(INGREDIENT_TYPE_RECIPE, recipe_id, session)
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to find recipes using sub-recipe {recipe_id}", e)
