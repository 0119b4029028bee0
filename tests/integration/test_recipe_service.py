"""Tests for recipe management."""

import pytest

from recipe_costing.services import (
    business_service,
    inventory_item_service,
    recipe_costing_service,
    recipe_service,
)
from recipe_costing.services.exceptions import (
    BusinessNotFound,
    CircularReferenceError,
    InventoryItemNotFound,
    RecipeInUse,
    RecipeNotFound,
    ValidationError,
)


def make_recipe(business, name, ingredients=None, **fields):
    data = {"name": name, "category": "Mains", "servings": 10}
    data.update(fields)
    return recipe_service.create_recipe(business.id, data, ingredients or [])


def item_line(item, quantity, unit="kg", **extra):
    return dict(type="item", item_id=item.id, quantity=quantity, unit=unit, **extra)


def recipe_line(recipe, quantity, unit="serving"):
    return {"type": "recipe", "item_id": recipe.id, "quantity": quantity, "unit": unit}


class TestCreateRecipe:
    """Test recipe creation."""

    def test_create_with_lines_and_instructions(self, business, flour, butter):
        recipe = recipe_service.create_recipe(
            business.id,
            {"name": " Shortbread ", "category": "Bakery", "servings": 24, "labour_minutes": 2},
            [item_line(flour, 0.3), item_line(butter, 200, unit="g", yield_percentage=95)],
            ["Cream butter", "  ", "Fold in flour", "Bake"],
        )

        loaded = recipe_service.get_recipe(recipe.id)
        assert loaded.name == "Shortbread"
        assert [ri.item_id for ri in loaded.recipe_ingredients] == [flour.id, butter.id]
        assert [ri.sort_order for ri in loaded.recipe_ingredients] == [0, 1]
        assert loaded.recipe_ingredients[1].yield_percentage == 95
        assert [step.text for step in loaded.instructions] == [
            "Cream butter",
            "Fold in flour",
            "Bake",
        ]
        assert [step.step_number for step in loaded.instructions] == [1, 2, 3]

    def test_invalid_recipe_data(self, business):
        with pytest.raises(ValidationError) as exc_info:
            recipe_service.create_recipe(business.id, {"name": "", "servings": 0})

        assert len(exc_info.value.errors) == 3

    def test_invalid_ingredient_line(self, business, flour):
        with pytest.raises(ValidationError, match="Ingredient 1 quantity"):
            make_recipe(business, "Bread", [item_line(flour, 0)])

    def test_missing_item(self, business):
        with pytest.raises(InventoryItemNotFound):
            make_recipe(business, "Bread", [{"item_id": 999, "quantity": 1, "unit": "kg"}])

    def test_missing_sub_recipe(self, business):
        with pytest.raises(RecipeNotFound):
            make_recipe(
                business, "Pasta", [{"type": "recipe", "item_id": 999, "quantity": 1, "unit": "l"}]
            )

    def test_item_from_other_business_rejected(self, business, flour):
        other = business_service.create_business("Other Kitchen")

        with pytest.raises(InventoryItemNotFound):
            make_recipe(other, "Bread", [item_line(flour, 1)])

    def test_missing_business(self, test_db):
        with pytest.raises(BusinessNotFound):
            recipe_service.create_recipe(77, {"name": "Bread", "category": "Bakery", "servings": 1})


class TestQueryRecipes:
    def test_get_missing(self, test_db):
        with pytest.raises(RecipeNotFound):
            recipe_service.get_recipe(404)

    def test_get_all_filters(self, business):
        make_recipe(business, "Tomato soup", category="Soups")
        make_recipe(business, "Beef stew")
        make_recipe(business, "Mushroom soup", category="Soups")

        names = [r.name for r in recipe_service.get_all_recipes(business.id)]
        assert names == ["Beef stew", "Mushroom soup", "Tomato soup"]

        soups = recipe_service.get_all_recipes(business.id, category="Soups")
        assert [r.name for r in soups] == ["Mushroom soup", "Tomato soup"]

        search = recipe_service.get_all_recipes(business.id, name_search="TOMATO")
        assert [r.name for r in search] == ["Tomato soup"]


class TestUpdateRecipe:
    def test_update_fields_only_keeps_lines(self, business, flour):
        recipe = make_recipe(business, "Bread", [item_line(flour, 1)])

        updated = recipe_service.update_recipe(recipe.id, {"servings": 20, "wastage_factor": 5})

        assert updated.servings == 20
        assert updated.wastage_factor == 5
        assert len(updated.recipe_ingredients) == 1

    def test_replace_lines_and_instructions(self, business, flour, butter):
        recipe = make_recipe(business, "Bread", [item_line(flour, 1)])

        recipe_service.update_recipe(
            recipe.id, {}, [item_line(butter, 0.5), item_line(flour, 2)], ["Mix", "Bake"]
        )

        loaded = recipe_service.get_recipe(recipe.id)
        assert [(ri.item_id, ri.quantity) for ri in loaded.recipe_ingredients] == [
            (butter.id, 0.5),
            (flour.id, 2.0),
        ]
        assert [step.text for step in loaded.instructions] == ["Mix", "Bake"]

    def test_invalid_update(self, business):
        recipe = make_recipe(business, "Bread")

        with pytest.raises(ValidationError):
            recipe_service.update_recipe(recipe.id, {"wastage_factor": 100.5})

    def test_missing(self, test_db):
        with pytest.raises(RecipeNotFound):
            recipe_service.update_recipe(404, {"servings": 2})

    def test_cycle_rejected(self, business, flour):
        dough = make_recipe(business, "Dough", [item_line(flour, 1)])
        pizza = make_recipe(business, "Pizza", [recipe_line(dough, 2)])

        with pytest.raises(CircularReferenceError) as exc_info:
            recipe_service.update_recipe(dough.id, {}, [recipe_line(pizza, 1)])

        assert exc_info.value.path == [dough.id, pizza.id, dough.id]
        # Rejected update leaves the stored lines untouched
        lines = recipe_service.get_recipe(dough.id).recipe_ingredients
        assert [ri.item_id for ri in lines] == [flour.id]

    def test_transitive_cycle_rejected(self, business):
        base = make_recipe(business, "Base")
        middle = make_recipe(business, "Middle", [recipe_line(base, 1)])
        top = make_recipe(business, "Top", [recipe_line(middle, 1)])

        with pytest.raises(CircularReferenceError) as exc_info:
            recipe_service.update_recipe(base.id, {}, [recipe_line(top, 1)])

        assert exc_info.value.path == [base.id, top.id, middle.id, base.id]


class TestIngredientLines:
    def test_add_appends_in_order(self, business, flour, butter):
        recipe = make_recipe(business, "Bread", [item_line(flour, 1)])

        line = recipe_service.add_ingredient_to_recipe(recipe.id, item_line(butter, 0.1))

        assert line.sort_order == 1
        loaded = recipe_service.get_recipe(recipe.id)
        assert [ri.item_id for ri in loaded.recipe_ingredients] == [flour.id, butter.id]

    def test_add_self_rejected(self, business):
        recipe = make_recipe(business, "Stock")

        with pytest.raises(CircularReferenceError) as exc_info:
            recipe_service.add_ingredient_to_recipe(recipe.id, recipe_line(recipe, 1))

        assert exc_info.value.path == [recipe.id, recipe.id]

    def test_add_parent_as_sub_recipe_rejected(self, business):
        stock = make_recipe(business, "Stock")
        soup = make_recipe(business, "Soup", [recipe_line(stock, 1, unit="l")])

        with pytest.raises(CircularReferenceError):
            recipe_service.add_ingredient_to_recipe(stock.id, recipe_line(soup, 1))

    def test_remove(self, business, flour, butter):
        recipe = make_recipe(business, "Bread", [item_line(flour, 1), item_line(butter, 0.1)])
        line_id = recipe.recipe_ingredients[0].id

        assert recipe_service.remove_ingredient_from_recipe(recipe.id, line_id)
        assert not recipe_service.remove_ingredient_from_recipe(recipe.id, line_id)

        loaded = recipe_service.get_recipe(recipe.id)
        assert [ri.item_id for ri in loaded.recipe_ingredients] == [butter.id]


class TestDeleteRecipe:
    def test_delete(self, business, flour):
        recipe = make_recipe(business, "Bread", [item_line(flour, 1)])
        recipe_costing_service.record_recipe_cost_history(recipe.id)

        assert recipe_service.delete_recipe(recipe.id)

        with pytest.raises(RecipeNotFound):
            recipe_service.get_recipe(recipe.id)

    def test_delete_used_sub_recipe_blocked(self, business):
        stock = make_recipe(business, "Stock")
        make_recipe(business, "Soup", [recipe_line(stock, 1)])
        make_recipe(business, "Risotto", [recipe_line(stock, 2)])

        with pytest.raises(RecipeInUse) as exc_info:
            recipe_service.delete_recipe(stock.id)

        assert exc_info.value.parent_names == ["Risotto", "Soup"]

    def test_delete_parent_then_sub_recipe(self, business):
        stock = make_recipe(business, "Stock")
        soup = make_recipe(business, "Soup", [recipe_line(stock, 1)])

        recipe_service.delete_recipe(soup.id)

        assert recipe_service.delete_recipe(stock.id)

    def test_delete_missing(self, test_db):
        with pytest.raises(RecipeNotFound):
            recipe_service.delete_recipe(404)


class TestDuplicateRecipe:
    def test_copy_starts_history_with_current_cost(self, business, flour):
        source = make_recipe(business, "Bread", [item_line(flour, 10)], servings=500)
        recipe_service.update_recipe(source.id, {}, instructions=["Knead", "Bake"])

        copy = recipe_service.duplicate_recipe(source.id)

        assert copy.id != source.id
        assert copy.name == "Bread (Copy)"
        assert copy.servings == 500
        loaded = recipe_service.get_recipe(copy.id)
        assert [(ri.item_id, ri.quantity) for ri in loaded.recipe_ingredients] == [(flour.id, 10)]
        assert [step.text for step in loaded.instructions] == ["Knead", "Bake"]
        assert [entry.cost for entry in loaded.cost_history] == [pytest.approx(180.0)]

    def test_copy_with_history(self, business, flour):
        source = make_recipe(business, "Bread", [item_line(flour, 10)])
        recipe_costing_service.record_recipe_cost_history(source.id)

        copy = recipe_service.duplicate_recipe(source.id, include_history=True)

        assert recipe_costing_service.get_cost_history(
            copy.id
        ) == recipe_costing_service.get_cost_history(source.id)

    def test_source_untouched(self, business, flour):
        source = make_recipe(business, "Bread", [item_line(flour, 10)])

        recipe_service.duplicate_recipe(source.id)

        assert recipe_costing_service.get_cost_history(source.id) == []

    def test_missing(self, test_db):
        with pytest.raises(RecipeNotFound):
            recipe_service.duplicate_recipe(404)


class TestBulkCreateRecipes:
    def test_skips_duplicate_names(self, business, flour):
        make_recipe(business, "Bread")

        result = recipe_service.bulk_create_recipes(
            business.id,
            [
                {"name": "bread", "category": "Bakery", "servings": 1},
                {
                    "name": "Focaccia",
                    "category": "Bakery",
                    "servings": 10,
                    "ingredients": [item_line(flour, 1)],
                    "instructions": ["Proof", "Bake"],
                },
                {"name": "FOCACCIA ", "category": "Bakery", "servings": 4},
            ],
        )

        assert result == {"success_count": 1, "duplicate_count": 2}
        (focaccia,) = recipe_service.get_all_recipes(business.id, name_search="Focaccia")
        assert focaccia.servings == 10
        assert [step.text for step in focaccia.instructions] == ["Proof", "Bake"]
        assert [entry.cost for entry in focaccia.cost_history] == [pytest.approx(18.0)]

    def test_invalid_entry_rejects_batch(self, business):
        with pytest.raises(ValidationError) as exc_info:
            recipe_service.bulk_create_recipes(
                business.id,
                [
                    {"name": "Soup", "category": "Soups", "servings": 4},
                    {"name": "Stew", "category": "Mains", "servings": -1},
                ],
            )

        assert all(message.startswith("Recipe 2:") for message in exc_info.value.errors)
        assert recipe_service.get_all_recipes(business.id) == []

    def test_missing_reference_rejects_batch(self, business):
        with pytest.raises(InventoryItemNotFound):
            recipe_service.bulk_create_recipes(
                business.id,
                [
                    {"name": "Soup", "category": "Soups", "servings": 4},
                    {
                        "name": "Stew",
                        "category": "Mains",
                        "servings": 4,
                        "ingredients": [{"item_id": 999, "quantity": 1, "unit": "kg"}],
                    },
                ],
            )

        assert recipe_service.get_all_recipes(business.id) == []


class TestReverseLookups:
    def test_recipes_using_item(self, business, flour, butter):
        make_recipe(business, "Scones", [item_line(flour, 1), item_line(butter, 0.2)])
        make_recipe(business, "Bread", [item_line(flour, 1)])
        make_recipe(business, "Beurre blanc", [item_line(butter, 0.5)])

        names = [r.name for r in recipe_service.get_recipes_using_item(flour.id)]
        assert names == ["Bread", "Scones"]

    def test_recipes_using_sub_recipe(self, business, flour):
        dough = make_recipe(business, "Dough", [item_line(flour, 1)])
        make_recipe(business, "Pizza", [recipe_line(dough, 1), recipe_line(dough, 1)])
        make_recipe(business, "Calzone", [recipe_line(dough, 2)])

        names = [r.name for r in recipe_service.get_recipes_using_sub_recipe(dough.id)]
        assert names == ["Calzone", "Pizza"]

    def test_item_ids_and_recipe_ids_kept_apart(self, business, flour):
        # Same numeric id, different reference types
        make_recipe(business, "Bread", [item_line(flour, 1)])

        assert recipe_service.get_recipes_using_sub_recipe(flour.id) == []
