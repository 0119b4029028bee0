"""Tests for costing stored recipes."""

from datetime import datetime, timedelta, timezone

import pytest

from recipe_costing.services import (
    business_service,
    inventory_item_service,
    recipe_costing_service,
    recipe_service,
    unit_conversion_service,
)
from recipe_costing.services.costing import DiagnosticKind, IngredientLine, RecipeData
from recipe_costing.services.exceptions import BusinessNotFound, RecipeNotFound

MARCH_10 = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def bread(business, flour):
    """10 kg of flour over 500 servings: 180.00 per batch, 0.36 per serving."""
    return recipe_service.create_recipe(
        business.id,
        {"name": "Bread", "category": "Bakery", "servings": 500},
        [{"item_id": flour.id, "quantity": 10, "unit": "kg"}],
    )


class TestCostBreakdown:
    def test_simple_recipe(self, bread):
        breakdown = recipe_costing_service.calculate_recipe_cost_breakdown(bread.id)

        assert breakdown.recipe_id == bread.id
        assert breakdown.raw_material_cost == pytest.approx(180.0)
        assert breakdown.total_cost == pytest.approx(180.0)
        assert breakdown.cost_per_serving == pytest.approx(0.36)
        assert breakdown.diagnostics == ()

    def test_raw_material_cost(self, bread):
        assert recipe_costing_service.calculate_recipe_cost(bread.id) == pytest.approx(180.0)

    def test_missing_recipe(self, test_db):
        with pytest.raises(RecipeNotFound):
            recipe_costing_service.calculate_recipe_cost_breakdown(404)

    def test_all_cost_components(self, business, flour):
        business_service.add_staff_member(business.id, "Chef", 4160)
        business_service.add_overhead(business.id, "Gas", "Variable", 1000)
        business_service.add_overhead(business.id, "Rent", "Fixed", 3000)
        business_service.update_costing_settings(
            business.id, {"total_dishes_produced": 500, "total_dishes_sold": 1000}
        )
        recipe = recipe_service.create_recipe(
            business.id,
            {
                "name": "Flatbread",
                "category": "Bakery",
                "servings": 10,
                "labour_minutes": 3,
                "packaging_cost_per_serving": 0.5,
                "wastage_factor": 10,
            },
            [{"item_id": flour.id, "quantity": 1, "unit": "kg"}],
        )

        breakdown = recipe_costing_service.calculate_recipe_cost_breakdown(recipe.id)

        assert breakdown.adjusted_rmc == pytest.approx(20.0)
        assert breakdown.labour_cost == pytest.approx(10.0)
        assert breakdown.variable_overhead_cost == pytest.approx(20.0)
        assert breakdown.fixed_overhead_cost == pytest.approx(30.0)
        assert breakdown.packaging_cost == pytest.approx(5.0)
        assert breakdown.total_cost == pytest.approx(85.0)
        assert breakdown.cost_per_serving == pytest.approx(8.5)

    def test_sub_recipe_with_stored_conversions(self, business, flour):
        unit_conversion_service.seed_standard_conversions(business.id)
        tomatoes = inventory_item_service.create_inventory_item(
            business.id, {"name": "Tomatoes", "unit": "kg", "unit_cost": 2.0}
        )
        sauce = recipe_service.create_recipe(
            business.id,
            {
                "name": "Tomato sauce",
                "category": "Sauces",
                "servings": 16,
                "production_yield": 4,
                "production_unit": "l",
            },
            [{"item_id": tomatoes.id, "quantity": 5, "unit": "kg"}],
        )
        pizza = recipe_service.create_recipe(
            business.id,
            {"name": "Pizza", "category": "Mains", "servings": 4},
            [
                {"type": "recipe", "item_id": sauce.id, "quantity": 500, "unit": "ml"},
                {"item_id": flour.id, "quantity": 400, "unit": "g"},
            ],
        )

        breakdown = recipe_costing_service.calculate_recipe_cost_breakdown(pizza.id)

        sauce_line, flour_line = breakdown.ingredient_costs
        assert sauce_line.cost == pytest.approx(1.25)
        assert flour_line.cost == pytest.approx(7.2)
        assert breakdown.cost_per_serving == pytest.approx(8.45 / 4)
        assert breakdown.diagnostics == ()

    def test_missing_conversion_reported(self, business, flour):
        recipe = recipe_service.create_recipe(
            business.id,
            {"name": "Roux", "category": "Sauces", "servings": 1},
            [{"item_id": flour.id, "quantity": 2, "unit": "cup"}],
        )

        breakdown = recipe_costing_service.calculate_recipe_cost_breakdown(recipe.id)

        assert breakdown.raw_material_cost == pytest.approx(36.0)
        assert [d.kind for d in breakdown.diagnostics] == [DiagnosticKind.MISSING_CONVERSION]

    def test_item_yield_applied(self, business):
        shallots = inventory_item_service.create_inventory_item(
            business.id,
            {"name": "Shallots", "unit": "kg", "unit_cost": 4.0, "yield_percentage": 80},
        )
        recipe = recipe_service.create_recipe(
            business.id,
            {"name": "Confit", "category": "Sides", "servings": 1},
            [{"item_id": shallots.id, "quantity": 1, "unit": "kg"}],
        )

        assert recipe_costing_service.calculate_recipe_cost(recipe.id) == pytest.approx(5.0)

    def test_price_change_flows_into_cost(self, bread, flour):
        inventory_item_service.update_inventory_item(flour.id, {"unit_cost": 20.0})

        assert recipe_costing_service.calculate_recipe_cost(bread.id) == pytest.approx(200.0)


class TestPreview:
    def test_draft_costed_against_stored_catalog(self, business, flour):
        draft = RecipeData(
            id="draft",
            name="Draft loaf",
            servings=10,
            ingredients=(IngredientLine(item_id=flour.id, quantity=2, unit="kg"),),
        )

        breakdown = recipe_costing_service.preview_recipe_cost_breakdown(business.id, draft)

        assert breakdown.total_cost == pytest.approx(36.0)
        assert breakdown.cost_per_serving == pytest.approx(3.6)

    def test_draft_replaces_stored_recipe_for_one_pass(self, business, bread, flour):
        draft = RecipeData(
            id=bread.id,
            name="Bread",
            servings=500,
            ingredients=(IngredientLine(item_id=flour.id, quantity=5, unit="kg"),),
        )

        preview = recipe_costing_service.preview_recipe_cost_breakdown(business.id, draft)

        assert preview.total_cost == pytest.approx(90.0)
        assert recipe_costing_service.calculate_recipe_cost(bread.id) == pytest.approx(180.0)

    def test_missing_business(self, test_db):
        draft = RecipeData(id=1, name="Draft", servings=1)

        with pytest.raises(BusinessNotFound):
            recipe_costing_service.preview_recipe_cost_breakdown(8, draft)


class TestCostHistory:
    """Test recording costs into recipe history."""

    def test_first_recording_appends(self, bread):
        result = recipe_costing_service.record_recipe_cost_history(bread.id, now=MARCH_10)

        assert result == {"outcome": "appended", "cost": pytest.approx(180.0), "history_length": 1}

    def test_same_day_overwrites_latest(self, bread, flour):
        recipe_costing_service.record_recipe_cost_history(bread.id, now=MARCH_10)
        inventory_item_service.update_inventory_item(flour.id, {"unit_cost": 20.0})

        result = recipe_costing_service.record_recipe_cost_history(
            bread.id, now=MARCH_10 + timedelta(hours=6)
        )

        assert result["outcome"] == "updated"
        assert result["history_length"] == 1
        (entry,) = recipe_costing_service.get_cost_history(bread.id)
        assert entry.cost == pytest.approx(200.0)
        assert entry.date == MARCH_10 + timedelta(hours=6)

    def test_unchanged_cost_on_new_day_not_recorded(self, bread):
        recipe_costing_service.record_recipe_cost_history(bread.id, now=MARCH_10)

        result = recipe_costing_service.record_recipe_cost_history(
            bread.id, now=MARCH_10 + timedelta(days=1)
        )

        assert result["outcome"] == "unchanged"
        assert result["history_length"] == 1
        (entry,) = recipe_costing_service.get_cost_history(bread.id)
        assert entry.date == MARCH_10

    def test_changed_cost_on_new_day_appends(self, bread, flour):
        recipe_costing_service.record_recipe_cost_history(bread.id, now=MARCH_10)
        inventory_item_service.update_inventory_item(flour.id, {"unit_cost": 19.8})

        result = recipe_costing_service.record_recipe_cost_history(
            bread.id, now=MARCH_10 + timedelta(days=1)
        )

        assert result["outcome"] == "appended"
        history = recipe_costing_service.get_cost_history(bread.id)
        assert [entry.cost for entry in history] == [pytest.approx(180.0), pytest.approx(198.0)]

        trend = recipe_costing_service.get_cost_trend(bread.id)
        assert trend.change == pytest.approx(18.0)
        assert trend.percent_change == pytest.approx(10.0)

    def test_repeat_within_debounce_across_midnight_overwrites(self, bread):
        late = datetime(2025, 3, 10, 23, 58, tzinfo=timezone.utc)
        recipe_costing_service.record_recipe_cost_history(bread.id, now=late)

        result = recipe_costing_service.record_recipe_cost_history(
            bread.id, now=late + timedelta(minutes=4)
        )

        assert result["outcome"] == "updated"

    def test_dates_come_back_in_utc(self, bread):
        local = datetime(2025, 3, 10, 11, 0, tzinfo=timezone(timedelta(hours=2)))

        recipe_costing_service.record_recipe_cost_history(bread.id, now=local)

        (entry,) = recipe_costing_service.get_cost_history(bread.id)
        assert entry.date == MARCH_10
        assert entry.date.tzinfo == timezone.utc

    def test_missing_recipe(self, test_db):
        with pytest.raises(RecipeNotFound):
            recipe_costing_service.record_recipe_cost_history(404)
        with pytest.raises(RecipeNotFound):
            recipe_costing_service.get_cost_history(404)


class TestPricing:
    def test_suggest_price_at_business_target(self, bread):
        assert recipe_costing_service.suggest_price_for_recipe(bread.id) == pytest.approx(1.2)

    def test_suggest_price_with_override(self, bread):
        assert recipe_costing_service.suggest_price_for_recipe(bread.id, 40) == pytest.approx(0.9)

    def test_suggest_price_follows_business_target(self, business, bread):
        business_service.update_costing_settings(business.id, {"food_cost_target": 24})

        assert recipe_costing_service.suggest_price_for_recipe(bread.id) == pytest.approx(1.5)

    def test_no_price_for_zero_cost(self, business):
        recipe = recipe_service.create_recipe(
            business.id, {"name": "Water", "category": "Drinks", "servings": 1}
        )

        assert recipe_costing_service.suggest_price_for_recipe(recipe.id) is None

    def test_no_price_for_invalid_target(self, bread):
        assert recipe_costing_service.suggest_price_for_recipe(bread.id, 0) is None

    def test_pricing_summary(self, bread):
        recipe_service.update_recipe(bread.id, {"target_sale_price_per_serving": 1.8})

        summary = recipe_costing_service.get_pricing_summary(bread.id)

        assert summary["cost_per_serving"] == pytest.approx(0.36)
        assert summary["food_cost_target"] == 30
        assert summary["suggested_price"] == pytest.approx(1.2)
        assert summary["target_sale_price"] == 1.8
        assert summary["food_cost_percent"] == pytest.approx(20.0)

    def test_pricing_summary_without_sale_price(self, bread):
        summary = recipe_costing_service.get_pricing_summary(bread.id)

        assert summary["target_sale_price"] is None
        assert summary["food_cost_percent"] is None
