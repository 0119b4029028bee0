"""Tests for sub-recipe graph validation."""

from recipe_costing.services.costing import (
    IngredientLine,
    RecipeData,
    find_cycle,
    sub_recipe_graph,
    sub_recipe_path,
    would_create_cycle,
)


def _recipe(recipe_id, *children, items=()):
    lines = tuple(IngredientLine(child, 1, "serving", type="recipe") for child in children)
    lines += tuple(IngredientLine(item, 1, "kg") for item in items)
    return RecipeData(recipe_id, f"Recipe {recipe_id}", 1, lines)


class TestSubRecipeGraph:
    def test_only_sub_recipe_lines_are_edges(self):
        graph = sub_recipe_graph([_recipe(1, 2, items=(7,)), _recipe(2)])
        assert graph == {1: [2], 2: []}


class TestFindCycle:
    """Tests for find_cycle()."""

    def test_acyclic_graph(self):
        recipes = [_recipe(1, 2, 3), _recipe(2, 3), _recipe(3)]
        assert find_cycle(recipes) is None

    def test_two_recipe_cycle(self):
        assert find_cycle([_recipe(1, 2), _recipe(2, 1)]) == [1, 2, 1]

    def test_self_reference(self):
        assert find_cycle([_recipe(5, 5)]) == [5, 5]

    def test_longer_cycle_path(self):
        recipes = [_recipe(1, 2), _recipe(2, 3), _recipe(3, 1), _recipe(4, 1)]
        cycle = find_cycle(recipes)

        assert cycle[0] == cycle[-1]
        assert set(cycle) == {1, 2, 3}

    def test_unknown_references_ignored(self):
        assert find_cycle([_recipe(1, 99)]) is None


class TestWouldCreateCycle:
    """Tests for would_create_cycle() and sub_recipe_path()."""

    def test_self(self):
        assert would_create_cycle([], 1, 1)

    def test_child_already_uses_parent(self):
        recipes = [_recipe(1), _recipe(2, 3), _recipe(3, 1)]
        assert would_create_cycle(recipes, 1, 2)
        assert sub_recipe_path(recipes, 2, 1) == [2, 3, 1]

    def test_unrelated_child(self):
        recipes = [_recipe(1), _recipe(2, 3), _recipe(3)]
        assert not would_create_cycle(recipes, 1, 2)
        assert sub_recipe_path(recipes, 2, 1) is None

    def test_diamond_is_not_a_cycle(self):
        recipes = [_recipe(1, 2), _recipe(2, 4), _recipe(3, 4), _recipe(4)]
        assert not would_create_cycle(recipes, 1, 3)
