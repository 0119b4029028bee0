"""
Sub-recipe graph validation.

Recipes referencing other recipes form a directed graph that must stay
acyclic. The costing engine tolerates cycles at costing time; these
helpers let recipe management and bulk-import validation reject them
before they are stored.
"""

from typing import Any, Dict, Iterable, List, Optional, Set

from .types import RecipeData


def sub_recipe_graph(recipes: Iterable[RecipeData]) -> Dict[Any, List[Any]]:
    """Map each recipe id to the ids of the sub-recipes it uses."""
    return {
        recipe.id: [line.item_id for line in recipe.ingredients if line.is_sub_recipe]
        for recipe in recipes
    }


def find_cycle(recipes: Iterable[RecipeData]) -> Optional[List[Any]]:
    """
    Detect circular recipe references.

    Args:
        recipes: Recipes to analyze

    Returns:
        List of recipe ids forming a cycle (first id repeated at the end),
        or None if the graph is acyclic

    Example:
        >>> a = RecipeData(1, "A", 1, (IngredientLine(2, 1, "serving", type="recipe"),))
        >>> b = RecipeData(2, "B", 1, (IngredientLine(1, 1, "serving", type="recipe"),))
        >>> find_cycle([a, b])
        [1, 2, 1]
    """
    graph = sub_recipe_graph(recipes)

    visited: Set[Any] = set()
    rec_stack: Set[Any] = set()
    path: List[Any] = []

    def dfs(node):
        if node in rec_stack:
            cycle_start = path.index(node)
            return path[cycle_start:] + [node]
        if node in visited:
            return None

        visited.add(node)
        rec_stack.add(node)
        path.append(node)

        for neighbor in graph.get(node, []):
            if neighbor in graph:  # Unknown ids are missing references, not cycles
                cycle = dfs(neighbor)
                if cycle:
                    return cycle

        path.pop()
        rec_stack.remove(node)
        return None

    for recipe_id in graph:
        if recipe_id not in visited:
            cycle = dfs(recipe_id)
            if cycle:
                return cycle

    return None


def would_create_cycle(recipes: Iterable[RecipeData], parent_id: Any, child_id: Any) -> bool:
    """
    True if making ``child_id`` a sub-recipe of ``parent_id`` closes a loop.

    That is the case when the child is the parent itself or already
    (transitively) uses the parent.
    """
    return sub_recipe_path(recipes, child_id, parent_id) is not None


def sub_recipe_path(
    recipes: Iterable[RecipeData], start_id: Any, goal_id: Any
) -> Optional[List[Any]]:
    """
    Chain of sub-recipe references leading from ``start_id`` to ``goal_id``.

    Returns:
        List of recipe ids from start to goal inclusive, or None if the
        start recipe does not (transitively) use the goal recipe
    """
    if start_id == goal_id:
        return [start_id]

    graph = sub_recipe_graph(recipes)
    parents: Dict[Any, Any] = {start_id: None}
    stack = [start_id]
    while stack:
        node = stack.pop()
        for neighbor in graph.get(node, []):
            if neighbor in parents:
                continue
            parents[neighbor] = node
            if neighbor == goal_id:
                path = [neighbor]
                while parents[path[-1]] is not None:
                    path.append(parents[path[-1]])
                return path[::-1]
            stack.append(neighbor)
    return None
