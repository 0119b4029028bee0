"""
In-memory catalog snapshot consumed by the costing engine.

The catalog answers the three lookups the engine needs:
- get_inventory_item_by_id
- get_recipe_by_id
- get_conversion_factor

It is built once per costing request (from the database by
``catalog_service.load_catalog`` or directly from dataclasses) and is never
mutated afterwards, so a costing pass always sees a consistent snapshot.
"""

from typing import Any, Dict, Iterable, List, Optional

from .types import ConversionData, InventoryItemData, RecipeData
from .unit_resolution import UnitConversionResolver


class CostingCatalog:
    """Read-only lookup tables for items, recipes and conversions."""

    def __init__(
        self,
        items: Iterable[InventoryItemData] = (),
        recipes: Iterable[RecipeData] = (),
        conversions: Iterable[ConversionData] = (),
    ):
        self._items: Dict[Any, InventoryItemData] = {item.id: item for item in items}
        self._recipes: Dict[Any, RecipeData] = {recipe.id: recipe for recipe in recipes}
        self._conversions = tuple(conversions)
        self._resolver = UnitConversionResolver(self._conversions)

    @property
    def resolver(self) -> UnitConversionResolver:
        return self._resolver

    @property
    def recipes(self) -> List[RecipeData]:
        return list(self._recipes.values())

    @property
    def items(self) -> List[InventoryItemData]:
        return list(self._items.values())

    @property
    def conversions(self) -> List[ConversionData]:
        return list(self._conversions)

    def get_inventory_item_by_id(self, item_id: Any) -> Optional[InventoryItemData]:
        return self._items.get(item_id)

    def get_recipe_by_id(self, recipe_id: Any) -> Optional[RecipeData]:
        return self._recipes.get(recipe_id)

    def get_conversion_factor(
        self, from_unit: str, to_unit: str, item_id: Any = None
    ) -> Optional[float]:
        """Conversion factor between two units, or None if not found."""
        return self._resolver.resolve(from_unit, to_unit, item_id)

    def with_recipe(self, recipe: RecipeData) -> "CostingCatalog":
        """Copy of this catalog with one recipe added or replaced.

        Used to cost an unsaved draft against the stored catalog.
        """
        recipes = dict(self._recipes)
        recipes[recipe.id] = recipe
        return CostingCatalog(self._items.values(), recipes.values(), self._conversions)

    def __repr__(self) -> str:
        return (
            f"CostingCatalog(items={len(self._items)}, recipes={len(self._recipes)}, "
            f"conversions={len(self._conversions)})"
        )
