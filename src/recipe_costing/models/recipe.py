"""
Recipe models.

This module contains:
- Recipe: Recipe with servings and costing parameters
- RecipeIngredient: Ingredient line referencing an inventory item or a sub-recipe
- RecipeInstruction: Ordered instruction step
- RecipeCostHistory: Dated cost snapshot for trend analysis
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from recipe_costing.services.costing.types import (
    CostHistoryEntry,
    IngredientLine,
    RecipeData,
)
from recipe_costing.utils.constants import INGREDIENT_TYPE_ITEM
from recipe_costing.utils.datetime_utils import ensure_aware, utc_now

from .base import BaseModel


class Recipe(BaseModel):
    """
    Recipe model.

    Attributes:
        business_id: Owning business
        name: Recipe name (required)
        category: Recipe category (e.g., "Mains", "Sauces")
        servings: Servings produced by one batch (> 0)
        production_yield: Quantity produced per batch in production_unit,
            used when this recipe is a sub-recipe of another
        production_unit: Unit of production_yield (e.g., "l")
        labour_minutes: Labour minutes per serving
        packaging_cost_per_serving: Packaging cost per serving
        wastage_factor: Percent of material lost in production (0-100)
        use_custom_labour_cost: Use the custom_* labour fields
        custom_labour_salary: Monthly salary for the custom labour rate
        custom_working_days: Working days per month for the custom rate
        custom_working_hours: Working hours per day for the custom rate
        target_sale_price_per_serving: Desired sale price
    """

    __tablename__ = "recipes"

    business_id = Column(
        Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String(200), nullable=False, index=True)
    category = Column(String(100), nullable=False, index=True)
    servings = Column(Float, nullable=False, default=1.0)

    production_yield = Column(Float, nullable=True)
    production_unit = Column(String(50), nullable=True)

    labour_minutes = Column(Float, nullable=False, default=0.0)
    packaging_cost_per_serving = Column(Float, nullable=False, default=0.0)
    wastage_factor = Column(Float, nullable=False, default=0.0)

    use_custom_labour_cost = Column(Boolean, nullable=False, default=False)
    custom_labour_salary = Column(Float, nullable=True)
    custom_working_days = Column(Float, nullable=True)
    custom_working_hours = Column(Float, nullable=True)

    target_sale_price_per_serving = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)

    business = relationship("Business", back_populates="recipes")
    recipe_ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.sort_order",
        lazy="selectin",
    )
    instructions = relationship(
        "RecipeInstruction",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeInstruction.step_number",
        lazy="selectin",
    )
    cost_history = relationship(
        "RecipeCostHistory",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeCostHistory.id",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_recipe_business", "business_id"),
        CheckConstraint("servings > 0", name="ck_recipe_servings_positive"),
        CheckConstraint(
            "wastage_factor >= 0 AND wastage_factor <= 100", name="ck_recipe_wastage_factor"
        ),
    )

    def __repr__(self) -> str:
        return f"Recipe(id={self.id}, name='{self.name}', category='{self.category}')"

    def to_costing_data(self) -> RecipeData:
        """Immutable snapshot for the costing engine."""
        return RecipeData(
            id=self.id,
            name=self.name,
            servings=self.servings,
            ingredients=tuple(ri.to_costing_data() for ri in self.recipe_ingredients),
            category=self.category or "",
            instructions=tuple(step.text for step in self.instructions),
            production_yield=self.production_yield,
            production_unit=self.production_unit,
            labour_minutes=self.labour_minutes or 0.0,
            packaging_cost_per_serving=self.packaging_cost_per_serving or 0.0,
            wastage_factor=self.wastage_factor or 0.0,
            use_custom_labour_cost=bool(self.use_custom_labour_cost),
            custom_labour_salary=self.custom_labour_salary,
            custom_working_days=self.custom_working_days,
            custom_working_hours=self.custom_working_hours,
            target_sale_price_per_serving=self.target_sale_price_per_serving,
            cost_history=tuple(entry.to_costing_data() for entry in self.cost_history),
        )

    def to_dict(self, include_relationships: bool = False) -> dict:
        result = super().to_dict(include_relationships)
        result["ingredients"] = [ri.to_dict() for ri in self.recipe_ingredients]
        result["instructions"] = [step.text for step in self.instructions]
        result["cost_history"] = [entry.to_costing_data().to_dict() for entry in self.cost_history]
        return result


class RecipeIngredient(BaseModel):
    """
    Ingredient line of a recipe.

    ``item_id`` points at ``inventory_items.id`` when ingredient_type is
    'item' and at ``recipes.id`` when it is 'recipe'. The reference is
    polymorphic, so it carries no foreign key; dangling references are
    reported by the costing engine instead of rejected by the database.

    Attributes:
        recipe_id: Parent recipe
        ingredient_type: 'item' or 'recipe'
        item_id: Referenced inventory item or sub-recipe
        quantity: Amount used
        unit: Unit of quantity
        yield_percentage: Preparation yield specific to this use, 0-100
        sort_order: Display order
    """

    __tablename__ = "recipe_ingredients"

    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    ingredient_type = Column(String(10), nullable=False, default=INGREDIENT_TYPE_ITEM)
    item_id = Column(Integer, nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String(50), nullable=False)
    yield_percentage = Column(Float, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)

    recipe = relationship("Recipe", back_populates="recipe_ingredients")

    __table_args__ = (
        Index("idx_recipe_ingredient_recipe", "recipe_id"),
        Index("idx_recipe_ingredient_reference", "ingredient_type", "item_id"),
        CheckConstraint(
            "ingredient_type IN ('item', 'recipe')", name="ck_recipe_ingredient_type"
        ),
        CheckConstraint("quantity > 0", name="ck_recipe_ingredient_quantity_positive"),
    )

    def __repr__(self) -> str:
        return (
            f"RecipeIngredient(recipe_id={self.recipe_id}, "
            f"{self.ingredient_type}={self.item_id}, "
            f"quantity={self.quantity}, unit='{self.unit}')"
        )

    def to_costing_data(self) -> IngredientLine:
        return IngredientLine(
            id=self.id,
            type=self.ingredient_type,
            item_id=self.item_id,
            quantity=self.quantity,
            unit=self.unit,
            yield_percentage=self.yield_percentage,
        )


class RecipeInstruction(BaseModel):
    """Ordered instruction step of a recipe."""

    __tablename__ = "recipe_instructions"

    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    step_number = Column(Integer, nullable=False)
    text = Column(Text, nullable=False)

    recipe = relationship("Recipe", back_populates="instructions")

    __table_args__ = (Index("idx_recipe_instruction_recipe", "recipe_id", "step_number"),)


class RecipeCostHistory(BaseModel):
    """
    Dated cost snapshot of a recipe.

    Rows are appended or updated in place by the cost history tracker; the
    engine never deletes them.
    """

    __tablename__ = "recipe_cost_history"

    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    recorded_at = Column(DateTime, nullable=False, default=utc_now)
    cost = Column(Float, nullable=False)

    recipe = relationship("Recipe", back_populates="cost_history")

    __table_args__ = (Index("idx_cost_history_recipe_date", "recipe_id", "recorded_at"),)

    def to_costing_data(self) -> CostHistoryEntry:
        return CostHistoryEntry(date=ensure_aware(self.recorded_at), cost=self.cost)
