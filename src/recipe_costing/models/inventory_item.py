"""
InventoryItem model for priced raw materials.

An inventory item is priced per one unit of its canonical unit. Recipes
reference items by id; an item can only be deleted while no recipe uses it.
"""

from sqlalchemy import CheckConstraint, Column, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from recipe_costing.services.costing.types import InventoryItemData

from .base import BaseModel


class InventoryItem(BaseModel):
    """
    InventoryItem model.

    Attributes:
        business_id: Owning business
        name: Item name
        category: Inventory category (e.g., "Produce", "Dairy")
        unit: Canonical unit the cost is expressed in (e.g., "kg")
        unit_cost: Cost of one unit
        quantity: Quantity on hand (informational, not used for costing)
        yield_percentage: Usable fraction after trimming/peeling, 0-100
    """

    __tablename__ = "inventory_items"

    business_id = Column(
        Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String(200), nullable=False)
    category = Column(String(100), nullable=False, default="Pantry")
    unit = Column(String(50), nullable=False)
    unit_cost = Column(Float, nullable=False, default=0.0)
    quantity = Column(Float, nullable=False, default=0.0)
    yield_percentage = Column(Float, nullable=True)

    business = relationship("Business", back_populates="inventory_items")
    conversions = relationship(
        "UnitConversion", back_populates="item", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_inventory_item_business", "business_id"),
        Index("idx_inventory_item_name", "business_id", "name"),
        CheckConstraint("unit_cost >= 0", name="ck_inventory_item_unit_cost"),
        CheckConstraint(
            "yield_percentage IS NULL OR (yield_percentage >= 0 AND yield_percentage <= 100)",
            name="ck_inventory_item_yield",
        ),
    )

    def to_costing_data(self) -> InventoryItemData:
        """Immutable snapshot for the costing engine."""
        return InventoryItemData(
            id=self.id,
            name=self.name,
            unit=self.unit,
            unit_cost=self.unit_cost or 0.0,
            category=self.category or "",
            yield_percentage=self.yield_percentage,
        )
