"""
UnitConversion model for business-wide and item-specific conversions.

Each row states ``1 from_unit = factor to_unit``. Rows with an item_id
override the business-wide row for the same unit pair when costing that
item (e.g., density-dependent cup -> g for flour).

Example: Flour
- 1 kg = 1000 g (business-wide)
- 1 cup = 0.12 kg (flour only)
"""

from sqlalchemy import CheckConstraint, Column, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from recipe_costing.services.costing.types import ConversionData

from .base import BaseModel


class UnitConversion(BaseModel):
    """
    UnitConversion model.

    Attributes:
        business_id: Owning business
        from_unit: Source unit (e.g., "kg")
        to_unit: Target unit (e.g., "g")
        factor: Amount of to_unit in one from_unit
        item_id: Optional inventory item this conversion applies to
        notes: Additional notes (e.g., "sifted")
    """

    __tablename__ = "unit_conversions"

    business_id = Column(
        Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False
    )
    from_unit = Column(String(50), nullable=False)
    to_unit = Column(String(50), nullable=False)
    factor = Column(Float, nullable=False)
    item_id = Column(
        Integer, ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=True
    )
    notes = Column(Text, nullable=True)

    business = relationship("Business", back_populates="unit_conversions")
    item = relationship("InventoryItem", back_populates="conversions")

    __table_args__ = (
        Index("idx_conversion_business", "business_id"),
        Index("idx_conversion_from_to", "business_id", "from_unit", "to_unit"),
        CheckConstraint("factor > 0", name="ck_conversion_factor_positive"),
    )

    def __repr__(self) -> str:
        scope = f"item_id={self.item_id}" if self.item_id is not None else "business-wide"
        return (
            f"UnitConversion(id={self.id}, {scope}, "
            f"1 {self.from_unit} = {self.factor} {self.to_unit})"
        )

    def to_costing_data(self) -> ConversionData:
        """Immutable snapshot for the costing engine."""
        return ConversionData(
            from_unit=self.from_unit,
            to_unit=self.to_unit,
            factor=self.factor,
            item_id=self.item_id,
        )
