"""
Business models.

This module contains:
- Business: Tenant owning inventory, recipes and conversions, plus the
  working-time and production-volume basis for labour/overhead allocation
- StaffMember: Monthly salary contributing to the business labour rate
- Overhead: Monthly variable or fixed overhead cost
"""

from sqlalchemy import CheckConstraint, Column, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from recipe_costing.utils.constants import (
    DEFAULT_FOOD_COST_TARGET,
    DEFAULT_HOURS_PER_DAY,
    DEFAULT_WORKING_DAYS_PER_MONTH,
    OVERHEAD_FIXED,
    OVERHEAD_VARIABLE,
)

from .base import BaseModel


class Business(BaseModel):
    """
    Business owning a costing catalog.

    Attributes:
        name: Business name
        working_days_per_month: Staff working days per month
        hours_per_day: Staff working hours per day
        total_dishes_produced: Monthly production volume (variable overhead basis)
        total_dishes_sold: Monthly sales volume (fixed overhead basis)
        food_cost_target: Target food cost percent used for price suggestions
    """

    __tablename__ = "businesses"

    name = Column(String(200), nullable=False, unique=True)

    working_days_per_month = Column(
        Float, nullable=False, default=DEFAULT_WORKING_DAYS_PER_MONTH
    )
    hours_per_day = Column(Float, nullable=False, default=DEFAULT_HOURS_PER_DAY)
    total_dishes_produced = Column(Float, nullable=False, default=0.0)
    total_dishes_sold = Column(Float, nullable=False, default=0.0)
    food_cost_target = Column(Float, nullable=False, default=DEFAULT_FOOD_COST_TARGET)

    staff_members = relationship(
        "StaffMember", back_populates="business", cascade="all, delete-orphan"
    )
    overheads = relationship("Overhead", back_populates="business", cascade="all, delete-orphan")
    inventory_items = relationship(
        "InventoryItem", back_populates="business", cascade="all, delete-orphan"
    )
    recipes = relationship("Recipe", back_populates="business", cascade="all, delete-orphan")
    unit_conversions = relationship(
        "UnitConversion", back_populates="business", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(
            "food_cost_target > 0 AND food_cost_target <= 100",
            name="ck_business_food_cost_target",
        ),
    )

    @property
    def total_monthly_salary(self) -> float:
        return sum(staff.monthly_salary for staff in self.staff_members)

    def overhead_total(self, overhead_type: str) -> float:
        """Sum of monthly overheads of one type ('Variable' or 'Fixed')."""
        return sum(o.monthly_cost for o in self.overheads if o.type == overhead_type)

    @property
    def variable_overhead_monthly(self) -> float:
        return self.overhead_total(OVERHEAD_VARIABLE)

    @property
    def fixed_overhead_monthly(self) -> float:
        return self.overhead_total(OVERHEAD_FIXED)


class StaffMember(BaseModel):
    """Staff member whose salary feeds the business-wide labour rate."""

    __tablename__ = "staff_members"

    business_id = Column(
        Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String(200), nullable=False)
    role = Column(String(100), nullable=True)
    monthly_salary = Column(Float, nullable=False, default=0.0)

    business = relationship("Business", back_populates="staff_members")

    __table_args__ = (
        Index("idx_staff_business", "business_id"),
        CheckConstraint("monthly_salary >= 0", name="ck_staff_salary_non_negative"),
    )


class Overhead(BaseModel):
    """Monthly overhead record; type is 'Variable' or 'Fixed'."""

    __tablename__ = "overheads"

    business_id = Column(
        Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String(200), nullable=False)
    type = Column(String(20), nullable=False)
    monthly_cost = Column(Float, nullable=False, default=0.0)

    business = relationship("Business", back_populates="overheads")

    __table_args__ = (
        Index("idx_overhead_business", "business_id"),
        CheckConstraint("type IN ('Variable', 'Fixed')", name="ck_overhead_type"),
        CheckConstraint("monthly_cost >= 0", name="ck_overhead_cost_non_negative"),
    )
