"""
Database models package.

This package contains all SQLAlchemy ORM models for the application.
"""

from .base import Base, BaseModel
from .business import Business, Overhead, StaffMember
from .inventory_item import InventoryItem
from .recipe import Recipe, RecipeCostHistory, RecipeIngredient, RecipeInstruction
from .unit_conversion import UnitConversion

__all__ = [
    "Base",
    "BaseModel",
    "Business",
    "StaffMember",
    "Overhead",
    "InventoryItem",
    "Recipe",
    "RecipeIngredient",
    "RecipeInstruction",
    "RecipeCostHistory",
    "UnitConversion",
]
