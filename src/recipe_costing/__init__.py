"""Recipe Costing - recipe cost calculation for food-production businesses."""

__version__ = "0.1.0"
