"""Utility modules for Recipe Costing."""
