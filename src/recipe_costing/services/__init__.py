"""Services package - Business logic layer for Recipe Costing.

Architecture:
- costing: Pure costing engine over immutable snapshots (no database access)
- Services: Stateless functions organized by domain (recipe, inventory,
  conversion, business settings, costing)
- Transactions: Managed via session_scope() context manager
- Exceptions: Consistent error handling via ServiceError hierarchy
- Validation: Input validation before database operations

Service Modules:
- recipe_costing_service: calculate_recipe_cost, calculate_recipe_cost_breakdown,
  record_recipe_cost_history, pricing suggestions
- catalog_service: Loads a business's catalog snapshot for the engine
- recipe_service: Recipe management with sub-recipe cycle checks
- inventory_item_service: Inventory item management
- unit_conversion_service: Unit conversion management
- business_service: Business, staff and overhead settings

Infrastructure:
- exceptions: Custom exception classes for service layer errors
- database: Session management and database utilities
- logging_utils: Structured operation logging
"""
