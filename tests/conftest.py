"""Pytest configuration and fixtures for costing engine and service tests."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from recipe_costing.models.base import Base
from recipe_costing.services.costing import (
    ConversionData,
    CostingCatalog,
    IngredientLine,
    InventoryItemData,
    RecipeData,
)


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Swaps the global session factory so services use it
    4. Drops all tables after the test completes
    """
    # Importing the models registers every table with Base
    import recipe_costing.models  # noqa: F401
    import recipe_costing.services.database as db_module

    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    original_get_session_factory = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    yield Session

    # Cleanup
    Session.remove()
    Base.metadata.drop_all(engine)
    engine.dispose()

    db_module.get_session_factory = original_get_session_factory


@pytest.fixture
def business(test_db):
    """A business with default settings and no staff or overheads."""
    from recipe_costing.services import business_service

    return business_service.create_business("Test Kitchen")


@pytest.fixture
def flour(business):
    """Flour at 18.00 per kg."""
    from recipe_costing.services import inventory_item_service

    return inventory_item_service.create_inventory_item(
        business.id, {"name": "Flour", "unit": "kg", "unit_cost": 18.0, "category": "Pantry"}
    )


@pytest.fixture
def butter(business):
    """Butter at 12.00 per kg."""
    from recipe_costing.services import inventory_item_service

    return inventory_item_service.create_inventory_item(
        business.id, {"name": "Butter", "unit": "kg", "unit_cost": 12.0, "category": "Dairy"}
    )


@pytest.fixture
def sauce_catalog():
    """Catalog with a tomato sauce sub-recipe measured in litres.

    Tomatoes cost 2.00/kg; one sauce batch uses 5 kg and yields 4 l, so a
    litre of sauce costs 2.50 before labour and overheads.
    """
    tomatoes = InventoryItemData(1, "Tomatoes", "kg", 2.0, category="Produce")
    oil = InventoryItemData(2, "Olive oil", "l", 8.0, category="Pantry")
    sauce = RecipeData(
        id=100,
        name="Tomato sauce",
        servings=16,
        ingredients=(IngredientLine(item_id=1, quantity=5, unit="kg"),),
        production_yield=4,
        production_unit="l",
    )
    return CostingCatalog(
        items=[tomatoes, oil],
        recipes=[sauce],
        conversions=[ConversionData("l", "ml", 1000), ConversionData("kg", "g", 1000)],
    )
