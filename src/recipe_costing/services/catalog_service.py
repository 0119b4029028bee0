"""
Catalog Service - Builds costing snapshots from the database.

The costing engine works on an immutable CostingCatalog. This service
loads a business's inventory items, recipes and unit conversions in one
session and converts them into engine dataclasses, so a costing pass never
touches the database and always sees one consistent state.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import InventoryItem, Recipe, UnitConversion
from .business_service import get_costing_settings
from .costing.catalog import CostingCatalog
from .costing.types import CostingSettings
from .database import session_scope
from .exceptions import BusinessNotFound, DatabaseError
from .logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)


def load_catalog(business_id: int, session: Optional[Session] = None) -> CostingCatalog:
    """
    Load the costing catalog of a business.

    Args:
        business_id: Business whose items, recipes and conversions to load
        session: Optional session for transaction sharing

    Returns:
        CostingCatalog snapshot

    Raises:
        DatabaseError: If database operation fails
    """
    if session is not None:
        return _load_catalog_impl(business_id, session)

    try:
        with session_scope() as session:
            return _load_catalog_impl(business_id, session)
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to load catalog for business {business_id}", e)


def _load_catalog_impl(business_id: int, session: Session) -> CostingCatalog:
    items = session.query(InventoryItem).filter_by(business_id=business_id).all()
    recipes = session.query(Recipe).filter_by(business_id=business_id).all()
    conversions = (
        session.query(UnitConversion)
        .filter_by(business_id=business_id)
        .order_by(UnitConversion.id)
        .all()
    )

    catalog = CostingCatalog(
        items=[item.to_costing_data() for item in items],
        recipes=[recipe.to_costing_data() for recipe in recipes],
        conversions=[conversion.to_costing_data() for conversion in conversions],
    )
    log_operation(
        logger,
        "load_catalog",
        "success",
        level=logging.DEBUG,
        business_id=business_id,
        items=len(items),
        recipes=len(recipes),
        conversions=len(conversions),
    )
    return catalog


def load_costing_context(
    business_id: int, session: Optional[Session] = None
) -> Tuple[CostingCatalog, CostingSettings]:
    """
    Load the catalog and costing settings of a business in one session.

    Raises:
        BusinessNotFound: If business doesn't exist
        DatabaseError: If database operation fails
    """
    if session is not None:
        return _load_costing_context_impl(business_id, session)

    try:
        with session_scope() as session:
            return _load_costing_context_impl(business_id, session)
    except BusinessNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to load costing context for business {business_id}", e)


def _load_costing_context_impl(
    business_id: int, session: Session
) -> Tuple[CostingCatalog, CostingSettings]:
    settings = get_costing_settings(business_id, session=session)
    return _load_catalog_impl(business_id, session), settings
