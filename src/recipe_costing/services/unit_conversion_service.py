"""
Unit Conversion Service - Stored conversion factors.

Each stored row states ``1 from_unit = factor to_unit`` for a business,
optionally scoped to one inventory item. The costing engine resolves
factors over these rows only (direct or inverse lookup, item-specific rows
first); ``seed_standard_conversions`` gives a new business the common
weight, volume and count pairs.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Business, InventoryItem, UnitConversion
from ..utils.constants import STANDARD_CONVERSIONS
from ..utils.validators import validate_conversion_data
from .costing.unit_resolution import UnitConversionResolver, normalize_unit
from .database import session_scope
from .exceptions import (
    BusinessNotFound,
    DatabaseError,
    InventoryItemNotFound,
    UnitConversionNotFound,
    ValidationError,
)
from .logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)


def create_conversion(business_id: int, data: Dict[str, Any]) -> UnitConversion:
    """
    Create a unit conversion.

    Args:
        business_id: Owning business
        data: Dict with from_unit, to_unit, factor and optional item_id, notes

    Returns:
        Created UnitConversion

    Raises:
        BusinessNotFound: If the business doesn't exist
        InventoryItemNotFound: If item_id is given and doesn't exist in the business
        ValidationError: If data validation fails
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_conversion_data(data)
    if not is_valid:
        raise ValidationError(errors)

    from_unit = normalize_unit(data["from_unit"])
    to_unit = normalize_unit(data["to_unit"])
    if from_unit == to_unit:
        raise ValidationError(["To unit: Must differ from the from unit"])

    item_id = data.get("item_id")

    try:
        with session_scope() as session:
            if not session.query(Business).filter_by(id=business_id).first():
                raise BusinessNotFound(business_id)
            if item_id is not None:
                item = (
                    session.query(InventoryItem)
                    .filter_by(id=item_id, business_id=business_id)
                    .first()
                )
                if not item:
                    raise InventoryItemNotFound(item_id)

            conversion = UnitConversion(
                business_id=business_id,
                from_unit=from_unit,
                to_unit=to_unit,
                factor=float(data["factor"]),
                item_id=item_id,
                notes=data.get("notes"),
            )
            session.add(conversion)
            session.flush()

            log_operation(
                logger,
                "create_conversion",
                "success",
                conversion_id=conversion.id,
                from_unit=from_unit,
                to_unit=to_unit,
                item_id=item_id,
            )
            return conversion

    except (BusinessNotFound, InventoryItemNotFound):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create unit conversion", e)


def get_conversions(
    business_id: int, item_id: Optional[int] = None, session: Optional[Session] = None
) -> List[UnitConversion]:
    """
    List a business's conversions in storage order.

    Args:
        business_id: Owning business
        item_id: If given, only conversions scoped to this item
        session: Optional session for transaction sharing
    """
    if session is not None:
        return _get_conversions_impl(business_id, item_id, session)

    try:
        with session_scope() as session:
            return _get_conversions_impl(business_id, item_id, session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve unit conversions", e)


def _get_conversions_impl(
    business_id: int, item_id: Optional[int], session: Session
) -> List[UnitConversion]:
    query = session.query(UnitConversion).filter(UnitConversion.business_id == business_id)
    if item_id is not None:
        query = query.filter(UnitConversion.item_id == item_id)
    return query.order_by(UnitConversion.id).all()


def delete_conversion(conversion_id: int) -> bool:
    """
    Delete a unit conversion.

    Raises:
        UnitConversionNotFound: If the conversion doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            conversion = session.query(UnitConversion).filter_by(id=conversion_id).first()
            if not conversion:
                raise UnitConversionNotFound(conversion_id)
            session.delete(conversion)
            return True

    except UnitConversionNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete unit conversion {conversion_id}", e)


def get_conversion_factor(
    business_id: int, from_unit: str, to_unit: str, item_id: Optional[int] = None
) -> Optional[float]:
    """
    Resolve a conversion factor over the business's stored conversions.

    Returns:
        Factor converting a quantity in from_unit to to_unit, or None if
        no direct or inverse conversion exists

    Example:
        >>> get_conversion_factor(1, "g", "kg")
        0.001
    """
    conversions = get_conversions(business_id)
    resolver = UnitConversionResolver(c.to_costing_data() for c in conversions)
    return resolver.resolve(from_unit, to_unit, item_id)


def seed_standard_conversions(business_id: int) -> int:
    """
    Store the standard business-wide conversions a business doesn't have yet.

    A pair counts as present when a business-wide row exists in either
    direction, so reseeding never duplicates and never shadows a custom
    factor.

    Returns:
        Number of conversions created

    Raises:
        BusinessNotFound: If the business doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            if not session.query(Business).filter_by(id=business_id).first():
                raise BusinessNotFound(business_id)

            existing = set()
            for conversion in _get_conversions_impl(business_id, None, session):
                if conversion.item_id is None:
                    pair = (
                        normalize_unit(conversion.from_unit),
                        normalize_unit(conversion.to_unit),
                    )
                    existing.add(pair)
                    existing.add(pair[::-1])

            created = 0
            for from_unit, to_unit, factor in STANDARD_CONVERSIONS:
                if (from_unit, to_unit) in existing:
                    continue
                session.add(
                    UnitConversion(
                        business_id=business_id,
                        from_unit=from_unit,
                        to_unit=to_unit,
                        factor=factor,
                        notes="standard",
                    )
                )
                existing.add((from_unit, to_unit))
                existing.add((to_unit, from_unit))
                created += 1

            log_operation(
                logger,
                "seed_standard_conversions",
                "success",
                business_id=business_id,
                created_count=created,
            )
            return created

    except BusinessNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to seed conversions for business {business_id}", e)
