"""
Business Service - Business settings, staff and overheads.

A business supplies the allocation basis for labour and overhead costs:
working time, staff salaries, monthly overheads and production/sales
volumes. ``get_costing_settings`` folds all of it into the CostingSettings
value the costing engine consumes.

All public functions accept an optional ``session``. When one is passed the
caller owns the transaction; otherwise a new session_scope() is used.
"""

from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Business, Overhead, StaffMember
from ..utils.validators import (
    validate_non_negative_number,
    validate_overhead_data,
    validate_percentage,
    validate_positive_number,
    validate_required_string,
)
from .costing.types import CostingSettings
from .database import session_scope
from .exceptions import BusinessNotFound, DatabaseError, ValidationError
from .logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)

SETTINGS_FIELDS = (
    "working_days_per_month",
    "hours_per_day",
    "total_dishes_produced",
    "total_dishes_sold",
    "food_cost_target",
)


def _get_business_or_raise(business_id: int, session: Session) -> Business:
    business = session.query(Business).filter_by(id=business_id).first()
    if not business:
        raise BusinessNotFound(business_id)
    return business


def _validate_settings(data: Dict) -> List[str]:
    errors = []
    for field in ("working_days_per_month", "hours_per_day"):
        if field in data:
            is_valid, message = validate_positive_number(data[field], field)
            if not is_valid:
                errors.append(message)
    for field in ("total_dishes_produced", "total_dishes_sold"):
        if field in data:
            is_valid, message = validate_non_negative_number(data[field], field)
            if not is_valid:
                errors.append(message)
    if "food_cost_target" in data:
        is_valid, message = validate_percentage(data["food_cost_target"], "Food cost target")
        if not is_valid:
            errors.append(message)
        elif float(data["food_cost_target"]) == 0:
            errors.append("Food cost target: Must be greater than zero")
    return errors


# ============================================================================
# Business CRUD
# ============================================================================


def create_business(name: str, session: Optional[Session] = None, **settings) -> Business:
    """
    Create a new business.

    Args:
        name: Unique business name
        session: Optional session for transaction sharing
        **settings: Optional costing settings (working_days_per_month,
            hours_per_day, total_dishes_produced, total_dishes_sold,
            food_cost_target)

    Returns:
        Created Business instance

    Raises:
        ValidationError: If the name or a setting is invalid, or the name is taken
        DatabaseError: If database operation fails
    """
    errors = []
    is_valid, message = validate_required_string(name, "Name")
    if not is_valid:
        errors.append(message)
    unknown = sorted(set(settings) - set(SETTINGS_FIELDS))
    if unknown:
        errors.append(f"Unknown settings: {', '.join(unknown)}")
    errors.extend(_validate_settings(settings))
    if errors:
        raise ValidationError(errors)

    if session is not None:
        return _create_business_impl(name, settings, session)

    try:
        with session_scope() as session:
            return _create_business_impl(name, settings, session)
    except IntegrityError as e:
        raise ValidationError([f"Business '{name}' already exists"]) from e
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create business", e)


def _create_business_impl(name: str, settings: Dict, session: Session) -> Business:
    business = Business(name=name.strip(), **settings)
    session.add(business)
    session.flush()

    log_operation(logger, "create_business", "success", business_id=business.id)
    return business


def get_business(business_id: int, session: Optional[Session] = None) -> Business:
    """
    Retrieve a business by ID.

    Raises:
        BusinessNotFound: If business doesn't exist
        DatabaseError: If database operation fails
    """
    if session is not None:
        return _get_business_or_raise(business_id, session)

    try:
        with session_scope() as session:
            business = _get_business_or_raise(business_id, session)
            # Load collections before the session closes
            _ = business.staff_members
            _ = business.overheads
            return business
    except BusinessNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve business {business_id}", e)


def get_all_businesses() -> List[Business]:
    """Retrieve all businesses ordered by name."""
    try:
        with session_scope() as session:
            return session.query(Business).order_by(Business.name).all()
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve businesses", e)


def update_costing_settings(business_id: int, settings: Dict) -> Business:
    """
    Update the labour/overhead allocation basis of a business.

    Args:
        business_id: Business ID
        settings: Dict with any of working_days_per_month, hours_per_day,
            total_dishes_produced, total_dishes_sold, food_cost_target

    Returns:
        Updated Business instance

    Raises:
        BusinessNotFound: If business doesn't exist
        ValidationError: If a setting is invalid
        DatabaseError: If database operation fails
    """
    unknown = sorted(set(settings) - set(SETTINGS_FIELDS))
    errors = [f"Unknown settings: {', '.join(unknown)}"] if unknown else []
    errors.extend(_validate_settings(settings))
    if errors:
        raise ValidationError(errors)

    try:
        with session_scope() as session:
            business = _get_business_or_raise(business_id, session)
            business.update_from_dict(settings)
            session.flush()

            log_operation(
                logger,
                "update_costing_settings",
                "success",
                business_id=business_id,
                fields=sorted(settings),
            )
            return business
    except BusinessNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update business {business_id}", e)


# ============================================================================
# Staff and Overheads
# ============================================================================


def add_staff_member(
    business_id: int, name: str, monthly_salary: float, role: Optional[str] = None
) -> StaffMember:
    """
    Add a staff member whose salary feeds the business labour rate.

    Raises:
        BusinessNotFound: If business doesn't exist
        ValidationError: If name or salary is invalid
        DatabaseError: If database operation fails
    """
    errors = []
    for is_valid, message in (
        validate_required_string(name, "Name"),
        validate_non_negative_number(monthly_salary, "Monthly salary"),
    ):
        if not is_valid:
            errors.append(message)
    if errors:
        raise ValidationError(errors)

    try:
        with session_scope() as session:
            _get_business_or_raise(business_id, session)
            staff = StaffMember(
                business_id=business_id,
                name=name.strip(),
                role=role,
                monthly_salary=float(monthly_salary),
            )
            session.add(staff)
            session.flush()
            return staff
    except BusinessNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to add staff member", e)


def remove_staff_member(staff_member_id: int) -> bool:
    """Remove a staff member. Returns False if it did not exist."""
    try:
        with session_scope() as session:
            staff = session.query(StaffMember).filter_by(id=staff_member_id).first()
            if not staff:
                return False
            session.delete(staff)
            return True
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to remove staff member {staff_member_id}", e)


def add_overhead(business_id: int, name: str, overhead_type: str, monthly_cost: float) -> Overhead:
    """
    Add a monthly overhead.

    Args:
        business_id: Business ID
        name: Overhead name (e.g., "Rent")
        overhead_type: 'Variable' (allocated per dish produced) or 'Fixed'
            (allocated per dish sold)
        monthly_cost: Monthly amount

    Raises:
        BusinessNotFound: If business doesn't exist
        ValidationError: If data is invalid
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_overhead_data(
        {"name": name, "type": overhead_type, "monthly_cost": monthly_cost}
    )
    if not is_valid:
        raise ValidationError(errors)

    try:
        with session_scope() as session:
            _get_business_or_raise(business_id, session)
            overhead = Overhead(
                business_id=business_id,
                name=name.strip(),
                type=overhead_type,
                monthly_cost=float(monthly_cost),
            )
            session.add(overhead)
            session.flush()
            return overhead
    except BusinessNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to add overhead", e)


def remove_overhead(overhead_id: int) -> bool:
    """Remove an overhead. Returns False if it did not exist."""
    try:
        with session_scope() as session:
            overhead = session.query(Overhead).filter_by(id=overhead_id).first()
            if not overhead:
                return False
            session.delete(overhead)
            return True
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to remove overhead {overhead_id}", e)


# ============================================================================
# Costing Settings
# ============================================================================


def get_costing_settings(business_id: int, session: Optional[Session] = None) -> CostingSettings:
    """
    Fold a business's settings, staff and overheads into CostingSettings.

    Args:
        business_id: Business ID
        session: Optional session for transaction sharing

    Returns:
        CostingSettings for the costing engine

    Raises:
        BusinessNotFound: If business doesn't exist
        DatabaseError: If database operation fails
    """
    if session is not None:
        return _get_costing_settings_impl(business_id, session)

    try:
        with session_scope() as session:
            return _get_costing_settings_impl(business_id, session)
    except BusinessNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to load costing settings for business {business_id}", e)


def _get_costing_settings_impl(business_id: int, session: Session) -> CostingSettings:
    business = _get_business_or_raise(business_id, session)
    return CostingSettings(
        working_days_per_month=business.working_days_per_month,
        hours_per_day=business.hours_per_day,
        total_monthly_salary=business.total_monthly_salary,
        variable_overhead_monthly=business.variable_overhead_monthly,
        fixed_overhead_monthly=business.fixed_overhead_monthly,
        total_dishes_produced=business.total_dishes_produced,
        total_dishes_sold=business.total_dishes_sold,
        food_cost_target=business.food_cost_target,
    )
