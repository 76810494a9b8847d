"""
Business logic for ServicePersonZone assignments
"""

import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from kardexcare.errors import conflict, not_found
from kardexcare.models import ServicePersonZone, ServiceZone, User

logger = logging.getLogger(__name__)


def _get_zone(db: Session, zone_id: int) -> ServiceZone:
    zone = db.query(ServiceZone).filter(ServiceZone.id == zone_id).first()
    if not zone:
        raise not_found("Service zone not found")
    return zone


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise not_found("User not found")
    return user


def assign_user_to_zone(db: Session, zone_id: int, user_id: int) -> ServicePersonZone:
    """
    Link a user to a zone. A pair may only be linked once.
    """
    _get_zone(db, zone_id)
    _get_user(db, user_id)

    existing = db.query(ServicePersonZone).filter(
        ServicePersonZone.user_id == user_id,
        ServicePersonZone.service_zone_id == zone_id
    ).first()
    if existing:
        raise conflict("User is already assigned to this zone")

    try:
        assignment = ServicePersonZone(user_id=user_id, service_zone_id=zone_id)
        db.add(assignment)
        db.commit()
        db.refresh(assignment)
    except IntegrityError:
        db.rollback()
        logger.error("Zone assignment failed", extra={"user_id": user_id, "zone_id": zone_id})
        raise conflict("User is already assigned to this zone")

    logger.info(f"Assigned user {user_id} to zone {zone_id}")
    return assignment


def remove_user_from_zone(db: Session, zone_id: int, user_id: int):
    assignment = db.query(ServicePersonZone).filter(
        ServicePersonZone.user_id == user_id,
        ServicePersonZone.service_zone_id == zone_id
    ).first()
    if not assignment:
        raise not_found("Assignment not found")

    db.delete(assignment)
    db.commit()
    logger.info(f"Removed user {user_id} from zone {zone_id}")


def list_assignments_by_zone(db: Session, zone_id: int) -> List[ServicePersonZone]:
    _get_zone(db, zone_id)
    return db.query(ServicePersonZone).filter(
        ServicePersonZone.service_zone_id == zone_id
    ).order_by(ServicePersonZone.id).all()


def list_assignments_by_user(db: Session, user_id: int) -> List[ServicePersonZone]:
    _get_user(db, user_id)
    return db.query(ServicePersonZone).filter(
        ServicePersonZone.user_id == user_id
    ).order_by(ServicePersonZone.id).all()
