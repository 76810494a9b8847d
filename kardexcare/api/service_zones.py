"""
Service zone endpoints
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from kardexcare.api.auth import get_current_user
from kardexcare.api.permissions import require_admin
from kardexcare.database import get_db
from kardexcare.errors import conflict, not_found
from kardexcare.models import User, ServiceZone, ServicePersonZone, Customer, Ticket, Offer
from kardexcare.schemas import ServiceZoneCreate, ServiceZoneUpdate, ServiceZoneResponse, ServiceZoneList
from kardexcare.services.references import derive_zone_short_form

logger = logging.getLogger(__name__)

router = APIRouter()


def short_form_taken(db: Session, short_form: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(ServiceZone.id).filter(func.upper(ServiceZone.short_form) == short_form.upper())
    if exclude_id is not None:
        query = query.filter(ServiceZone.id != exclude_id)
    return query.first() is not None


def ensure_unique_name(db: Session, name: str, exclude_id: Optional[int] = None):
    query = db.query(ServiceZone.id).filter(func.lower(ServiceZone.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(ServiceZone.id != exclude_id)
    if query.first():
        raise conflict(f"Service zone '{name}' already exists")


@router.get("/service-zones", response_model=ServiceZoneList)
def list_service_zones(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100)
):
    query = db.query(ServiceZone)

    if is_active is not None:
        query = query.filter(ServiceZone.is_active == is_active)
    if search:
        search_term = f"%{search}%"
        query = query.filter(
            (ServiceZone.name.ilike(search_term)) |
            (ServiceZone.short_form.ilike(search_term)) |
            (ServiceZone.description.ilike(search_term))
        )

    total = query.count()
    zones = query.order_by(ServiceZone.id).offset((page - 1) * size).limit(size).all()

    return ServiceZoneList(items=zones, total=total, page=page, size=size)


@router.get("/service-zones/{zone_id}", response_model=ServiceZoneResponse)
def get_service_zone(
    zone_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    zone = db.query(ServiceZone).filter(ServiceZone.id == zone_id).first()
    if not zone:
        raise not_found("Service zone not found")
    return zone


@router.post("/service-zones", response_model=ServiceZoneResponse, status_code=status.HTTP_201_CREATED)
def create_service_zone(
    data: ServiceZoneCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    ensure_unique_name(db, data.name)

    short_form = data.short_form.upper() if data.short_form else None
    if short_form:
        if short_form_taken(db, short_form):
            raise conflict(f"Short form '{short_form}' is already used by another zone")
    else:
        short_form = derive_zone_short_form(data.name)
        if short_form and short_form_taken(db, short_form):
            logger.warning(f"Derived short form '{short_form}' for zone '{data.name}' is taken, leaving it unset")
            short_form = None

    zone = ServiceZone(
        name=data.name,
        short_form=short_form,
        description=data.description,
        is_active=data.is_active
    )
    db.add(zone)
    db.commit()
    db.refresh(zone)

    logger.info(f"Created service zone {zone.id} '{zone.name}' ({zone.short_form})")
    return zone


@router.put("/service-zones/{zone_id}", response_model=ServiceZoneResponse)
def update_service_zone(
    zone_id: int,
    data: ServiceZoneUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    zone = db.query(ServiceZone).filter(ServiceZone.id == zone_id).first()
    if not zone:
        raise not_found("Service zone not found")

    update_data = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}

    if "name" in update_data and update_data["name"] != zone.name:
        ensure_unique_name(db, update_data["name"], exclude_id=zone.id)
    if "short_form" in update_data:
        update_data["short_form"] = update_data["short_form"].upper()
        if short_form_taken(db, update_data["short_form"], exclude_id=zone.id):
            raise conflict(f"Short form '{update_data['short_form']}' is already used by another zone")

    for field, value in update_data.items():
        setattr(zone, field, value)

    db.commit()
    db.refresh(zone)
    logger.info(f"Updated service zone {zone.id}")
    return zone


@router.delete("/service-zones/{zone_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_service_zone(
    zone_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Delete a zone that has no service persons, customers, tickets or offers"""
    zone = db.query(ServiceZone).filter(ServiceZone.id == zone_id).first()
    if not zone:
        raise not_found("Service zone not found")

    counts = {
        "service persons": (
            db.query(ServicePersonZone).filter(ServicePersonZone.service_zone_id == zone_id).count()
            + db.query(User).filter(User.zone_id == zone_id).count()
        ),
        "customers": db.query(Customer).filter(Customer.service_zone_id == zone_id).count(),
        "tickets": db.query(Ticket).filter(Ticket.zone_id == zone_id).count(),
        "offers": db.query(Offer).filter(Offer.zone_id == zone_id).count(),
    }
    blocking = {name: count for name, count in counts.items() if count}
    if blocking:
        summary = ", ".join(f"{count} {name}" for name, count in blocking.items())
        raise conflict(f"Cannot delete zone with existing {summary}")

    db.delete(zone)
    db.commit()
    logger.info(f"Deleted service zone {zone_id}")
    return None
