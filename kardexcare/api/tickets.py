"""
Service ticket endpoints

Any authorized caller may move a ticket to any status. Every change is
recorded in the ticket's status history.
"""
import logging
from datetime import datetime
from typing import Optional, List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kardexcare.api.auth import get_current_user
from kardexcare.api.permissions import can_manage_tickets, can_create_tickets, require_admin
from kardexcare.database import get_db
from kardexcare.enums import TicketStatus, UserRole
from kardexcare.errors import not_found, validation_error
from kardexcare.models import (
    User, Ticket, TicketStatusHistory, TicketComment, TicketReport, Customer, Asset, ServiceZone
)
from kardexcare.schemas import (
    TicketCreate, TicketUpdate, TicketDetail, TicketList,
    TicketStatusUpdate, TicketAssign, TicketStatusHistoryResponse
)
from kardexcare.services.references import generate_ticket_number
from kardexcare.services.storage import remove_stored_file
from kardexcare.services.visibility import visible_query, get_visible_or_error, assert_zone_access

logger = logging.getLogger(__name__)

router = APIRouter()


def log_status_change(db: Session, ticket: Ticket, old_status: Optional[str], new_status: str,
                      user: User, notes: str = None) -> TicketStatusHistory:
    entry = TicketStatusHistory(
        ticket_id=ticket.id,
        status=new_status,
        previous_status=old_status,
        changed_by_id=user.id,
        changed_at=datetime.utcnow(),
        notes=notes
    )
    db.add(entry)
    return entry


def apply_status(ticket: Ticket, new_status: str):
    now = datetime.utcnow()
    ticket.status = new_status
    ticket.last_status_change = now
    if new_status == TicketStatus.RESOLVED.value:
        ticket.resolved_at = now
    if new_status == TicketStatus.CLOSED.value:
        ticket.closed_at = now


def get_active_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id, User.is_active == True).first()  # noqa: E712
    if not user:
        raise not_found("Assignee not found")
    return user


@router.get("/tickets", response_model=TicketList)
def list_tickets(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    status: Optional[str] = None,
    priority: Optional[str] = None,
    zone_id: Optional[int] = None,
    customer_id: Optional[int] = None,
    assigned_to_id: Optional[int] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100)
):
    """List tickets visible to the current user"""
    query = visible_query(db, current_user, Ticket)

    if status:
        query = query.filter(Ticket.status == status)
    if priority:
        query = query.filter(Ticket.priority == priority)
    if zone_id:
        query = query.filter(Ticket.zone_id == zone_id)
    if customer_id:
        query = query.filter(Ticket.customer_id == customer_id)
    if assigned_to_id:
        query = query.filter(Ticket.assigned_to_id == assigned_to_id)
    if search:
        search_term = f"%{search}%"
        query = query.filter(
            (Ticket.ticket_number.ilike(search_term)) |
            (Ticket.title.ilike(search_term)) |
            (Ticket.description.ilike(search_term))
        )

    total = query.count()
    tickets = query.order_by(Ticket.id).offset((page - 1) * size).limit(size).all()

    return TicketList(items=tickets, total=total, page=page, size=size)


@router.get("/tickets/{ticket_id}", response_model=TicketDetail)
def get_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return get_visible_or_error(db, current_user, Ticket, ticket_id, "Ticket")


@router.get("/tickets/{ticket_id}/history", response_model=List[TicketStatusHistoryResponse])
def get_ticket_history(
    ticket_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    ticket = get_visible_or_error(db, current_user, Ticket, ticket_id, "Ticket")
    return ticket.status_history


@router.post("/tickets", response_model=TicketDetail, status_code=status.HTTP_201_CREATED)
def create_ticket(
    data: TicketCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_create_tickets)
):
    customer = get_visible_or_error(db, current_user, Customer, data.customer_id, "Customer")

    if data.asset_id is not None:
        asset = db.query(Asset).filter(Asset.id == data.asset_id).first()
        if not asset:
            raise not_found("Asset not found")
        if asset.customer_id != customer.id:
            raise validation_error("Asset does not belong to this customer")

    zone_id = data.zone_id if data.zone_id is not None else customer.service_zone_id
    if zone_id is not None and not db.query(ServiceZone.id).filter(ServiceZone.id == zone_id).first():
        raise not_found("Service zone not found")
    assert_zone_access(current_user, zone_id)

    assigned_to_id = data.assigned_to_id
    if assigned_to_id is not None:
        get_active_user(db, assigned_to_id)
    elif current_user.role == UserRole.SERVICE_PERSON.value:
        # service persons only see tickets assigned to them
        assigned_to_id = current_user.id

    initial_status = TicketStatus.ASSIGNED.value if assigned_to_id else TicketStatus.OPEN.value

    try:
        ticket = Ticket(
            ticket_number=generate_ticket_number(db),
            title=data.title,
            description=data.description,
            priority=data.priority.value,
            customer_id=customer.id,
            asset_id=data.asset_id,
            zone_id=zone_id,
            assigned_to_id=assigned_to_id,
            created_by_id=current_user.id,
            status=initial_status,
            last_status_change=datetime.utcnow(),
        )
        db.add(ticket)
        db.flush()
        log_status_change(db, ticket, None, initial_status, current_user, "Ticket created")
        db.commit()
        db.refresh(ticket)
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(f"Created ticket {ticket.ticket_number} for customer {customer.id}")
    return ticket


@router.put("/tickets/{ticket_id}", response_model=TicketDetail)
def update_ticket(
    ticket_id: int,
    data: TicketUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_tickets)
):
    ticket = get_visible_or_error(db, current_user, Ticket, ticket_id, "Ticket")
    update_data = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}

    if "asset_id" in update_data:
        asset = db.query(Asset).filter(Asset.id == update_data["asset_id"]).first()
        if not asset:
            raise not_found("Asset not found")
        if asset.customer_id != ticket.customer_id:
            raise validation_error("Asset does not belong to this customer")
    if "zone_id" in update_data:
        if not db.query(ServiceZone.id).filter(ServiceZone.id == update_data["zone_id"]).first():
            raise not_found("Service zone not found")
        assert_zone_access(current_user, update_data["zone_id"])
    if "priority" in update_data:
        update_data["priority"] = update_data["priority"].value

    for field, value in update_data.items():
        setattr(ticket, field, value)

    db.commit()
    db.refresh(ticket)
    logger.info(f"Updated ticket {ticket.ticket_number}")
    return ticket


@router.patch("/tickets/{ticket_id}/status", response_model=TicketDetail)
def update_ticket_status(
    ticket_id: int,
    data: TicketStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_tickets)
):
    """Set any status; the previous value is kept in the status history"""
    ticket = get_visible_or_error(db, current_user, Ticket, ticket_id, "Ticket")

    old_status = ticket.status
    new_status = data.status.value

    try:
        apply_status(ticket, new_status)
        log_status_change(db, ticket, old_status, new_status, current_user, data.notes)
        db.commit()
        db.refresh(ticket)
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(f"Ticket {ticket.ticket_number} status {old_status} -> {new_status} by user {current_user.id}")
    return ticket


@router.patch("/tickets/{ticket_id}/assign", response_model=TicketDetail)
def assign_ticket(
    ticket_id: int,
    data: TicketAssign,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_tickets)
):
    ticket = get_visible_or_error(db, current_user, Ticket, ticket_id, "Ticket")
    assignee = get_active_user(db, data.assigned_to_id)

    old_status = ticket.status
    ticket.assigned_to_id = assignee.id
    apply_status(ticket, TicketStatus.ASSIGNED.value)
    log_status_change(
        db, ticket, old_status, TicketStatus.ASSIGNED.value, current_user,
        data.notes or f"Assigned to {assignee.name or assignee.email}"
    )
    db.commit()
    db.refresh(ticket)

    logger.info(f"Ticket {ticket.ticket_number} assigned to user {assignee.id}")
    return ticket


@router.delete("/tickets/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    ticket = db.query(Ticket).filter(Ticket.id == ticket_id).first()
    if not ticket:
        raise not_found("Ticket not found")

    report_paths = [path for (path,) in db.query(TicketReport.file_path).filter(TicketReport.ticket_id == ticket_id)]

    try:
        for model in (TicketStatusHistory, TicketComment, TicketReport):
            db.query(model).filter(model.ticket_id == ticket_id).delete(synchronize_session=False)
        db.query(Ticket).filter(Ticket.id == ticket_id).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    for path in report_paths:
        remove_stored_file(path)

    logger.info(f"Deleted ticket {ticket_id}")
    return None
