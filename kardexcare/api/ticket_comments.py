import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from kardexcare.api.permissions import can_comment_tickets
from kardexcare.database import get_db
from kardexcare.models import User, Ticket, TicketComment
from kardexcare.schemas import TicketCommentCreate, TicketCommentResponse
from kardexcare.services.visibility import get_visible_or_error

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/tickets/{ticket_id}/comments", response_model=List[TicketCommentResponse])
def list_ticket_comments(
    ticket_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_comment_tickets)
):
    """Comments on a ticket, newest first"""
    get_visible_or_error(db, current_user, Ticket, ticket_id, "Ticket")
    return db.query(TicketComment).filter(
        TicketComment.ticket_id == ticket_id
    ).order_by(TicketComment.created_at.desc(), TicketComment.id.desc()).all()


@router.post("/tickets/{ticket_id}/comments", response_model=TicketCommentResponse,
             status_code=status.HTTP_201_CREATED)
def add_ticket_comment(
    ticket_id: int,
    data: TicketCommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_comment_tickets)
):
    ticket = get_visible_or_error(db, current_user, Ticket, ticket_id, "Ticket")

    comment = TicketComment(ticket_id=ticket.id, user_id=current_user.id, content=data.content)
    db.add(comment)
    db.commit()
    db.refresh(comment)

    logger.info(f"User {current_user.id} commented on ticket {ticket.ticket_number}")
    return comment
