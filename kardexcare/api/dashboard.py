"""
Dashboard and report endpoints - counts scoped to what the caller may see
"""
from decimal import Decimal

from fastapi import APIRouter, Depends
from sqlalchemy import func, case
from sqlalchemy.orm import Session

from kardexcare.api.auth import get_current_user
from kardexcare.api.permissions import can_view_reports, OFFER_VIEWERS
from kardexcare.database import get_db
from kardexcare.enums import TERMINAL_TICKET_STATUSES, OfferStage
from kardexcare.models import User, Ticket, Offer, Customer, ServiceZone
from kardexcare.services.visibility import visible_filter

router = APIRouter(tags=["Dashboard"])


def decimal_to_float(val):
    """Convert Decimal to float for JSON serialization"""
    if val is None:
        return 0.0
    if isinstance(val, Decimal):
        return float(val)
    return val


@router.get("/dashboard/summary")
def get_dashboard_summary(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    ticket_scope = visible_filter(user, Ticket)

    by_status = dict(
        db.query(Ticket.status, func.count(Ticket.id))
        .filter(ticket_scope)
        .group_by(Ticket.status)
        .all()
    )
    by_priority = dict(
        db.query(Ticket.priority, func.count(Ticket.id))
        .filter(ticket_scope)
        .group_by(Ticket.priority)
        .all()
    )
    total_tickets = sum(by_status.values())
    closed_tickets = sum(count for status, count in by_status.items() if status in TERMINAL_TICKET_STATUSES)

    offers = {}
    if user.role in OFFER_VIEWERS:
        rows = db.query(
            Offer.stage,
            func.count(Offer.id),
            func.coalesce(func.sum(Offer.offer_value), 0),
            func.coalesce(func.sum(Offer.po_value), 0)
        ).filter(visible_filter(user, Offer)).group_by(Offer.stage).all()
        offers = {
            stage: {
                "count": count,
                "offer_value": decimal_to_float(offer_value),
                "po_value": decimal_to_float(po_value),
            }
            for stage, count, offer_value, po_value in rows
        }

    customer_count = db.query(func.count(Customer.id)).filter(visible_filter(user, Customer)).scalar()

    return {
        "tickets": {
            "total": total_tickets,
            "open": total_tickets - closed_tickets,
            "closed": closed_tickets,
            "by_status": by_status,
            "by_priority": by_priority,
        },
        "offers": offers,
        "customers": customer_count or 0,
    }


@router.get("/reports/zones")
def get_zone_report(
    user: User = Depends(can_view_reports),
    db: Session = Depends(get_db)
):
    """Per-zone customer, ticket and offer totals"""
    customer_counts = dict(
        db.query(Customer.service_zone_id, func.count(Customer.id)).group_by(Customer.service_zone_id).all()
    )
    ticket_rows = db.query(
        Ticket.zone_id,
        func.count(Ticket.id),
        func.sum(case((Ticket.status.in_(TERMINAL_TICKET_STATUSES), 0), else_=1))
    ).group_by(Ticket.zone_id).all()
    ticket_counts = {zone_id: (total, open_count or 0) for zone_id, total, open_count in ticket_rows}
    offer_rows = db.query(
        Offer.zone_id,
        func.count(Offer.id),
        func.coalesce(func.sum(case((Offer.stage == OfferStage.WON.value, Offer.offer_value), else_=0)), 0)
    ).group_by(Offer.zone_id).all()
    offer_counts = {zone_id: (total, won_value) for zone_id, total, won_value in offer_rows}

    report = []
    for zone in db.query(ServiceZone).order_by(ServiceZone.id).all():
        tickets_total, tickets_open = ticket_counts.get(zone.id, (0, 0))
        offers_total, won_value = offer_counts.get(zone.id, (0, 0))
        report.append({
            "zone_id": zone.id,
            "name": zone.name,
            "short_form": zone.short_form,
            "customers": customer_counts.get(zone.id, 0),
            "tickets": tickets_total,
            "open_tickets": tickets_open,
            "offers": offers_total,
            "won_offer_value": decimal_to_float(won_value),
        })
    return report
