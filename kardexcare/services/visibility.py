"""
Record visibility for the authenticated user.

``visible_filter`` returns the SQLAlchemy criterion that restricts a query on
one of the scoped models to the rows the user may see. Every list, detail and
dashboard query goes through it, so zone scoping lives in one place.
"""
from sqlalchemy import false, select, true
from sqlalchemy.orm import Query, Session

from kardexcare.enums import UserRole, ZONE_ROLES, CUSTOMER_ROLES
from kardexcare.errors import forbidden, not_found
from kardexcare.models import User, Customer, Contact, Asset, Ticket, Offer


def _zone_ids(user: User) -> list:
    return list(getattr(user, "zone_ids", None) or ([user.zone_id] if user.zone_id else []))


def _in_zones(column, user: User):
    zone_ids = _zone_ids(user)
    if not zone_ids:
        return false()
    return column.in_(zone_ids)


def _own_customer(column, user: User):
    if not user.customer_id:
        return false()
    return column == user.customer_id


def _customer_filter(user: User):
    if user.role in ZONE_ROLES:
        return _in_zones(Customer.service_zone_id, user)
    if user.role in CUSTOMER_ROLES:
        return _own_customer(Customer.id, user)
    return true()


def _through_customer(customer_id_column, user: User):
    """Scope a child table by the visibility of its customer"""
    if user.role in ZONE_ROLES:
        zone_ids = _zone_ids(user)
        if not zone_ids:
            return false()
        return customer_id_column.in_(
            select(Customer.id).where(Customer.service_zone_id.in_(zone_ids))
        )
    if user.role in CUSTOMER_ROLES:
        return _own_customer(customer_id_column, user)
    return true()


def _ticket_filter(user: User):
    if user.role in ZONE_ROLES:
        return _in_zones(Ticket.zone_id, user)
    if user.role == UserRole.SERVICE_PERSON.value:
        return Ticket.assigned_to_id == user.id
    if user.role == UserRole.EXTERNAL_USER.value:
        return Ticket.created_by_id == user.id
    if user.role in CUSTOMER_ROLES:
        return _own_customer(Ticket.customer_id, user)
    return true()


def _offer_filter(user: User):
    if user.role in ZONE_ROLES:
        return _in_zones(Offer.zone_id, user)
    if user.role in CUSTOMER_ROLES:
        return _own_customer(Offer.customer_id, user)
    return true()


def visible_filter(user: User, model):
    if model is Customer:
        return _customer_filter(user)
    if model is Contact:
        return _through_customer(Contact.customer_id, user)
    if model is Asset:
        return _through_customer(Asset.customer_id, user)
    if model is Ticket:
        return _ticket_filter(user)
    if model is Offer:
        return _offer_filter(user)
    raise ValueError(f"No visibility rule for {model.__name__}")


def visible_query(db: Session, user: User, model) -> Query:
    return db.query(model).filter(visible_filter(user, model))


def get_visible_or_error(db: Session, user: User, model, record_id: int, label: str):
    """Fetch one record: 404 when it does not exist, 403 when it is out of scope"""
    record = db.query(model).filter(model.id == record_id).first()
    if record is None:
        raise not_found(f"{label} not found")
    visible = db.query(model.id).filter(model.id == record_id, visible_filter(user, model)).first()
    if visible is None:
        raise forbidden(f"Access denied to this {label.lower()}")
    return record


def assert_zone_access(user: User, zone_id):
    """Zone roles may only write records into their own zones"""
    if user.role in ZONE_ROLES and zone_id not in _zone_ids(user):
        raise forbidden("Zone is outside your assigned zones")
