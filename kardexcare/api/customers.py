"""
Customer and contact endpoints
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kardexcare.api.permissions import can_manage_customers, can_manage_contacts, can_view_customers
from kardexcare.database import get_db
from kardexcare.enums import ContactRole
from kardexcare.errors import conflict, not_found
from kardexcare.models import User, Customer, Contact, Asset, Ticket, Offer, ServiceZone
from kardexcare.schemas import (
    CustomerCreate, CustomerUpdate, CustomerResponse, CustomerList,
    ContactCreate, ContactUpdate, ContactResponse, AssetResponse
)
from kardexcare.services.visibility import visible_query, get_visible_or_error

logger = logging.getLogger(__name__)

router = APIRouter()

INCLUDABLE = {"contacts", "assets"}


def serialize_customer(customer: Customer, includes: set) -> CustomerResponse:
    data = {
        "id": customer.id,
        "company_name": customer.company_name,
        "address": customer.address,
        "industry": customer.industry,
        "status": customer.status,
        "service_zone_id": customer.service_zone_id,
        "created_at": customer.created_at,
        "updated_at": customer.updated_at,
    }
    if "contacts" in includes:
        data["contacts"] = [ContactResponse.model_validate(c) for c in customer.contacts]
    if "assets" in includes:
        data["assets"] = [AssetResponse.model_validate(a) for a in customer.assets]
    return CustomerResponse(**data)


def parse_include(include: Optional[str]) -> set:
    if not include:
        return set()
    return {part.strip() for part in include.split(",") if part.strip() in INCLUDABLE}


def ensure_zone_exists(db: Session, zone_id: Optional[int]):
    if zone_id is not None and not db.query(ServiceZone.id).filter(ServiceZone.id == zone_id).first():
        raise not_found("Service zone not found")


def ensure_unique_name(db: Session, company_name: str, exclude_id: Optional[int] = None):
    query = db.query(Customer.id).filter(func.lower(Customer.company_name) == company_name.lower())
    if exclude_id is not None:
        query = query.filter(Customer.id != exclude_id)
    if query.first():
        raise conflict(f"Customer '{company_name}' already exists")


def upsert_account_owner(db: Session, customer: Customer, name: Optional[str], email: Optional[str],
                         phone: Optional[str]):
    owner = db.query(Contact).filter(
        Contact.customer_id == customer.id,
        Contact.role == ContactRole.ACCOUNT_OWNER.value
    ).first()
    if owner is None:
        if not name:
            return None
        owner = Contact(customer_id=customer.id, role=ContactRole.ACCOUNT_OWNER.value, name=name)
        db.add(owner)
    elif name:
        owner.name = name
    if email is not None:
        owner.email = email
    if phone is not None:
        owner.phone = phone
    return owner


# ============== Customers ==============

@router.get("/customers", response_model=CustomerList)
def list_customers(
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view_customers),
    search: Optional[str] = None,
    status: Optional[str] = None,
    service_zone_id: Optional[int] = None,
    include: Optional[str] = Query(None, description="Comma separated: contacts,assets"),
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100)
):
    """List customers visible to the current user"""
    query = visible_query(db, current_user, Customer)

    if status:
        query = query.filter(Customer.status == status)
    if service_zone_id:
        query = query.filter(Customer.service_zone_id == service_zone_id)
    if search:
        search_term = f"%{search}%"
        contact_match = db.query(Contact.customer_id).filter(
            (Contact.name.ilike(search_term)) | (Contact.email.ilike(search_term))
        )
        query = query.filter(
            (Customer.company_name.ilike(search_term)) |
            (Customer.industry.ilike(search_term)) |
            (Customer.id.in_(contact_match))
        )

    total = query.count()
    customers = query.order_by(Customer.id).offset((page - 1) * size).limit(size).all()

    includes = parse_include(include)
    return CustomerList(
        items=[serialize_customer(c, includes) for c in customers],
        total=total,
        page=page,
        size=size
    )


@router.get("/customers/{customer_id}", response_model=CustomerResponse)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view_customers)
):
    customer = get_visible_or_error(db, current_user, Customer, customer_id, "Customer")
    return serialize_customer(customer, INCLUDABLE)


@router.post("/customers", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_customers)
):
    """Create a customer, and its account owner contact when contact details are given"""
    ensure_unique_name(db, data.company_name)
    ensure_zone_exists(db, data.service_zone_id)

    try:
        customer = Customer(
            company_name=data.company_name,
            address=data.address,
            industry=data.industry,
            status=data.status.value,
            service_zone_id=data.service_zone_id,
            created_by_id=current_user.id,
            updated_by_id=current_user.id,
        )
        db.add(customer)
        db.flush()
        upsert_account_owner(db, customer, data.contact_name, data.contact_email, data.contact_phone)
        db.commit()
        db.refresh(customer)
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(f"Created customer {customer.id} '{customer.company_name}'")
    return serialize_customer(customer, {"contacts"})


@router.put("/customers/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    data: CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_customers)
):
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise not_found("Customer not found")

    update_data = data.model_dump(exclude_unset=True)
    contact_fields = {k: update_data.pop(k) for k in ("contact_name", "contact_email", "contact_phone")
                      if k in update_data}

    if update_data.get("company_name") and update_data["company_name"] != customer.company_name:
        ensure_unique_name(db, update_data["company_name"], exclude_id=customer.id)
    if "service_zone_id" in update_data:
        ensure_zone_exists(db, update_data["service_zone_id"])
    if update_data.get("status") is not None:
        update_data["status"] = update_data["status"].value

    try:
        for field, value in update_data.items():
            setattr(customer, field, value)
        customer.updated_by_id = current_user.id
        if contact_fields:
            upsert_account_owner(
                db, customer,
                contact_fields.get("contact_name"),
                contact_fields.get("contact_email"),
                contact_fields.get("contact_phone"),
            )
        db.commit()
        db.refresh(customer)
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(f"Updated customer {customer.id}")
    return serialize_customer(customer, {"contacts"})


@router.delete("/customers/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_customers)
):
    """Delete a customer that has no assets, contacts, tickets or offers"""
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise not_found("Customer not found")

    counts = {
        "assets": db.query(Asset).filter(Asset.customer_id == customer_id).count(),
        "contacts": db.query(Contact).filter(Contact.customer_id == customer_id).count(),
        "tickets": db.query(Ticket).filter(Ticket.customer_id == customer_id).count(),
        "offers": db.query(Offer).filter(Offer.customer_id == customer_id).count(),
    }
    blocking = {name: count for name, count in counts.items() if count}
    if blocking:
        summary = ", ".join(f"{count} {name}" for name, count in blocking.items())
        raise conflict(f"Cannot delete customer with existing {summary}")

    db.delete(customer)
    db.commit()
    logger.info(f"Deleted customer {customer_id}")
    return None


# ============== Contacts ==============

@router.get("/customers/{customer_id}/contacts", response_model=List[ContactResponse])
def list_contacts(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view_customers)
):
    get_visible_or_error(db, current_user, Customer, customer_id, "Customer")
    return visible_query(db, current_user, Contact).filter(
        Contact.customer_id == customer_id
    ).order_by(Contact.id).all()


@router.post("/customers/{customer_id}/contacts", response_model=ContactResponse,
             status_code=status.HTTP_201_CREATED)
def create_contact(
    customer_id: int,
    data: ContactCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_contacts)
):
    if not db.query(Customer.id).filter(Customer.id == customer_id).first():
        raise not_found("Customer not found")

    contact = Contact(
        customer_id=customer_id,
        name=data.name,
        email=data.email,
        phone=data.phone,
        role=data.role.value,
    )
    db.add(contact)
    db.commit()
    db.refresh(contact)
    logger.info(f"Created contact {contact.id} for customer {customer_id}")
    return contact


def _get_contact(db: Session, customer_id: int, contact_id: int) -> Contact:
    contact = db.query(Contact).filter(
        Contact.id == contact_id,
        Contact.customer_id == customer_id
    ).first()
    if not contact:
        raise not_found("Contact not found")
    return contact


@router.put("/customers/{customer_id}/contacts/{contact_id}", response_model=ContactResponse)
def update_contact(
    customer_id: int,
    contact_id: int,
    data: ContactUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_contacts)
):
    contact = _get_contact(db, customer_id, contact_id)

    for field, value in data.model_dump(exclude_unset=True).items():
        if field == "role":
            value = value.value
        setattr(contact, field, value)

    db.commit()
    db.refresh(contact)
    logger.info(f"Updated contact {contact.id}")
    return contact


@router.delete("/customers/{customer_id}/contacts/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contact(
    customer_id: int,
    contact_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_contacts)
):
    contact = _get_contact(db, customer_id, contact_id)
    db.delete(contact)
    db.commit()
    logger.info(f"Deleted contact {contact_id} from customer {customer_id}")
    return None
