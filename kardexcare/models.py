from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from kardexcare.database import Base
from kardexcare.enums import UserRole, TicketStatus, Priority, OfferStage, CustomerStatus, ContactRole


class ServiceZone(Base):
    """Geographic/organizational grouping of customers and service staff"""
    __tablename__ = "service_zones"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    short_form = Column(String, unique=True, nullable=True)  # "S", "N", "C" ... used in offer references
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    customers = relationship("Customer", back_populates="service_zone")
    assignments = relationship("ServicePersonZone", back_populates="service_zone")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=True)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default=UserRole.EXTERNAL_USER.value)
    phone = Column(String, nullable=True)
    short_form = Column(String, nullable=True)  # user initials for offer references
    is_active = Column(Boolean, default=True)
    zone_id = Column(Integer, ForeignKey("service_zones.id"), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)  # CUSTOMER_OWNER / CUSTOMER_CONTACT
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    zone = relationship("ServiceZone", foreign_keys=[zone_id])
    customer = relationship("Customer", foreign_keys=[customer_id])
    zone_assignments = relationship("ServicePersonZone", back_populates="user")


class ServicePersonZone(Base):
    """Links a user to a zone they serve"""
    __tablename__ = "service_person_zones"
    __table_args__ = (
        UniqueConstraint("user_id", "service_zone_id", name="uq_service_person_zone"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    service_zone_id = Column(Integer, ForeignKey("service_zones.id"), nullable=False, index=True)
    assigned_at = Column(DateTime, default=func.now())

    user = relationship("User", back_populates="zone_assignments")
    service_zone = relationship("ServiceZone", back_populates="assignments")


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    company_name = Column(String, unique=True, nullable=False, index=True)
    address = Column(Text, nullable=True)
    industry = Column(String, nullable=True)
    status = Column(String, nullable=False, default=CustomerStatus.ACTIVE.value)
    service_zone_id = Column(Integer, ForeignKey("service_zones.id"), nullable=True, index=True)
    # audit columns, no FK so users may reference customers
    created_by_id = Column(Integer, nullable=True)
    updated_by_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    service_zone = relationship("ServiceZone", back_populates="customers")
    contacts = relationship("Contact", back_populates="customer", order_by="Contact.id")
    assets = relationship("Asset", back_populates="customer", order_by="Asset.id")


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    role = Column(String, nullable=False, default=ContactRole.CONTACT.value)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    customer = relationship("Customer", back_populates="contacts")


class Asset(Base):
    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    machine_id = Column(String, nullable=True)
    serial_number = Column(String, unique=True, nullable=False, index=True)
    model = Column(String, nullable=True)
    location = Column(String, nullable=True)
    status = Column(String, nullable=False, default="ACTIVE")
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    customer = relationship("Customer", back_populates="assets")


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)
    ticket_number = Column(String, unique=True, nullable=False, index=True)  # TKT-YYYYMMDD-XXXX
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String, nullable=False, default=TicketStatus.OPEN.value, index=True)
    priority = Column(String, nullable=False, default=Priority.MEDIUM.value)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    asset_id = Column(Integer, ForeignKey("assets.id"), nullable=True)
    zone_id = Column(Integer, ForeignKey("service_zones.id"), nullable=True, index=True)
    assigned_to_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    last_status_change = Column(DateTime, nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    closed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    customer = relationship("Customer")
    asset = relationship("Asset")
    zone = relationship("ServiceZone")
    assigned_to = relationship("User", foreign_keys=[assigned_to_id])
    created_by = relationship("User", foreign_keys=[created_by_id])
    status_history = relationship("TicketStatusHistory", back_populates="ticket",
                                  order_by="TicketStatusHistory.id")


class TicketStatusHistory(Base):
    """Append-only audit trail of ticket status changes"""
    __tablename__ = "ticket_status_history"

    id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(Integer, ForeignKey("tickets.id"), nullable=False, index=True)
    status = Column(String, nullable=False)
    previous_status = Column(String, nullable=True)
    changed_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    changed_at = Column(DateTime, default=func.now())
    notes = Column(Text, nullable=True)

    ticket = relationship("Ticket", back_populates="status_history")
    changed_by = relationship("User")


class TicketComment(Base):
    __tablename__ = "ticket_comments"

    id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(Integer, ForeignKey("tickets.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=func.now())

    ticket = relationship("Ticket")
    user = relationship("User")


class TicketReport(Base):
    """Uploaded service report file; the bytes live under storage/documents"""
    __tablename__ = "ticket_reports"

    id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(Integer, ForeignKey("tickets.id"), nullable=False, index=True)
    file_name = Column(String, nullable=False)  # original upload name
    file_path = Column(String, nullable=False)
    file_size = Column(Integer, nullable=True)
    file_type = Column(String, nullable=True)
    uploaded_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=func.now())

    ticket = relationship("Ticket")
    uploaded_by = relationship("User")


class Offer(Base):
    __tablename__ = "offers"

    id = Column(Integer, primary_key=True, index=True)
    offer_reference_number = Column(String, unique=True, nullable=False, index=True)  # KRIND/S/SPP/AB00001
    title = Column(String, nullable=True)
    product_type = Column(String, nullable=True)
    stage = Column(String, nullable=False, default=OfferStage.INITIAL.value, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    zone_id = Column(Integer, ForeignKey("service_zones.id"), nullable=False, index=True)
    assigned_to_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    offer_value = Column(Numeric(14, 2), nullable=True)
    po_value = Column(Numeric(14, 2), nullable=True)
    registration_date = Column(DateTime, nullable=True)
    offer_month = Column(String(7), nullable=True)  # YYYY-MM
    po_expected_month = Column(String(7), nullable=True)
    po_received_month = Column(String(7), nullable=True)
    closed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    customer = relationship("Customer")
    zone = relationship("ServiceZone")
    assigned_to = relationship("User", foreign_keys=[assigned_to_id])
    created_by = relationship("User", foreign_keys=[created_by_id])
    offer_assets = relationship("OfferAsset", back_populates="offer", order_by="OfferAsset.id")
    stage_remarks = relationship("StageRemark", back_populates="offer", order_by="StageRemark.id")


class OfferAsset(Base):
    __tablename__ = "offer_assets"

    id = Column(Integer, primary_key=True, index=True)
    offer_id = Column(Integer, ForeignKey("offers.id"), nullable=False, index=True)
    asset_id = Column(Integer, ForeignKey("assets.id"), nullable=False)

    offer = relationship("Offer", back_populates="offer_assets")
    asset = relationship("Asset")


class StageRemark(Base):
    """Append-only remarks recorded against an offer stage"""
    __tablename__ = "stage_remarks"

    id = Column(Integer, primary_key=True, index=True)
    offer_id = Column(Integer, ForeignKey("offers.id"), nullable=False, index=True)
    stage = Column(String, nullable=False)
    remarks = Column(Text, nullable=False)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=func.now())

    offer = relationship("Offer", back_populates="stage_remarks")
    created_by = relationship("User")
