"""
Closed value sets stored verbatim in string columns.
"""
from enum import Enum


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    ZONE_MANAGER = "ZONE_MANAGER"
    ZONE_USER = "ZONE_USER"
    SERVICE_PERSON = "SERVICE_PERSON"
    EXTERNAL_USER = "EXTERNAL_USER"
    EXPERT_HELPDESK = "EXPERT_HELPDESK"
    CUSTOMER_OWNER = "CUSTOMER_OWNER"
    CUSTOMER_CONTACT = "CUSTOMER_CONTACT"


ZONE_ROLES = (UserRole.ZONE_USER.value, UserRole.ZONE_MANAGER.value)
CUSTOMER_ROLES = (UserRole.CUSTOMER_OWNER.value, UserRole.CUSTOMER_CONTACT.value)


class TicketStatus(str, Enum):
    OPEN = "OPEN"
    ASSIGNED = "ASSIGNED"
    WAITING_CUSTOMER = "WAITING_CUSTOMER"
    ONSITE_VISIT = "ONSITE_VISIT"
    ONSITE_VISIT_PLANNED = "ONSITE_VISIT_PLANNED"
    ONSITE_VISIT_STARTED = "ONSITE_VISIT_STARTED"
    ONSITE_VISIT_REACHED = "ONSITE_VISIT_REACHED"
    ONSITE_VISIT_IN_PROGRESS = "ONSITE_VISIT_IN_PROGRESS"
    ONSITE_VISIT_RESOLVED = "ONSITE_VISIT_RESOLVED"
    ONSITE_VISIT_PENDING = "ONSITE_VISIT_PENDING"
    ONSITE_VISIT_COMPLETED = "ONSITE_VISIT_COMPLETED"
    PO_NEEDED = "PO_NEEDED"
    PO_REACHED = "PO_REACHED"
    PO_RECEIVED = "PO_RECEIVED"
    SPARE_PARTS_NEEDED = "SPARE_PARTS_NEEDED"
    SPARE_PARTS_BOOKED = "SPARE_PARTS_BOOKED"
    SPARE_PARTS_DELIVERED = "SPARE_PARTS_DELIVERED"
    CLOSED_PENDING = "CLOSED_PENDING"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"
    REOPENED = "REOPENED"
    IN_PROGRESS = "IN_PROGRESS"
    ON_HOLD = "ON_HOLD"
    ESCALATED = "ESCALATED"
    RESOLVED = "RESOLVED"
    PENDING = "PENDING"


TERMINAL_TICKET_STATUSES = (TicketStatus.CLOSED.value, TicketStatus.CANCELLED.value)


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class OfferStage(str, Enum):
    INITIAL = "INITIAL"
    PROPOSAL_SENT = "PROPOSAL_SENT"
    NEGOTIATION = "NEGOTIATION"
    FINAL_APPROVAL = "FINAL_APPROVAL"
    PO_RECEIVED = "PO_RECEIVED"  # deprecated, stored as WON
    ORDER_BOOKED = "ORDER_BOOKED"
    WON = "WON"
    LOST = "LOST"


CLOSED_OFFER_STAGES = (OfferStage.WON.value, OfferStage.LOST.value)


def normalize_offer_stage(stage: str) -> str:
    if stage == OfferStage.PO_RECEIVED.value:
        return OfferStage.WON.value
    return stage


class CustomerStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class ContactRole(str, Enum):
    ACCOUNT_OWNER = "ACCOUNT_OWNER"
    CONTACT = "CONTACT"
