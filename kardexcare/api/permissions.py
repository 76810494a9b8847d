"""
Role guards used as route dependencies.

Each guard is a closed allow-list of roles. Record-level zone and customer
scoping is applied separately by ``kardexcare.services.visibility``.
"""
import logging

from fastapi import Depends, Request

from kardexcare.api.auth import get_current_user
from kardexcare.enums import UserRole
from kardexcare.errors import forbidden, validation_error
from kardexcare.models import User

logger = logging.getLogger(__name__)

ADMIN = UserRole.ADMIN.value
ZONE_MANAGER = UserRole.ZONE_MANAGER.value
ZONE_USER = UserRole.ZONE_USER.value
SERVICE_PERSON = UserRole.SERVICE_PERSON.value
EXTERNAL_USER = UserRole.EXTERNAL_USER.value
EXPERT_HELPDESK = UserRole.EXPERT_HELPDESK.value
CUSTOMER_OWNER = UserRole.CUSTOMER_OWNER.value
CUSTOMER_CONTACT = UserRole.CUSTOMER_CONTACT.value

CUSTOMER_MANAGERS = [ADMIN]
CUSTOMER_VIEWERS = [
    ADMIN, EXPERT_HELPDESK, SERVICE_PERSON, EXTERNAL_USER,
    ZONE_USER, ZONE_MANAGER, CUSTOMER_OWNER, CUSTOMER_CONTACT,
]
ASSET_MANAGERS = [ADMIN, ZONE_MANAGER, ZONE_USER]
TICKET_MANAGERS = [ADMIN, ZONE_MANAGER, ZONE_USER, SERVICE_PERSON]
TICKET_CREATORS = TICKET_MANAGERS + [EXPERT_HELPDESK, EXTERNAL_USER, CUSTOMER_OWNER, CUSTOMER_CONTACT]
OFFER_VIEWERS = [ADMIN, EXPERT_HELPDESK, ZONE_MANAGER, ZONE_USER]
OFFER_MANAGERS = [ADMIN, ZONE_MANAGER, ZONE_USER]
REPORT_VIEWERS = [ADMIN, EXPERT_HELPDESK]
TICKET_COMMENTERS = TICKET_MANAGERS + [EXPERT_HELPDESK, EXTERNAL_USER]
TICKET_REPORT_HANDLERS = TICKET_MANAGERS + [EXPERT_HELPDESK]


def require_roles(*roles: str):
    allowed = set(roles)

    def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            logger.warning(f"User {user.id} with role {user.role} denied, requires one of {sorted(allowed)}")
            raise forbidden("Insufficient permissions")
        return user

    return checker


require_admin = require_roles(ADMIN)
can_manage_customers = require_roles(*CUSTOMER_MANAGERS)
can_view_customers = require_roles(*CUSTOMER_VIEWERS)
can_manage_assets = require_roles(*ASSET_MANAGERS)
can_manage_tickets = require_roles(*TICKET_MANAGERS)
can_create_tickets = require_roles(*TICKET_CREATORS)
can_view_offers = require_roles(*OFFER_VIEWERS)
can_manage_offers = require_roles(*OFFER_MANAGERS)
can_view_reports = require_roles(*REPORT_VIEWERS)
can_comment_tickets = require_roles(*TICKET_COMMENTERS)
can_handle_ticket_reports = require_roles(*TICKET_REPORT_HANDLERS)


def can_manage_contacts(request: Request, user: User = Depends(get_current_user)) -> User:
    """ADMIN for any customer; CUSTOMER_OWNER only for their own customer"""
    raw_id = request.path_params.get("customer_id")
    try:
        customer_id = int(raw_id)
    except (TypeError, ValueError):
        raise validation_error("Invalid customer ID")

    if user.role == ADMIN:
        return user
    if user.role == CUSTOMER_OWNER and user.customer_id == customer_id:
        return user

    logger.warning(f"User {user.id} with role {user.role} denied contact management on customer {customer_id}")
    raise forbidden("Insufficient permissions to manage contacts")
