"""
Reference number generation for tickets, offers and zone short forms
"""
import logging
import re
from datetime import datetime
from typing import Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from kardexcare.models import Ticket, Offer, ServiceZone, User

logger = logging.getLogger(__name__)

OFFER_PREFIX = "KRIND"

ZONE_SHORT_FORMS = {
    "south": "S",
    "south zone": "S",
    "north": "N",
    "north zone": "N",
    "east": "E",
    "east zone": "E",
    "west": "W",
    "west zone": "W",
    "central": "C",
    "central zone": "C",
}

PRODUCT_TYPE_CODES = {
    "SPP": "SPP",
    "CONTRACT": "CON",
    "RELOCATION": "REL",
    "UPGRADE_KIT": "UPG",
    "SOFTWARE": "SFT",
}

SEQUENCE_PATTERN = re.compile(r"(\d{5})$")


def derive_zone_short_form(name: str) -> Optional[str]:
    """Known compass names map to their letter, anything else to its first letter"""
    if not name or not name.strip():
        return None
    key = name.strip().lower()
    if key in ZONE_SHORT_FORMS:
        return ZONE_SHORT_FORMS[key]
    return key[0].upper()


def zone_abbreviation(zone: Optional[ServiceZone]) -> str:
    if zone is None:
        return "X"
    if zone.short_form:
        return zone.short_form.upper()
    if zone.name and zone.name.strip():
        return zone.name.strip()[0].upper()
    return "X"


def product_abbreviation(product_type: Optional[str]) -> str:
    if not product_type:
        return "GEN"
    key = product_type.strip().upper()
    if key in PRODUCT_TYPE_CODES:
        return PRODUCT_TYPE_CODES[key]
    letters = re.sub(r"[^A-Z]", "", key)
    return letters[:3] or "GEN"


def user_short_form(user: Optional[User]) -> str:
    if user is None:
        return "XX"
    if user.short_form:
        return user.short_form.upper()
    words = (user.name or "").split()
    if len(words) >= 2:
        return (words[0][0] + words[1][0]).upper()
    if words and len(words[0]) >= 2:
        return words[0][:2].upper()
    return "XX"


def next_offer_sequence(db: Session) -> int:
    """Sequence is global across every KRIND reference"""
    highest = 0
    rows = db.query(Offer.offer_reference_number).filter(
        Offer.offer_reference_number.like(f"{OFFER_PREFIX}/%")
    )
    for (reference,) in rows:
        match = SEQUENCE_PATTERN.search(reference or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return highest + 1


def generate_offer_reference(db: Session, zone: Optional[ServiceZone], product_type: Optional[str],
                             user: Optional[User]) -> str:
    """KRIND/{zone}/{product}/{user initials}{sequence:05d}"""
    sequence = next_offer_sequence(db)
    return (
        f"{OFFER_PREFIX}/{zone_abbreviation(zone)}/{product_abbreviation(product_type)}/"
        f"{user_short_form(user)}{sequence:05d}"
    )


def generate_ticket_number(db: Session) -> str:
    """Generate a unique ticket number in format TKT-YYYYMMDD-XXXX"""
    today = datetime.now().strftime("%Y%m%d")
    prefix = f"TKT-{today}-"

    latest = db.query(Ticket).filter(
        Ticket.ticket_number.like(f"{prefix}%")
    ).order_by(desc(Ticket.ticket_number)).first()

    if latest:
        try:
            new_num = int(latest.ticket_number.split("-")[-1]) + 1
        except ValueError:
            new_num = 1
    else:
        new_num = 1

    return f"{prefix}{new_num:04d}"
