"""
Data maintenance operations.

Each function takes a Session, commits its own work and returns what it
changed. The root-level scripts are thin command line wrappers around these.
"""
import logging
import re
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from kardexcare.enums import OfferStage, UserRole
from kardexcare.models import Offer, ServiceZone, User
from kardexcare.services.excel import read_sheet_file, validate_import_headers
from kardexcare.services.offers import delete_offers_by_ids
from kardexcare.services.references import derive_zone_short_form, zone_abbreviation
from kardexcare.utils.security import get_password_hash

logger = logging.getLogger(__name__)

MONTH_FIELDS = ("offer_month", "po_expected_month", "po_received_month")
MONTH_VALUE = re.compile(r"^(\d{4})-(\d{2})$")
DEFAULT_EXCEL_PATH = "./data/import-data.xlsx"


def create_admin(db: Session, email: str, password: str, name: str = "Admin") -> Tuple[User, bool]:
    """Create an ADMIN user, or reset the password of an existing one"""
    email = email.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    created = user is None
    if created:
        user = User(email=email, name=name, role=UserRole.ADMIN.value)
        db.add(user)
    user.hashed_password = get_password_hash(password)
    user.is_active = True
    db.commit()
    db.refresh(user)
    logger.info(f"{'Created' if created else 'Reset password for'} admin {email}")
    return user, created


def update_zone_short_forms(db: Session) -> Dict[str, Optional[str]]:
    """Derive a short form for every zone that has none.

    A derived value already held by another zone is not assigned.
    """
    taken = {
        short_form.upper()
        for (short_form,) in db.query(ServiceZone.short_form).filter(ServiceZone.short_form.isnot(None))
    }
    results = {}
    zones = db.query(ServiceZone).filter(
        (ServiceZone.short_form.is_(None)) | (ServiceZone.short_form == "")
    ).order_by(ServiceZone.id).all()

    for zone in zones:
        short_form = derive_zone_short_form(zone.name)
        if short_form is None or short_form in taken:
            logger.warning(f"Zone '{zone.name}' left without short form, '{short_form}' is taken")
            zone.short_form = None
            results[zone.name] = None
            continue
        zone.short_form = short_form
        taken.add(short_form)
        results[zone.name] = short_form

    db.commit()
    return results


def fix_offer_references(db: Session) -> int:
    """Replace the unknown-zone marker /X/ with the offer's zone abbreviation"""
    fixed = 0
    offers = db.query(Offer).filter(Offer.offer_reference_number.like("%/X/%")).order_by(Offer.id).all()
    for offer in offers:
        abbreviation = zone_abbreviation(offer.zone)
        if abbreviation == "X":
            continue
        offer.offer_reference_number = offer.offer_reference_number.replace("/X/", f"/{abbreviation}/", 1)
        fixed += 1
    db.commit()
    logger.info(f"Fixed {fixed} offer references")
    return fixed


def fix_offer_months(db: Session) -> int:
    """Rewrite the year of each month field to the registration year, keeping the month"""
    fixed = 0
    offers = db.query(Offer).filter(Offer.registration_date.isnot(None)).order_by(Offer.id).all()
    for offer in offers:
        year = offer.registration_date.year
        changed = False
        for field in MONTH_FIELDS:
            value = getattr(offer, field)
            match = MONTH_VALUE.match(value or "")
            if match and int(match.group(1)) != year:
                setattr(offer, field, f"{year:04d}-{match.group(2)}")
                changed = True
        if changed:
            fixed += 1
    db.commit()
    logger.info(f"Fixed month fields on {fixed} offers")
    return fixed


def collapse_po_received(db: Session) -> int:
    """Rewrite the deprecated PO_RECEIVED stage to WON"""
    count = db.query(Offer).filter(Offer.stage == OfferStage.PO_RECEIVED.value).update(
        {Offer.stage: OfferStage.WON.value}, synchronize_session=False
    )
    db.commit()
    logger.info(f"Moved {count} offers from PO_RECEIVED to WON")
    return count


def delete_offers_after(db: Session, min_id: int = 3) -> int:
    """Delete every offer with id greater than min_id, dependents first"""
    offer_ids = [offer_id for (offer_id,) in db.query(Offer.id).filter(Offer.id > min_id)]
    try:
        deleted = delete_offers_by_ids(db, offer_ids)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return deleted


def validate_excel_file(path: str = DEFAULT_EXCEL_PATH) -> Tuple[bool, List[str], int]:
    """Check the first sheet of an import file; returns (valid, missing columns, data rows)"""
    headers, rows = read_sheet_file(path)
    valid, missing = validate_import_headers(headers, len(rows))
    return valid, missing, len(rows)
