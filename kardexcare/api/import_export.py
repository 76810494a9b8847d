"""
Import/Export API Endpoints

Customer/asset import from the field-service master sheet, a template
download and an offer export.
"""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, UploadFile, File, Form
from fastapi.responses import StreamingResponse
from sqlalchemy import func
from sqlalchemy.orm import Session

from kardexcare.api.permissions import require_admin, can_view_offers
from kardexcare.database import get_db
from kardexcare.enums import ContactRole, CustomerStatus
from kardexcare.errors import validation_error
from kardexcare.models import User, Customer, Contact, Asset, Offer, ServiceZone
from kardexcare.services.excel import (
    REQUIRED_COLUMNS, OPTIONAL_COLUMNS, XLSX_MEDIA_TYPE,
    validate_import_headers, get_cell, read_sheet, create_styled_workbook, workbook_bytes
)
from kardexcare.services.visibility import visible_query

router = APIRouter()
logger = logging.getLogger(__name__)

OFFER_EXPORT_COLUMNS = [
    "Offer Reference",
    "Title",
    "Customer",
    "Zone",
    "Product Type",
    "Stage",
    "Offer Value",
    "PO Value",
    "Offer Month",
    "PO Expected Month",
    "PO Received Month",
    "Registration Date",
]


def resolve_zone(db: Session, value) -> ServiceZone:
    if value is None:
        return None
    text = str(value).strip()
    return db.query(ServiceZone).filter(
        (func.lower(ServiceZone.name) == text.lower()) |
        (func.lower(ServiceZone.name) == f"{text.lower()} zone") |
        (func.upper(ServiceZone.short_form) == text.upper())
    ).first()


def import_customer_rows(db: Session, current_user: User, rows: list, update_existing: bool) -> dict:
    """Upsert customers by name and assets by serial number, one row at a time.

    ``rows`` holds (sheet row number, record) pairs as returned by ``read_sheet``.
    """
    created = 0
    updated = 0
    skipped = 0
    assets_created = 0
    errors = []

    for row_idx, row in rows:
        try:
            company_name = get_cell(row, "Name of the Customer")
            serial_number = get_cell(row, "Serial Number")
            if not company_name:
                skipped += 1
                errors.append(f"Row {row_idx}: missing customer name")
                continue

            zone_value = get_cell(row, "Zone")
            zone = resolve_zone(db, zone_value)
            if zone_value and zone is None:
                skipped += 1
                errors.append(f"Row {row_idx}: unknown zone '{zone_value}'")
                continue

            customer = db.query(Customer).filter(
                func.lower(Customer.company_name) == str(company_name).lower()
            ).first()

            if customer is None:
                customer = Customer(
                    company_name=str(company_name),
                    address=get_cell(row, "Place"),
                    industry=get_cell(row, "Department"),
                    status=CustomerStatus.ACTIVE.value,
                    service_zone_id=zone.id if zone else None,
                    created_by_id=current_user.id,
                    updated_by_id=current_user.id,
                )
                db.add(customer)
                db.flush()
                created += 1

                contact_name = get_cell(row, "Contact Person")
                if contact_name:
                    db.add(Contact(
                        customer_id=customer.id,
                        name=str(contact_name),
                        phone=str(get_cell(row, "Contact Number") or "") or None,
                        role=ContactRole.ACCOUNT_OWNER.value,
                    ))
            elif update_existing:
                place = get_cell(row, "Place")
                department = get_cell(row, "Department")
                if place:
                    customer.address = str(place)
                if department:
                    customer.industry = str(department)
                if zone:
                    customer.service_zone_id = zone.id
                customer.updated_by_id = current_user.id
                updated += 1

            if serial_number:
                serial = str(serial_number)
                asset = db.query(Asset).filter(Asset.serial_number == serial).first()
                if asset is None:
                    db.add(Asset(
                        customer_id=customer.id,
                        serial_number=serial,
                        machine_id=get_cell(row, "Machine ID"),
                        model=get_cell(row, "Model"),
                        location=get_cell(row, "Place"),
                    ))
                    assets_created += 1
                elif asset.customer_id != customer.id:
                    errors.append(f"Row {row_idx}: serial number {serial} belongs to another customer")

            db.commit()
        except Exception as e:
            db.rollback()
            skipped += 1
            logger.warning(f"Import row {row_idx} failed: {e}")
            errors.append(f"Row {row_idx}: {str(e)}")

    logger.info(
        f"Customer import by user {current_user.id}: {created} created, {updated} updated, "
        f"{skipped} skipped, {assets_created} assets created"
    )
    return {
        "success": True,
        "message": f"Import completed: {created} created, {updated} updated, {skipped} skipped",
        "created": created,
        "updated": updated,
        "skipped": skipped,
        "assets_created": assets_created,
        "errors": errors[:10],
    }


@router.get("/import-export/template")
def download_template(current_user: User = Depends(require_admin)):
    wb = create_styled_workbook(REQUIRED_COLUMNS + OPTIONAL_COLUMNS, "Customers")
    return StreamingResponse(
        workbook_bytes(wb),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": "attachment; filename=customer_import_template.xlsx"}
    )


@router.post("/import-export/customers")
async def import_customers(
    file: UploadFile = File(...),
    update_existing: bool = Form(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Import customers and their assets from the master Excel sheet"""
    if not file.filename or not file.filename.lower().endswith(".xlsx"):
        raise validation_error("Invalid file format. Please upload an Excel (.xlsx) file.")

    content = await file.read()
    try:
        headers, rows = read_sheet(content)
    except Exception as e:
        logger.error(f"Import error: {str(e)}")
        raise validation_error("Unable to read the Excel file")

    valid, missing = validate_import_headers(headers, len(rows))
    if not valid:
        message = f"Missing required columns: {', '.join(missing)}" if missing else "The sheet has no data rows"
        raise validation_error(message)

    return import_customer_rows(db, current_user, rows, update_existing)


@router.get("/import-export/offers")
def export_offers(
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view_offers)
):
    wb = create_styled_workbook(OFFER_EXPORT_COLUMNS, "Offers")
    ws = wb.active

    offers = visible_query(db, current_user, Offer).order_by(Offer.id).all()
    for offer in offers:
        ws.append([
            offer.offer_reference_number,
            offer.title,
            offer.customer.company_name if offer.customer else None,
            offer.zone.name if offer.zone else None,
            offer.product_type,
            offer.stage,
            float(offer.offer_value) if offer.offer_value is not None else None,
            float(offer.po_value) if offer.po_value is not None else None,
            offer.offer_month,
            offer.po_expected_month,
            offer.po_received_month,
            offer.registration_date.strftime("%Y-%m-%d") if offer.registration_date else None,
        ])

    filename = f"offers_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
    return StreamingResponse(
        workbook_bytes(wb),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )
