"""
Service report files attached to tickets.

Files are written under the storage documents directory and only served
through the download endpoint, which applies the same ticket visibility
rules as every other ticket read.
"""
import logging
import os
from typing import List

from fastapi import APIRouter, Depends, UploadFile, File, status
from fastapi.responses import FileResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kardexcare.api.auth import get_settings
from kardexcare.api.permissions import ADMIN, can_handle_ticket_reports
from kardexcare.config import Settings
from kardexcare.database import get_db
from kardexcare.errors import forbidden, not_found, validation_error
from kardexcare.models import User, Ticket, TicketReport
from kardexcare.schemas import TicketReportResponse
from kardexcare.services.storage import save_ticket_report, remove_stored_file
from kardexcare.services.visibility import get_visible_or_error

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_REPORT_FILES = 10


def serialize_report(report: TicketReport) -> TicketReportResponse:
    return TicketReportResponse(
        id=report.id,
        ticket_id=report.ticket_id,
        file_name=report.file_name,
        file_size=report.file_size,
        file_type=report.file_type,
        uploaded_by_id=report.uploaded_by_id,
        created_at=report.created_at,
        url=f"/api/tickets/{report.ticket_id}/reports/{report.id}/download",
    )


def get_ticket_report(db: Session, ticket_id: int, report_id: int) -> TicketReport:
    report = db.query(TicketReport).filter(
        TicketReport.id == report_id,
        TicketReport.ticket_id == ticket_id
    ).first()
    if not report:
        raise not_found("Report not found")
    return report


@router.post("/tickets/{ticket_id}/reports", response_model=List[TicketReportResponse],
             status_code=status.HTTP_201_CREATED)
async def upload_ticket_reports(
    ticket_id: int,
    files: List[UploadFile] = File(...),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: User = Depends(can_handle_ticket_reports)
):
    ticket = get_visible_or_error(db, current_user, Ticket, ticket_id, "Ticket")

    if not files:
        raise validation_error("No files uploaded")
    if len(files) > MAX_REPORT_FILES:
        raise validation_error(f"At most {MAX_REPORT_FILES} files can be uploaded at once")

    saved_paths = []
    reports = []
    try:
        for upload in files:
            content = await upload.read()
            file_path = save_ticket_report(settings, ticket.id, upload.filename, content)
            saved_paths.append(file_path)
            report = TicketReport(
                ticket_id=ticket.id,
                file_name=upload.filename or os.path.basename(file_path),
                file_path=file_path,
                file_size=len(content),
                file_type=upload.content_type,
                uploaded_by_id=current_user.id,
            )
            db.add(report)
            reports.append(report)
        db.commit()
    except (SQLAlchemyError, OSError):
        db.rollback()
        for file_path in saved_paths:
            remove_stored_file(file_path)
        raise

    for report in reports:
        db.refresh(report)

    logger.info(f"User {current_user.id} uploaded {len(reports)} reports to ticket {ticket.ticket_number}")
    return [serialize_report(r) for r in reports]


@router.get("/tickets/{ticket_id}/reports", response_model=List[TicketReportResponse])
def list_ticket_reports(
    ticket_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_handle_ticket_reports)
):
    get_visible_or_error(db, current_user, Ticket, ticket_id, "Ticket")
    reports = db.query(TicketReport).filter(
        TicketReport.ticket_id == ticket_id
    ).order_by(TicketReport.created_at.desc(), TicketReport.id.desc()).all()
    return [serialize_report(r) for r in reports]


@router.get("/tickets/{ticket_id}/reports/{report_id}/download")
def download_ticket_report(
    ticket_id: int,
    report_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_handle_ticket_reports)
):
    get_visible_or_error(db, current_user, Ticket, ticket_id, "Ticket")
    report = get_ticket_report(db, ticket_id, report_id)

    if not os.path.exists(report.file_path):
        logger.error(f"Report {report.id} missing on disk at {report.file_path}")
        raise not_found("Report file not found on server")

    return FileResponse(
        report.file_path,
        media_type=report.file_type or "application/octet-stream",
        filename=report.file_name
    )


@router.delete("/tickets/{ticket_id}/reports/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ticket_report(
    ticket_id: int,
    report_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_handle_ticket_reports)
):
    """Only the uploader or an ADMIN may delete a report"""
    get_visible_or_error(db, current_user, Ticket, ticket_id, "Ticket")
    report = get_ticket_report(db, ticket_id, report_id)

    if report.uploaded_by_id != current_user.id and current_user.role != ADMIN:
        raise forbidden("Only the uploader or an admin can delete this report")

    file_path = report.file_path
    db.delete(report)
    db.commit()
    remove_stored_file(file_path)

    logger.info(f"Deleted report {report_id} from ticket {ticket_id}")
    return None
