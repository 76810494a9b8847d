import logging
import os
import uuid
from typing import Optional

from kardexcare.config import Settings

logger = logging.getLogger(__name__)

DOCUMENTS_DIR = "documents"


def documents_root(settings: Settings) -> str:
    return os.path.join(settings.storage_root, DOCUMENTS_DIR)


def prepare_storage(settings: Settings) -> str:
    root = documents_root(settings)
    os.makedirs(root, exist_ok=True)
    return root


def save_ticket_report(settings: Settings, ticket_id: int, filename: Optional[str], content: bytes) -> str:
    """Write an uploaded report under documents/tickets/<id>/ with a unique name"""
    directory = os.path.join(documents_root(settings), "tickets", str(ticket_id))
    os.makedirs(directory, exist_ok=True)

    file_ext = os.path.splitext(filename)[1] if filename else ""
    file_path = os.path.join(directory, f"{uuid.uuid4()}{file_ext}")
    with open(file_path, "wb") as f:
        f.write(content)
    return file_path


def remove_stored_file(file_path: str):
    if not os.path.exists(file_path):
        return
    try:
        os.remove(file_path)
    except OSError as e:
        logger.warning(f"Failed to delete stored file {file_path}: {e}")
