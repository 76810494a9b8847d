"""
Asset (installed machine) endpoints
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from kardexcare.api.permissions import can_manage_assets, can_view_customers
from kardexcare.database import get_db
from kardexcare.errors import conflict
from kardexcare.models import User, Asset, Customer, Ticket, OfferAsset
from kardexcare.schemas import AssetCreate, AssetUpdate, AssetResponse, AssetList
from kardexcare.services.visibility import visible_query, get_visible_or_error

logger = logging.getLogger(__name__)

router = APIRouter()


def ensure_unique_serial(db: Session, serial_number: str, exclude_id: Optional[int] = None):
    query = db.query(Asset.id).filter(Asset.serial_number == serial_number)
    if exclude_id is not None:
        query = query.filter(Asset.id != exclude_id)
    if query.first():
        raise conflict(f"Asset with serial number '{serial_number}' already exists")


@router.get("/assets", response_model=AssetList)
def list_assets(
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view_customers),
    customer_id: Optional[int] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100)
):
    query = visible_query(db, current_user, Asset)

    if customer_id:
        query = query.filter(Asset.customer_id == customer_id)
    if status:
        query = query.filter(Asset.status == status)
    if search:
        search_term = f"%{search}%"
        query = query.filter(
            (Asset.serial_number.ilike(search_term)) |
            (Asset.machine_id.ilike(search_term)) |
            (Asset.model.ilike(search_term)) |
            (Asset.location.ilike(search_term))
        )

    total = query.count()
    assets = query.order_by(Asset.id).offset((page - 1) * size).limit(size).all()

    return AssetList(items=assets, total=total, page=page, size=size)


@router.get("/assets/{asset_id}", response_model=AssetResponse)
def get_asset(
    asset_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view_customers)
):
    return get_visible_or_error(db, current_user, Asset, asset_id, "Asset")


@router.post("/assets", response_model=AssetResponse, status_code=status.HTTP_201_CREATED)
def create_asset(
    data: AssetCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_assets)
):
    get_visible_or_error(db, current_user, Customer, data.customer_id, "Customer")
    ensure_unique_serial(db, data.serial_number)

    asset = Asset(**data.model_dump())
    db.add(asset)
    db.commit()
    db.refresh(asset)

    logger.info(f"Created asset {asset.id} ({asset.serial_number}) for customer {asset.customer_id}")
    return asset


@router.put("/assets/{asset_id}", response_model=AssetResponse)
def update_asset(
    asset_id: int,
    data: AssetUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_assets)
):
    asset = get_visible_or_error(db, current_user, Asset, asset_id, "Asset")
    update_data = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}

    if "customer_id" in update_data and update_data["customer_id"] != asset.customer_id:
        get_visible_or_error(db, current_user, Customer, update_data["customer_id"], "Customer")
    if "serial_number" in update_data and update_data["serial_number"] != asset.serial_number:
        ensure_unique_serial(db, update_data["serial_number"], exclude_id=asset.id)

    for field, value in update_data.items():
        setattr(asset, field, value)

    db.commit()
    db.refresh(asset)
    logger.info(f"Updated asset {asset.id}")
    return asset


@router.delete("/assets/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_asset(
    asset_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_assets)
):
    asset = get_visible_or_error(db, current_user, Asset, asset_id, "Asset")

    ticket_count = db.query(Ticket).filter(Ticket.asset_id == asset_id).count()
    offer_count = db.query(OfferAsset).filter(OfferAsset.asset_id == asset_id).count()
    if ticket_count or offer_count:
        raise conflict(
            f"Cannot delete asset referenced by {ticket_count} tickets and {offer_count} offers"
        )

    db.delete(asset)
    db.commit()
    logger.info(f"Deleted asset {asset_id}")
    return None
