"""
Sales offer endpoints

Stages are not constrained to a workflow. PO_RECEIVED is accepted as an alias
and stored as WON.
"""
import logging
from datetime import datetime
from typing import Optional, List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kardexcare.api.permissions import can_view_offers, can_manage_offers, require_admin
from kardexcare.database import get_db
from kardexcare.enums import CLOSED_OFFER_STAGES, normalize_offer_stage
from kardexcare.errors import not_found, validation_error
from kardexcare.models import User, Offer, OfferAsset, StageRemark, Customer, Asset, ServiceZone
from kardexcare.schemas import (
    OfferCreate, OfferUpdate, OfferStageUpdate, OfferDetail, OfferList,
    StageRemarkResponse
)
from kardexcare.services.offers import delete_offers_by_ids
from kardexcare.services.references import generate_offer_reference
from kardexcare.services.visibility import visible_query, get_visible_or_error, assert_zone_access

logger = logging.getLogger(__name__)

router = APIRouter()


def validate_asset_ids(db: Session, customer_id: int, asset_ids: List[int]) -> List[int]:
    asset_ids = list(dict.fromkeys(asset_ids))
    if not asset_ids:
        return []
    found = {
        asset_id for (asset_id,) in db.query(Asset.id).filter(
            Asset.id.in_(asset_ids),
            Asset.customer_id == customer_id
        )
    }
    missing = [asset_id for asset_id in asset_ids if asset_id not in found]
    if missing:
        raise validation_error(f"Assets {missing} do not belong to this customer")
    return asset_ids


def set_stage(db: Session, offer: Offer, requested_stage: str, remarks: Optional[str], user: User):
    """Write the stage and record remarks against the new (or unchanged) stage"""
    new_stage = normalize_offer_stage(requested_stage) if requested_stage else offer.stage
    changed = new_stage != offer.stage

    if changed:
        offer.stage = new_stage
        offer.closed_at = datetime.utcnow() if new_stage in CLOSED_OFFER_STAGES else None

    if remarks and remarks.strip():
        db.add(StageRemark(
            offer_id=offer.id,
            stage=offer.stage,
            remarks=remarks.strip(),
            created_by_id=user.id
        ))
    return changed


def ensure_assignee(db: Session, user_id: Optional[int]):
    if user_id is not None and not db.query(User.id).filter(User.id == user_id).first():
        raise not_found("Assignee not found")


@router.get("/offers", response_model=OfferList)
def list_offers(
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view_offers),
    stage: Optional[str] = None,
    zone_id: Optional[int] = None,
    customer_id: Optional[int] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100)
):
    query = visible_query(db, current_user, Offer)

    if stage:
        query = query.filter(Offer.stage == normalize_offer_stage(stage))
    if zone_id:
        query = query.filter(Offer.zone_id == zone_id)
    if customer_id:
        query = query.filter(Offer.customer_id == customer_id)
    if search:
        search_term = f"%{search}%"
        query = query.filter(
            (Offer.offer_reference_number.ilike(search_term)) |
            (Offer.title.ilike(search_term)) |
            (Offer.product_type.ilike(search_term))
        )

    total = query.count()
    offers = query.order_by(Offer.id).offset((page - 1) * size).limit(size).all()

    return OfferList(items=offers, total=total, page=page, size=size)


@router.get("/offers/{offer_id}", response_model=OfferDetail)
def get_offer(
    offer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view_offers)
):
    return get_visible_or_error(db, current_user, Offer, offer_id, "Offer")


@router.get("/offers/{offer_id}/remarks", response_model=List[StageRemarkResponse])
def list_stage_remarks(
    offer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view_offers)
):
    offer = get_visible_or_error(db, current_user, Offer, offer_id, "Offer")
    return offer.stage_remarks


@router.post("/offers", response_model=OfferDetail, status_code=status.HTTP_201_CREATED)
def create_offer(
    data: OfferCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_offers)
):
    customer = get_visible_or_error(db, current_user, Customer, data.customer_id, "Customer")
    zone = db.query(ServiceZone).filter(ServiceZone.id == data.zone_id).first()
    if not zone:
        raise not_found("Service zone not found")
    assert_zone_access(current_user, zone.id)
    ensure_assignee(db, data.assigned_to_id)
    asset_ids = validate_asset_ids(db, customer.id, data.asset_ids)

    stage = normalize_offer_stage(data.stage.value)
    reference_owner = current_user
    if data.assigned_to_id:
        reference_owner = db.query(User).filter(User.id == data.assigned_to_id).first()

    try:
        offer = Offer(
            offer_reference_number=generate_offer_reference(db, zone, data.product_type, reference_owner),
            title=data.title,
            product_type=data.product_type,
            stage=stage,
            customer_id=customer.id,
            zone_id=zone.id,
            assigned_to_id=data.assigned_to_id,
            created_by_id=current_user.id,
            offer_value=data.offer_value,
            po_value=data.po_value,
            registration_date=data.registration_date or datetime.utcnow(),
            offer_month=data.offer_month,
            po_expected_month=data.po_expected_month,
            po_received_month=data.po_received_month,
            closed_at=datetime.utcnow() if stage in CLOSED_OFFER_STAGES else None,
        )
        db.add(offer)
        db.flush()
        for asset_id in asset_ids:
            db.add(OfferAsset(offer_id=offer.id, asset_id=asset_id))
        if data.remarks and data.remarks.strip():
            db.add(StageRemark(offer_id=offer.id, stage=stage, remarks=data.remarks.strip(),
                               created_by_id=current_user.id))
        db.commit()
        db.refresh(offer)
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(f"Created offer {offer.offer_reference_number} for customer {customer.id}")
    return offer


@router.put("/offers/{offer_id}", response_model=OfferDetail)
def update_offer(
    offer_id: int,
    data: OfferUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_offers)
):
    offer = get_visible_or_error(db, current_user, Offer, offer_id, "Offer")
    update_data = data.model_dump(exclude_unset=True)

    stage = update_data.pop("stage", None)
    remarks = update_data.pop("remarks", None)
    asset_ids = update_data.pop("asset_ids", None)

    if "assigned_to_id" in update_data:
        ensure_assignee(db, update_data["assigned_to_id"])
    if asset_ids is not None:
        asset_ids = validate_asset_ids(db, offer.customer_id, asset_ids)

    try:
        for field, value in update_data.items():
            setattr(offer, field, value)

        set_stage(db, offer, stage.value if stage else None, remarks, current_user)

        if asset_ids is not None:
            db.query(OfferAsset).filter(OfferAsset.offer_id == offer.id).delete(synchronize_session=False)
            for asset_id in asset_ids:
                db.add(OfferAsset(offer_id=offer.id, asset_id=asset_id))

        db.commit()
        db.refresh(offer)
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(f"Updated offer {offer.offer_reference_number}")
    return offer


@router.patch("/offers/{offer_id}/stage", response_model=OfferDetail)
def update_offer_stage(
    offer_id: int,
    data: OfferStageUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage_offers)
):
    offer = get_visible_or_error(db, current_user, Offer, offer_id, "Offer")
    old_stage = offer.stage

    set_stage(db, offer, data.stage.value, data.remarks, current_user)
    db.commit()
    db.refresh(offer)

    logger.info(f"Offer {offer.offer_reference_number} stage {old_stage} -> {offer.stage} by user {current_user.id}")
    return offer


@router.delete("/offers/{offer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_offer(
    offer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    if not db.query(Offer.id).filter(Offer.id == offer_id).first():
        raise not_found("Offer not found")

    try:
        delete_offers_by_ids(db, [offer_id])
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return None
