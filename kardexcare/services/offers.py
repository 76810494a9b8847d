import logging
from typing import List

from sqlalchemy.orm import Session

from kardexcare.models import Offer, OfferAsset, StageRemark

logger = logging.getLogger(__name__)


def delete_offers_by_ids(db: Session, offer_ids: List[int]) -> int:
    """Delete offers and their dependents: OfferAsset, then StageRemark, then Offer.

    Foreign keys carry no cascade, so any other order fails. Does not commit.
    """
    if not offer_ids:
        return 0
    assets = db.query(OfferAsset).filter(OfferAsset.offer_id.in_(offer_ids)).delete(synchronize_session=False)
    remarks = db.query(StageRemark).filter(StageRemark.offer_id.in_(offer_ids)).delete(synchronize_session=False)
    offers = db.query(Offer).filter(Offer.id.in_(offer_ids)).delete(synchronize_session=False)
    logger.info(f"Deleted {offers} offers with {assets} offer assets and {remarks} stage remarks")
    return offers
