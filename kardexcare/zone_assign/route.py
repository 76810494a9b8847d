from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from kardexcare.api.permissions import require_admin
from kardexcare.database import get_db
from kardexcare.models import User
from kardexcare.zone_assign.schema import ZoneAssignmentCreateRequest, ZoneAssignmentResponse
from kardexcare.zone_assign.services import (
    assign_user_to_zone,
    remove_user_from_zone,
    list_assignments_by_zone,
    list_assignments_by_user
)

router = APIRouter(tags=["Zone Assignments"])


@router.post(
    "/service-zones/{zone_id}/assignments",
    response_model=ZoneAssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Assign User to Zone",
    description="Link a user to a service zone they serve."
)
def create_assignment(
    zone_id: int,
    data: ZoneAssignmentCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return assign_user_to_zone(db, zone_id, data.user_id)


@router.delete(
    "/service-zones/{zone_id}/assignments/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove Assignment",
    description="Unlink a user from a service zone."
)
def delete_assignment(
    zone_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    remove_user_from_zone(db, zone_id, user_id)
    return None


@router.get(
    "/service-zones/{zone_id}/assignments",
    response_model=List[ZoneAssignmentResponse],
    summary="List Users for Zone"
)
def get_assignments_by_zone(
    zone_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return list_assignments_by_zone(db, zone_id)


@router.get(
    "/users/{user_id}/zones",
    response_model=List[ZoneAssignmentResponse],
    summary="List Zones for User"
)
def get_assignments_by_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return list_assignments_by_user(db, user_id)
