"""
Schema definitions for ServicePersonZone assignments
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ZoneAssignmentCreateRequest(BaseModel):
    """Schema for linking a user to a service zone"""

    user_id: int = Field(..., description="ID of the user to assign")


class ZoneAssignmentResponse(BaseModel):
    """Schema for returning assignment info"""

    id: int = Field(..., description="Unique identifier of the assignment")
    user_id: int = Field(..., description="ID of the user")
    service_zone_id: int = Field(..., description="ID of the service zone")
    assigned_at: Optional[datetime] = Field(None, description="When the link was created")

    class Config:
        from_attributes = True
