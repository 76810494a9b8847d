from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import datetime
from typing import Optional, List

from kardexcare.enums import TicketStatus, Priority, OfferStage, CustomerStatus, ContactRole

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


def _strip_required(v):
    if v is None:
        return v
    v = str(v).strip()
    if not v:
        raise ValueError("must not be empty")
    return v


def _strip_not_null(v):
    if v is None:
        raise ValueError("must not be null")
    return _strip_required(v)


def _reject_null(v):
    if v is None:
        raise ValueError("must not be null")
    return v


def _strip_optional(v):
    if v is None:
        return v
    v = str(v).strip()
    return v or None


# ============== Auth ==============

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class CurrentUser(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    role: str
    short_form: Optional[str] = None
    zone_id: Optional[int] = None
    customer_id: Optional[int] = None
    zone_ids: List[int] = []
    is_active: bool

    class Config:
        from_attributes = True


# ============== Service Zones ==============

class ServiceZoneCreate(BaseModel):
    name: str
    short_form: Optional[str] = Field(None, max_length=10)
    description: Optional[str] = None
    is_active: bool = True

    normalize_name = field_validator("name", mode="before")(_strip_required)
    normalize_short_form = field_validator("short_form", mode="before")(_strip_optional)


class ServiceZoneUpdate(BaseModel):
    name: Optional[str] = None
    short_form: Optional[str] = Field(None, max_length=10)
    description: Optional[str] = None
    is_active: Optional[bool] = None

    normalize_name = field_validator("name", mode="before")(_strip_required)
    normalize_short_form = field_validator("short_form", mode="before")(_strip_optional)


class ServiceZoneResponse(BaseModel):
    id: int
    name: str
    short_form: Optional[str] = None
    description: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ServiceZoneList(BaseModel):
    items: List[ServiceZoneResponse]
    total: int
    page: int
    size: int


# ============== Contacts ==============

class ContactCreate(BaseModel):
    name: str
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    role: ContactRole = ContactRole.CONTACT

    normalize_name = field_validator("name", mode="before")(_strip_required)


class ContactUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    role: Optional[ContactRole] = None

    normalize_name = field_validator("name", mode="before")(_strip_not_null)
    reject_null_role = field_validator("role", mode="before")(_reject_null)


class ContactResponse(BaseModel):
    id: int
    customer_id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: str

    class Config:
        from_attributes = True


# ============== Assets ==============

class AssetCreate(BaseModel):
    customer_id: int
    serial_number: str
    machine_id: Optional[str] = None
    model: Optional[str] = None
    location: Optional[str] = None
    status: str = "ACTIVE"

    normalize_serial = field_validator("serial_number", mode="before")(_strip_required)


class AssetUpdate(BaseModel):
    customer_id: Optional[int] = None
    serial_number: Optional[str] = None
    machine_id: Optional[str] = None
    model: Optional[str] = None
    location: Optional[str] = None
    status: Optional[str] = None

    normalize_serial = field_validator("serial_number", mode="before")(_strip_required)


class AssetResponse(BaseModel):
    id: int
    customer_id: int
    serial_number: str
    machine_id: Optional[str] = None
    model: Optional[str] = None
    location: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AssetList(BaseModel):
    items: List[AssetResponse]
    total: int
    page: int
    size: int


# ============== Customers ==============

class CustomerCreate(BaseModel):
    company_name: str
    address: Optional[str] = None
    industry: Optional[str] = None
    status: CustomerStatus = CustomerStatus.ACTIVE
    service_zone_id: Optional[int] = None

    # Optional account owner created alongside the customer
    contact_name: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None

    normalize_company_name = field_validator("company_name", mode="before")(_strip_not_null)
    reject_null_status = field_validator("status", mode="before")(_reject_null)
    normalize_contact_name = field_validator("contact_name", mode="before")(_strip_optional)


class CustomerUpdate(BaseModel):
    company_name: Optional[str] = None
    address: Optional[str] = None
    industry: Optional[str] = None
    status: Optional[CustomerStatus] = None
    service_zone_id: Optional[int] = None
    contact_name: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None

    normalize_company_name = field_validator("company_name", mode="before")(_strip_required)
    normalize_contact_name = field_validator("contact_name", mode="before")(_strip_optional)


class CustomerResponse(BaseModel):
    id: int
    company_name: str
    address: Optional[str] = None
    industry: Optional[str] = None
    status: str
    service_zone_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    contacts: Optional[List[ContactResponse]] = None
    assets: Optional[List[AssetResponse]] = None

    class Config:
        from_attributes = True


class CustomerList(BaseModel):
    items: List[CustomerResponse]
    total: int
    page: int
    size: int


# ============== Tickets ==============

class TicketCreate(BaseModel):
    title: str
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    customer_id: int
    asset_id: Optional[int] = None
    zone_id: Optional[int] = None
    assigned_to_id: Optional[int] = None

    normalize_title = field_validator("title", mode="before")(_strip_required)


class TicketUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[Priority] = None
    asset_id: Optional[int] = None
    zone_id: Optional[int] = None

    normalize_title = field_validator("title", mode="before")(_strip_required)


class TicketStatusUpdate(BaseModel):
    status: TicketStatus
    notes: Optional[str] = None


class TicketAssign(BaseModel):
    assigned_to_id: int
    notes: Optional[str] = None


class TicketStatusHistoryResponse(BaseModel):
    id: int
    ticket_id: int
    status: str
    previous_status: Optional[str] = None
    changed_by_id: int
    changed_at: Optional[datetime] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class TicketCommentCreate(BaseModel):
    content: str

    normalize_content = field_validator("content", mode="before")(_strip_not_null)


class CommentAuthor(BaseModel):
    id: int
    name: Optional[str] = None
    email: str

    class Config:
        from_attributes = True


class TicketCommentResponse(BaseModel):
    id: int
    ticket_id: int
    content: str
    created_at: Optional[datetime] = None
    user: CommentAuthor

    class Config:
        from_attributes = True


class TicketReportResponse(BaseModel):
    id: int
    ticket_id: int
    file_name: str
    file_size: Optional[int] = None
    file_type: Optional[str] = None
    uploaded_by_id: int
    created_at: Optional[datetime] = None
    url: str


class TicketResponse(BaseModel):
    id: int
    ticket_number: str
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    customer_id: int
    asset_id: Optional[int] = None
    zone_id: Optional[int] = None
    assigned_to_id: Optional[int] = None
    created_by_id: int
    last_status_change: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TicketDetail(TicketResponse):
    status_history: List[TicketStatusHistoryResponse] = []


class TicketList(BaseModel):
    items: List[TicketResponse]
    total: int
    page: int
    size: int


# ============== Offers ==============

class OfferCreate(BaseModel):
    title: Optional[str] = None
    product_type: Optional[str] = None
    stage: OfferStage = OfferStage.INITIAL
    customer_id: int
    zone_id: int
    assigned_to_id: Optional[int] = None
    offer_value: Optional[float] = Field(None, ge=0)
    po_value: Optional[float] = Field(None, ge=0)
    registration_date: Optional[datetime] = None
    offer_month: Optional[str] = Field(None, pattern=MONTH_PATTERN)
    po_expected_month: Optional[str] = Field(None, pattern=MONTH_PATTERN)
    po_received_month: Optional[str] = Field(None, pattern=MONTH_PATTERN)
    asset_ids: List[int] = []
    remarks: Optional[str] = None


class OfferUpdate(BaseModel):
    title: Optional[str] = None
    product_type: Optional[str] = None
    stage: Optional[OfferStage] = None
    assigned_to_id: Optional[int] = None
    offer_value: Optional[float] = Field(None, ge=0)
    po_value: Optional[float] = Field(None, ge=0)
    registration_date: Optional[datetime] = None
    offer_month: Optional[str] = Field(None, pattern=MONTH_PATTERN)
    po_expected_month: Optional[str] = Field(None, pattern=MONTH_PATTERN)
    po_received_month: Optional[str] = Field(None, pattern=MONTH_PATTERN)
    asset_ids: Optional[List[int]] = None
    remarks: Optional[str] = None


class StageRemarkResponse(BaseModel):
    id: int
    offer_id: int
    stage: str
    remarks: str
    created_by_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OfferAssetResponse(BaseModel):
    id: int
    offer_id: int
    asset_id: int

    class Config:
        from_attributes = True


class OfferResponse(BaseModel):
    id: int
    offer_reference_number: str
    title: Optional[str] = None
    product_type: Optional[str] = None
    stage: str
    customer_id: int
    zone_id: int
    assigned_to_id: Optional[int] = None
    created_by_id: int
    offer_value: Optional[float] = None
    po_value: Optional[float] = None
    registration_date: Optional[datetime] = None
    offer_month: Optional[str] = None
    po_expected_month: Optional[str] = None
    po_received_month: Optional[str] = None
    closed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OfferDetail(OfferResponse):
    offer_assets: List[OfferAssetResponse] = []
    stage_remarks: List[StageRemarkResponse] = []


class OfferList(BaseModel):
    items: List[OfferResponse]
    total: int
    page: int
    size: int


class OfferStageUpdate(BaseModel):
    stage: OfferStage
    remarks: Optional[str] = None
