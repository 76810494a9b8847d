"""
User Management API - ADMIN maintains staff and customer accounts
"""
import logging
from typing import Optional, List
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kardexcare.api.permissions import require_admin
from kardexcare.database import get_db
from kardexcare.enums import UserRole, CUSTOMER_ROLES
from kardexcare.errors import conflict, not_found, validation_error
from kardexcare.models import User, Customer, ServiceZone
from kardexcare.utils.security import get_password_hash

logger = logging.getLogger(__name__)

router = APIRouter()

valid_roles = [role.value for role in UserRole]


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: str
    role: str = UserRole.EXTERNAL_USER.value
    phone: Optional[str] = None
    short_form: Optional[str] = Field(None, max_length=10)
    zone_id: Optional[int] = None
    customer_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name must not be empty")
        return v.strip()


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8)
    role: Optional[str] = None
    phone: Optional[str] = None
    short_form: Optional[str] = Field(None, max_length=10)
    zone_id: Optional[int] = None
    customer_id: Optional[int] = None
    is_active: Optional[bool] = None


class UserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    role: str
    phone: Optional[str] = None
    short_form: Optional[str] = None
    zone_id: Optional[int] = None
    customer_id: Optional[int] = None
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserList(BaseModel):
    items: List[UserResponse]
    total: int
    page: int
    size: int


def check_references(db: Session, role: str, zone_id: Optional[int], customer_id: Optional[int]):
    if role not in valid_roles:
        raise validation_error(f"Invalid role. Must be one of: {valid_roles}")
    if zone_id is not None and not db.query(ServiceZone.id).filter(ServiceZone.id == zone_id).first():
        raise not_found("Service zone not found")
    if customer_id is not None and not db.query(Customer.id).filter(Customer.id == customer_id).first():
        raise not_found("Customer not found")
    if role in CUSTOMER_ROLES and customer_id is None:
        raise validation_error("customer_id is required for customer users")


@router.get("/users", response_model=UserList)
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
    role: Optional[str] = None,
    search: Optional[str] = None,
    include_inactive: bool = False,
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100)
):
    query = db.query(User)
    if not include_inactive:
        query = query.filter(User.is_active == True)  # noqa: E712
    if role:
        query = query.filter(User.role == role)
    if search:
        search_term = f"%{search}%"
        query = query.filter((User.name.ilike(search_term)) | (User.email.ilike(search_term)))

    total = query.count()
    users = query.order_by(User.id).offset((page - 1) * size).limit(size).all()
    return UserList(items=users, total=total, page=page, size=size)


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise not_found("User not found")
    return user


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    data: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    check_references(db, data.role, data.zone_id, data.customer_id)

    email = data.email.lower()
    if db.query(User.id).filter(User.email == email).first():
        raise conflict("A user with this email already exists")

    try:
        user = User(
            email=email,
            name=data.name,
            hashed_password=get_password_hash(data.password),
            role=data.role,
            phone=data.phone,
            short_form=data.short_form.upper() if data.short_form else None,
            zone_id=data.zone_id,
            customer_id=data.customer_id,
            is_active=True
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(f"Created user {user.id} ({user.email}) with role {user.role}")
    return user


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise not_found("User not found")

    update_data = data.model_dump(exclude_unset=True)
    role = update_data.get("role") or user.role
    zone_id = update_data["zone_id"] if "zone_id" in update_data else user.zone_id
    customer_id = update_data["customer_id"] if "customer_id" in update_data else user.customer_id
    check_references(db, role, zone_id, customer_id)

    if update_data.get("email"):
        update_data["email"] = update_data["email"].lower()
        if db.query(User.id).filter(User.email == update_data["email"], User.id != user.id).first():
            raise conflict("A user with this email already exists")
    if update_data.get("password"):
        update_data["hashed_password"] = get_password_hash(update_data.pop("password"))
    else:
        update_data.pop("password", None)
    if update_data.get("short_form"):
        update_data["short_form"] = update_data["short_form"].upper()

    for field, value in update_data.items():
        if field in ("name", "email", "role", "is_active") and value is None:
            continue
        setattr(user, field, value)

    db.commit()
    db.refresh(user)
    logger.info(f"Updated user {user.id}")
    return user


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Deactivate a user account"""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise not_found("User not found")
    if user.id == current_user.id:
        raise validation_error("You cannot deactivate your own account")

    user.is_active = False
    db.commit()
    logger.info(f"Deactivated user {user_id}")
    return None
