import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from kardexcare.config import Settings
from kardexcare.database import get_db
from kardexcare.errors import unauthorized
from kardexcare.models import User, ServicePersonZone
from kardexcare.schemas import LoginRequest, Token, CurrentUser
from kardexcare.utils.security import create_access_token, verify_token, verify_password

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer(auto_error=False)

TOKEN_COOKIES = ("accessToken", "token")


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    """Bearer header first, then the accessToken cookie, then the token cookie"""
    if credentials and credentials.credentials:
        return credentials.credentials
    for name in TOKEN_COOKIES:
        value = request.cookies.get(name)
        if value:
            return value
    return None


def load_zone_ids(db: Session, user: User) -> list:
    zone_ids = {
        row.service_zone_id
        for row in db.query(ServicePersonZone.service_zone_id).filter(ServicePersonZone.user_id == user.id)
    }
    if user.zone_id:
        zone_ids.add(user.zone_id)
    return sorted(zone_ids)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
) -> User:
    token = extract_token(request, credentials)
    if not token:
        raise unauthorized("Authentication required")

    user_id = verify_token(token, settings)
    if user_id is None:
        raise unauthorized("Invalid or expired token")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        raise unauthorized("User not found or inactive")

    user.zone_ids = load_zone_ids(db, user)
    return user


@router.post("/login", response_model=Token)
async def login(
    credentials: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    user = db.query(User).filter(User.email == credentials.email.lower()).first()
    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.warning(f"Failed login attempt for {credentials.email}")
        raise unauthorized("Incorrect email or password")
    if not user.is_active:
        raise unauthorized("User account is inactive")

    access_token = create_access_token(data={"sub": str(user.id), "role": user.role}, settings=settings)
    user.last_login_at = datetime.utcnow()
    db.commit()

    response.set_cookie(
        "accessToken",
        access_token,
        httponly=True,
        samesite="lax",
        max_age=settings.access_token_expire_minutes * 60,
    )
    logger.info(f"User {user.id} logged in")
    return {"access_token": access_token, "token_type": "bearer"}


@router.post("/logout")
async def logout(response: Response):
    for name in TOKEN_COOKIES:
        response.delete_cookie(name)
    return {"success": True}


@router.get("/me", response_model=CurrentUser)
async def read_users_me(current_user: User = Depends(get_current_user)):
    return current_user
