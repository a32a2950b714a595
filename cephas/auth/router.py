import secrets
from datetime import datetime, timedelta, timezone

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..models.models import PasswordReset, User
from ..navigation.composer import get_dashboard_component
from ..schemas import records
from ..schemas.auth import (
    ForgotPasswordRequest,
    LoginData,
    LoginRequest,
    MeResponse,
    ResetPasswordRequest,
)
from ..selectors.users import permissions_of
from ..services.envelope import ok
from ..services.mailer import send_mail
from .access import get_role_modules, get_role_name
from .security import create_access_token, get_current_user, get_password_hash, verify_password

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _as_utc(value):
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@router.post("/login")
def login(req: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter((User.username == req.identifier) | (User.email == req.identifier)).first()
    if not user or not verify_password(req.password, user.password_hash):
        logger.info("login_failed", identifier=req.identifier)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is deactivated")
    now = datetime.now(timezone.utc)
    user.last_login = now
    user.last_activity_at = now
    db.commit()
    token = create_access_token(str(user.id), role=user.role)
    data = LoginData(token=token, user=records.User.model_validate(user))
    return ok(data, "Login successful")


@router.get("/me")
def me(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    user.last_activity_at = datetime.now(timezone.utc)
    db.commit()
    record = records.User.model_validate(user)
    data = MeResponse(
        user=record,
        role_name=get_role_name(user.role),
        permissions=permissions_of(record),
        modules=get_role_modules(user.role),
        dashboard=get_dashboard_component(user.role),
    )
    return ok(data)


@router.post("/forgot-password")
def forgot_password(req: ForgotPasswordRequest, db: Session = Depends(get_db)):
    # same answer whether or not the address is known
    message = "If the email is registered, a reset link has been sent"
    user = db.query(User).filter(User.email == str(req.email)).first()
    if not user or not user.is_active:
        return ok(None, message)
    token = secrets.token_urlsafe(32)
    db.add(
        PasswordReset(
            user_id=user.id,
            token=token,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=settings.password_reset_ttl_seconds),
        )
    )
    db.commit()
    link = f"{settings.public_base_url}/reset-password/{token}"
    send_mail(user.email, f"Reset your {settings.app_name} password", f"Click to reset your password: {link}")
    return ok(None, message)


@router.post("/reset-password")
def reset_password(req: ResetPasswordRequest, db: Session = Depends(get_db)):
    pr = db.query(PasswordReset).filter(PasswordReset.token == req.token).first()
    if not pr:
        raise HTTPException(status_code=400, detail="Invalid or expired token")
    now_utc = datetime.now(timezone.utc)
    expires_at = _as_utc(pr.expires_at)
    if pr.used_at is not None or (expires_at and expires_at < now_utc):
        raise HTTPException(status_code=400, detail="Invalid or expired token")
    user = db.query(User).filter(User.id == pr.user_id).first()
    if not user:
        raise HTTPException(status_code=400, detail="Invalid token")
    user.password_hash = get_password_hash(req.password)
    pr.used_at = now_utc
    db.commit()
    logger.info("password_reset", user_id=str(user.id))
    return ok(None, "Password has been reset")
