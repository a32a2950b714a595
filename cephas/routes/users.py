from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth.security import get_password_hash, require_action
from ..db import get_db
from ..models.models import User
from ..schemas import records
from ..schemas.enums import Role
from ..schemas.resources import UserCreate, UserUpdate
from ..services.crud import apply_changes, get_or_404
from ..services.envelope import ok

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def _record(row: User) -> records.User:
    return records.User.model_validate(row)


@router.get("")
def list_users(
    q: Optional[str] = None,
    role: Optional[str] = None,
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    _=Depends(require_action("view_user")),
):
    query = db.query(User)
    if q:
        like = f"%{q}%"
        query = query.filter(
            User.username.ilike(like) | User.email.ilike(like) | User.first_name.ilike(like) | User.last_name.ilike(like)
        )
    if role:
        parsed = Role.parse(role)
        if parsed is None:
            raise HTTPException(status_code=400, detail="Unknown role")
        query = query.filter(User.role == parsed.value)
    if is_active is not None:
        query = query.filter(User.is_active == is_active)
    rows = query.order_by(User.created_at.desc()).all()
    return ok([_record(r) for r in rows])


@router.get("/{user_id}")
def get_user(user_id: str, db: Session = Depends(get_db), _=Depends(require_action("view_user"))):
    return ok(_record(get_or_404(db, User, user_id, "User")))


@router.post("", status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db), _=Depends(require_action("create_user"))):
    if db.query(User).filter(User.email == str(payload.email)).first():
        raise HTTPException(status_code=400, detail="Email already registered")
    if db.query(User).filter(User.username == payload.username).first():
        raise HTTPException(status_code=400, detail="Username already taken")
    row = User(
        username=payload.username,
        email=str(payload.email),
        first_name=payload.first_name,
        last_name=payload.last_name,
        password_hash=get_password_hash(payload.password),
        role=payload.role.value,
        permissions=payload.permissions,
        is_active=True,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("user_created", user_id=str(row.id), role=row.role)
    return ok(_record(row), "User created")


@router.put("/{user_id}")
def update_user(user_id: str, payload: UserUpdate, db: Session = Depends(get_db), _=Depends(require_action("edit_user"))):
    row = get_or_404(db, User, user_id, "User")
    if payload.email is not None and str(payload.email) != row.email:
        if db.query(User).filter(User.email == str(payload.email)).first():
            raise HTTPException(status_code=400, detail="Email already in use")
    apply_changes(row, payload, exclude=("password",))
    if payload.password:
        row.password_hash = get_password_hash(payload.password)
    db.commit()
    db.refresh(row)
    return ok(_record(row), "User updated")


@router.patch("/{user_id}/toggle-status")
def toggle_user_status(user_id: str, db: Session = Depends(get_db), me: User = Depends(require_action("edit_user"))):
    """Soft (de)activation; users are never deleted in normal flow."""
    row = get_or_404(db, User, user_id, "User")
    if row.id == me.id:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")
    row.is_active = not row.is_active
    db.commit()
    db.refresh(row)
    logger.info("user_status_toggled", user_id=str(row.id), is_active=row.is_active)
    return ok(_record(row), "User activated" if row.is_active else "User deactivated")
