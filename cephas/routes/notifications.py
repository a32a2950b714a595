from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..models.models import Notification, User
from ..schemas import records
from ..services.crud import parse_uuid
from ..services.envelope import ok

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
def list_notifications(
    unread: Optional[bool] = None,
    limit: int = Query(default=50, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = db.query(Notification).filter(Notification.user_id == user.id)
    if unread:
        query = query.filter(Notification.read.is_(False))
    rows = query.order_by(Notification.created_at.desc()).limit(limit).all()
    return ok([records.Notification.model_validate(r) for r in rows])


@router.patch("/{notification_id}/read")
def mark_read(notification_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    row = (
        db.query(Notification)
        .filter(Notification.id == parse_uuid(notification_id, "notification id"), Notification.user_id == user.id)
        .first()
    )
    if not row:
        raise HTTPException(status_code=404, detail="Notification not found")
    row.read = True
    db.commit()
    db.refresh(row)
    return ok(records.Notification.model_validate(row))
