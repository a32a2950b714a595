from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..models.models import ServiceInstaller, User
from ..services.dashboards import build_dashboard
from ..services.envelope import ok
from ..services.snapshot import load_state

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("")
def dashboard(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    state = load_state(db)
    installer_ids = [row.id for row in db.query(ServiceInstaller.id).filter(ServiceInstaller.user_id == user.id).all()]
    return ok(build_dashboard(state, user.role, installer_ids))
