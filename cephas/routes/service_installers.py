from typing import Optional

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth.security import require_action
from ..db import get_db
from ..models.models import ServiceInstaller, User
from ..schemas import records
from ..schemas.resources import ServiceInstallerCreate, ServiceInstallerUpdate
from ..selectors.service_installers import (
    get_service_installer_availability,
    get_service_installer_performance,
    get_service_installers_by_workload,
    get_service_installers_with_stats,
    search_service_installers,
)
from ..services.crud import apply_changes, column_values, ensure_exists, get_or_404
from ..services.envelope import ok
from ..services.snapshot import load_state

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/service-installers", tags=["service-installers"])


@router.get("")
def list_service_installers(
    q: Optional[str] = None,
    is_active: Optional[bool] = None,
    by_workload: bool = False,
    db: Session = Depends(get_db),
    _=Depends(require_action("view_service_installer")),
):
    state = load_state(db, ["service_installers", "orders"])
    items = get_service_installers_by_workload(state) if by_workload else get_service_installers_with_stats(state)
    if q:
        matched = {i.id for i in search_service_installers(state, q)}
        items = [i for i in items if i.id in matched]
    if is_active is not None:
        items = [i for i in items if (i.is_active is not False) == is_active]
    return ok(items)


@router.get("/availability")
def installer_availability(db: Session = Depends(get_db), _=Depends(require_action("assign_job"))):
    state = load_state(db, ["service_installers", "orders"])
    return ok(get_service_installer_availability(state))


@router.get("/{installer_id}")
def get_service_installer(installer_id: str, db: Session = Depends(get_db), _=Depends(require_action("view_service_installer"))):
    row = get_or_404(db, ServiceInstaller, installer_id, "Service installer")
    state = load_state(db, ["service_installers", "orders"])
    key = str(row.id)
    return ok(
        {
            "installer": records.ServiceInstaller.model_validate(row),
            "availability": get_service_installer_availability(state).get(key),
            "performance": get_service_installer_performance(state).get(key),
        }
    )


@router.post("", status_code=201)
def create_service_installer(
    payload: ServiceInstallerCreate,
    db: Session = Depends(get_db),
    _=Depends(require_action("create_service_installer")),
):
    values = column_values(payload)
    ensure_exists(db, User, values.get("user_id"), "User")
    row = ServiceInstaller(**values)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("service_installer_created", installer_id=str(row.id))
    return ok(records.ServiceInstaller.model_validate(row), "Service installer created")


@router.put("/{installer_id}")
def update_service_installer(
    installer_id: str,
    payload: ServiceInstallerUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_action("edit_service_installer")),
):
    row = get_or_404(db, ServiceInstaller, installer_id, "Service installer")
    apply_changes(row, payload)
    db.commit()
    db.refresh(row)
    return ok(records.ServiceInstaller.model_validate(row), "Service installer updated")
