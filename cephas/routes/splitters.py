from typing import Optional

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth.security import require_action
from ..db import get_db
from ..models.models import Building, Splitter
from ..schemas import records
from ..schemas.resources import SplitterCreate, SplitterUpdate
from ..selectors.splitters import get_splitter_ports, get_splitter_status, get_splitter_with_building
from ..services.crud import apply_changes, column_values, ensure_exists, get_or_404, parse_uuid
from ..services.envelope import ok
from ..services.snapshot import load_state

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/splitters", tags=["splitters"])


@router.get("")
def list_splitters(
    building_id: Optional[str] = None,
    service_id: Optional[str] = None,
    db: Session = Depends(get_db),
    _=Depends(require_action("view_splitter")),
):
    query = db.query(Splitter)
    if building_id:
        query = query.filter(Splitter.building_id == parse_uuid(building_id, "building id"))
    if service_id:
        query = query.filter(Splitter.service_id == service_id)
    rows = query.order_by(Splitter.created_at.asc()).all()
    return ok([records.Splitter.model_validate(r) for r in rows])


@router.get("/{splitter_id}")
def get_splitter(splitter_id: str, db: Session = Depends(get_db), _=Depends(require_action("view_splitter"))):
    row = get_or_404(db, Splitter, splitter_id, "Splitter")
    state = load_state(db, ["buildings", "splitters"])
    key = str(row.id)
    return ok(
        {
            "splitter": get_splitter_with_building(state, key),
            "status": get_splitter_status(state, key),
            "ports": get_splitter_ports(state, key),
        }
    )


@router.post("", status_code=201)
def create_splitter(payload: SplitterCreate, db: Session = Depends(get_db), _=Depends(require_action("create_splitter"))):
    values = column_values(payload)
    ensure_exists(db, Building, values["building_id"], "Building")
    row = Splitter(**values)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("splitter_created", splitter_id=str(row.id), building_id=str(row.building_id))
    return ok(records.Splitter.model_validate(row), "Splitter created")


@router.put("/{splitter_id}")
def update_splitter(splitter_id: str, payload: SplitterUpdate, db: Session = Depends(get_db), _=Depends(require_action("edit_splitter"))):
    row = get_or_404(db, Splitter, splitter_id, "Splitter")
    apply_changes(row, payload)
    db.commit()
    db.refresh(row)
    return ok(records.Splitter.model_validate(row), "Splitter updated")


@router.delete("/{splitter_id}")
def delete_splitter(splitter_id: str, db: Session = Depends(get_db), _=Depends(require_action("delete_splitter"))):
    row = get_or_404(db, Splitter, splitter_id, "Splitter")
    db.delete(row)
    db.commit()
    return ok(None, "Splitter deleted")
