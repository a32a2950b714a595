from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth.security import require_action
from ..db import get_db
from ..models.models import Building, Order
from ..schemas import records
from ..schemas.enums import BuildingType
from ..schemas.resources import BuildingCreate, BuildingUpdate
from ..selectors.buildings import get_building_with_stats
from ..services.crud import apply_changes, column_values, get_or_404
from ..services.envelope import ok
from ..services.snapshot import load_state

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/buildings", tags=["buildings"])


@router.get("")
def list_buildings(
    q: Optional[str] = None,
    type: Optional[BuildingType] = None,
    location: Optional[str] = None,
    db: Session = Depends(get_db),
    _=Depends(require_action("view_building")),
):
    query = db.query(Building)
    if q:
        like = f"%{q}%"
        query = query.filter(Building.name.ilike(like) | Building.location.ilike(like) | Building.address.ilike(like))
    if type is not None:
        query = query.filter(Building.type == type.value)
    if location:
        query = query.filter(Building.location == location)
    rows = query.order_by(Building.name.asc()).all()
    return ok([records.Building.model_validate(r) for r in rows])


@router.get("/{building_id}")
def get_building(building_id: str, db: Session = Depends(get_db), _=Depends(require_action("view_building"))):
    row = get_or_404(db, Building, building_id, "Building")
    state = load_state(db, ["buildings", "splitters"])
    return ok(get_building_with_stats(state, str(row.id)))


@router.post("", status_code=201)
def create_building(payload: BuildingCreate, db: Session = Depends(get_db), _=Depends(require_action("create_building"))):
    row = Building(**column_values(payload))
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("building_created", building_id=str(row.id))
    return ok(records.Building.model_validate(row), "Building created")


@router.put("/{building_id}")
def update_building(building_id: str, payload: BuildingUpdate, db: Session = Depends(get_db), _=Depends(require_action("edit_building"))):
    row = get_or_404(db, Building, building_id, "Building")
    apply_changes(row, payload)
    db.commit()
    db.refresh(row)
    return ok(records.Building.model_validate(row), "Building updated")


@router.delete("/{building_id}")
def delete_building(building_id: str, db: Session = Depends(get_db), _=Depends(require_action("delete_building"))):
    row = get_or_404(db, Building, building_id, "Building")
    if db.query(Order.id).filter(Order.building_id == row.id).first() is not None:
        raise HTTPException(status_code=409, detail="Building has orders and cannot be deleted")
    db.delete(row)
    db.commit()
    logger.info("building_deleted", building_id=building_id)
    return ok(None, "Building deleted")
