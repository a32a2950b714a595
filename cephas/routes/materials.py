from typing import Optional

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth.security import require_action
from ..db import get_db
from ..models.models import Material
from ..schemas import records
from ..schemas.enums import StockStatus
from ..schemas.resources import MaterialCreate, MaterialUpdate
from ..selectors.materials import filter_materials, search_materials
from ..services.crud import apply_changes, column_values, get_or_404
from ..services.envelope import ok
from ..services.snapshot import load_state

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/materials", tags=["materials"])


@router.get("")
def list_materials(
    q: Optional[str] = None,
    material_type: Optional[str] = None,
    stock_status: Optional[StockStatus] = None,
    is_active: Optional[bool] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    db: Session = Depends(get_db),
    _=Depends(require_action("view_material")),
):
    state = load_state(db, ["materials"])
    items = filter_materials(state, material_type, stock_status, is_active, min_price, max_price)
    if q:
        matched = {m.id for m in search_materials(state, q)}
        items = [m for m in items if m.id in matched]
    return ok(items)


@router.get("/{material_id}")
def get_material(material_id: str, db: Session = Depends(get_db), _=Depends(require_action("view_material"))):
    return ok(records.Material.model_validate(get_or_404(db, Material, material_id, "Material")))


@router.post("", status_code=201)
def create_material(payload: MaterialCreate, db: Session = Depends(get_db), _=Depends(require_action("create_material"))):
    if db.query(Material).filter(Material.sap_code == payload.sap_code).first():
        raise HTTPException(status_code=400, detail="SAP code already exists")
    row = Material(**column_values(payload))
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("material_created", material_id=str(row.id), sap_code=row.sap_code)
    return ok(records.Material.model_validate(row), "Material created")


@router.put("/{material_id}")
def update_material(material_id: str, payload: MaterialUpdate, db: Session = Depends(get_db), _=Depends(require_action("edit_material"))):
    row = get_or_404(db, Material, material_id, "Material")
    if payload.sap_code and payload.sap_code != row.sap_code:
        if db.query(Material).filter(Material.sap_code == payload.sap_code).first():
            raise HTTPException(status_code=400, detail="SAP code already exists")
    apply_changes(row, payload)
    db.commit()
    db.refresh(row)
    return ok(records.Material.model_validate(row), "Material updated")


@router.patch("/{material_id}/stock")
def adjust_stock(
    material_id: str,
    delta: float = Body(..., embed=True),
    db: Session = Depends(get_db),
    _=Depends(require_action("update_stock")),
):
    row = get_or_404(db, Material, material_id, "Material")
    quantity = (row.stock_keeping_unit or 0) + delta
    if quantity < 0:
        raise HTTPException(status_code=400, detail="Insufficient stock")
    row.stock_keeping_unit = quantity
    db.commit()
    db.refresh(row)
    logger.info("material_stock_adjusted", material_id=str(row.id), delta=delta, quantity=quantity)
    return ok(records.Material.model_validate(row), "Stock updated")


@router.delete("/{material_id}")
def delete_material(material_id: str, db: Session = Depends(get_db), _=Depends(require_action("delete_material"))):
    row = get_or_404(db, Material, material_id, "Material")
    db.delete(row)
    db.commit()
    return ok(None, "Material deleted")
