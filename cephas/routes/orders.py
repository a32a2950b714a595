from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth.security import require_action
from ..db import get_db
from ..models.models import Building, Order, ServiceInstaller, User
from ..schemas import records
from ..schemas.enums import OrderStatus, OrderType, Role, can_transition
from ..schemas.resources import OrderCreate, OrderStatusUpdate, OrderUpdate
from ..selectors.service_installers import get_service_installer_availability
from ..services.crud import apply_changes, column_values, ensure_exists, get_or_404, parse_uuid
from ..services.envelope import ok
from ..services.snapshot import load_state
from ..services.tracker_ids import next_tracker_id

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


def _record(row: Order) -> records.Order:
    return records.Order.model_validate(row)


def _check_installer(db: Session, installer_id) -> None:
    """The installer must exist, be active and have room for another open order."""
    ensure_exists(db, ServiceInstaller, installer_id, "Service installer")
    state = load_state(db, ["service_installers", "orders"])
    availability = get_service_installer_availability(state).get(str(installer_id))
    if availability is not None and not availability.available:
        raise HTTPException(status_code=409, detail=f"Service installer is not available: {availability.reason}")


@router.get("")
def list_orders(
    q: Optional[str] = None,
    status: Optional[OrderStatus] = None,
    order_type: Optional[OrderType] = None,
    building_id: Optional[str] = None,
    service_installer_id: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_action("view_order")),
):
    query = db.query(Order)
    if Role.parse(user.role) == Role.installer:
        # installers only see the jobs assigned to their own installer profile
        own = [i.id for i in db.query(ServiceInstaller).filter(ServiceInstaller.user_id == user.id).all()]
        query = query.filter(Order.service_installer_id.in_(own))
    if q:
        like = f"%{q}%"
        query = query.filter(
            Order.customer.ilike(like)
            | Order.customer_phone.ilike(like)
            | Order.tbbno_id.ilike(like)
            | Order.order_number.ilike(like)
            | Order.tracker_id.ilike(like)
        )
    if status is not None:
        query = query.filter(Order.status == status.value)
    if order_type is not None:
        query = query.filter(Order.order_type == order_type.value)
    if building_id:
        query = query.filter(Order.building_id == parse_uuid(building_id, "building id"))
    if service_installer_id:
        query = query.filter(Order.service_installer_id == parse_uuid(service_installer_id, "service installer id"))
    rows = query.order_by(Order.created_at.desc()).all()
    return ok([_record(r) for r in rows])


@router.get("/{order_id}")
def get_order(order_id: str, db: Session = Depends(get_db), _=Depends(require_action("view_order"))):
    return ok(_record(get_or_404(db, Order, order_id, "Order")))


@router.post("", status_code=201)
def create_order(payload: OrderCreate, db: Session = Depends(get_db), user: User = Depends(require_action("create_order"))):
    values = column_values(payload)
    ensure_exists(db, Building, values.get("building_id"), "Building")
    now = datetime.now(timezone.utc)
    if values.get("service_installer_id") is not None:
        _check_installer(db, values["service_installer_id"])
        values["status"] = OrderStatus.assigned.value
        values["assigned_date"] = now
    else:
        values["status"] = OrderStatus.pending.value
    row = Order(**values, tracker_id=next_tracker_id(db, now), created_by=user.id)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("order_created", order_id=str(row.id), tracker_id=row.tracker_id)
    return ok(_record(row), "Order created")


@router.put("/{order_id}")
def update_order(order_id: str, payload: OrderUpdate, db: Session = Depends(get_db), _=Depends(require_action("edit_order"))):
    row = get_or_404(db, Order, order_id, "Order")
    if row.status in (OrderStatus.completed.value, OrderStatus.cancelled.value):
        raise HTTPException(status_code=409, detail=f"Order is {row.status} and cannot be edited")
    previous_installer = row.service_installer_id
    changes = apply_changes(row, payload)
    ensure_exists(db, Building, changes.get("building_id"), "Building")
    installer_id = changes.get("service_installer_id")
    if installer_id is not None and installer_id != previous_installer:
        _check_installer(db, installer_id)
        row.assigned_date = datetime.now(timezone.utc)
        if row.status == OrderStatus.pending.value:
            row.status = OrderStatus.assigned.value
    db.commit()
    db.refresh(row)
    return ok(_record(row), "Order updated")


@router.patch("/{order_id}/status")
def change_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_action("change_status")),
):
    row = get_or_404(db, Order, order_id, "Order")
    target = payload.status.value
    if target == row.status:
        return ok(_record(row), "Status unchanged")
    if not can_transition(row.status, target):
        raise HTTPException(status_code=409, detail=f"Cannot change status from {row.status} to {target}")
    if target in (OrderStatus.assigned.value, OrderStatus.in_progress.value) and row.service_installer_id is None:
        raise HTTPException(status_code=400, detail="Order has no service installer")
    if target == OrderStatus.completed.value:
        row.completed_date = datetime.now(timezone.utc)
    previous = row.status
    row.status = target
    db.commit()
    db.refresh(row)
    logger.info("order_status_changed", order_id=str(row.id), previous=previous, status=target, user_id=str(user.id))
    return ok(_record(row), "Status updated")


@router.delete("/{order_id}")
def delete_order(order_id: str, db: Session = Depends(get_db), _=Depends(require_action("delete_order"))):
    row = get_or_404(db, Order, order_id, "Order")
    db.delete(row)
    db.commit()
    logger.info("order_deleted", order_id=order_id)
    return ok(None, "Order deleted")
