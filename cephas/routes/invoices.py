from datetime import datetime, timezone
from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth.security import require_action
from ..db import get_db
from ..models.models import Invoice, Order, ServiceInstaller, User
from ..schemas import records
from ..schemas.enums import OPEN_INVOICE_STATUSES, InvoiceStatus, Role
from ..schemas.resources import InvoiceCreate, InvoiceItemEntry, InvoicePayment, InvoiceUpdate
from ..selectors.common import to_local
from ..selectors.invoices import (
    filter_invoices,
    get_invoice_statistics,
    get_recent_invoices,
    search_invoices,
)
from ..services.crud import apply_changes, column_values, ensure_exists, get_or_404, parse_uuid
from ..services.envelope import ok
from ..services.snapshot import load_state, to_record
from ..state import AppState

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/invoices", tags=["invoices"])


def _record(row: Invoice) -> records.Invoice:
    return records.Invoice.model_validate(row)


def _own_installer_ids(db: Session, user: User) -> Optional[List]:
    """Installer profiles of an installer user; None for roles that see every invoice."""
    if Role.parse(user.role) != Role.installer:
        return None
    return [row.id for row in db.query(ServiceInstaller.id).filter(ServiceInstaller.user_id == user.id).all()]


def _visible_state(db: Session, user: User) -> AppState:
    own = _own_installer_ids(db, user)
    if own is None:
        return load_state(db, ["invoices"])
    rows = db.query(Invoice).filter(Invoice.service_installer_id.in_(own)).all()
    state = AppState()
    state.receive("invoices", [to_record("invoices", r) for r in rows])
    return state


def _line_items(entries: List[InvoiceItemEntry]) -> list:
    return [
        {
            "materialId": e.material_id,
            "description": e.description,
            "quantity": e.quantity,
            "rate": e.rate,
            "amount": round(e.quantity * e.rate, 2),
        }
        for e in entries
    ]


def _due_before_issue(issued, due) -> bool:
    issued, due = to_local(issued), to_local(due)
    return issued is not None and due is not None and due < issued


def _check_refs(db: Session, values: dict) -> None:
    ensure_exists(db, Order, values.get("order_id"), "Order")
    ensure_exists(db, ServiceInstaller, values.get("service_installer_id"), "Service installer")


def _number_taken(db: Session, invoice_number: str) -> bool:
    return db.query(Invoice.id).filter(Invoice.invoice_number == invoice_number).first() is not None


@router.get("")
def list_invoices(
    q: Optional[str] = None,
    status: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    min_amount: Optional[float] = None,
    max_amount: Optional[float] = None,
    service_installer_id: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_action("view_invoice")),
):
    if status is not None and InvoiceStatus.parse(status) is None:
        raise HTTPException(status_code=400, detail="Invalid invoice status")
    state = _visible_state(db, user)
    items = filter_invoices(state, InvoiceStatus.parse(status) if status else None, date_from, date_to, min_amount, max_amount)
    if q:
        matched = {i.id for i in search_invoices(state, q)}
        items = [i for i in items if i.id in matched]
    if service_installer_id:
        wanted = str(parse_uuid(service_installer_id, "service installer id"))
        items = [i for i in items if i.service_installer_id == wanted]
    items.sort(key=lambda i: to_local(i.date) or datetime.min, reverse=True)
    return ok(items)


@router.get("/statistics")
def invoice_statistics(db: Session = Depends(get_db), user: User = Depends(require_action("view_invoice"))):
    return ok(get_invoice_statistics(_visible_state(db, user)))


@router.get("/recent")
def recent_invoices(db: Session = Depends(get_db), user: User = Depends(require_action("view_invoice"))):
    return ok(get_recent_invoices(_visible_state(db, user)))


@router.get("/{invoice_id}")
def get_invoice(invoice_id: str, db: Session = Depends(get_db), user: User = Depends(require_action("view_invoice"))):
    row = get_or_404(db, Invoice, invoice_id, "Invoice")
    own = _own_installer_ids(db, user)
    if own is not None and row.service_installer_id not in own:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return ok(_record(row))


@router.post("", status_code=201)
def create_invoice(payload: InvoiceCreate, db: Session = Depends(get_db), user: User = Depends(require_action("create_invoice"))):
    if _number_taken(db, payload.invoice_number):
        raise HTTPException(status_code=400, detail="Invoice number already exists")
    if _due_before_issue(payload.date, payload.due_date):
        raise HTTPException(status_code=400, detail="Due date must not be before invoice date")
    values = column_values(payload, exclude={"items"})
    _check_refs(db, values)
    items = _line_items(payload.items)
    if items:
        values["total_amount"] = round(sum(i["amount"] for i in items), 2)
    row = Invoice(**values, items=items, status=InvoiceStatus.pending.value, created_by=user.id)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("invoice_created", invoice_id=str(row.id), invoice_number=row.invoice_number, amount=row.total_amount)
    return ok(_record(row), "Invoice created")


@router.put("/{invoice_id}")
def update_invoice(invoice_id: str, payload: InvoiceUpdate, db: Session = Depends(get_db), _=Depends(require_action("edit_invoice"))):
    row = get_or_404(db, Invoice, invoice_id, "Invoice")
    if InvoiceStatus.parse(row.status) not in OPEN_INVOICE_STATUSES:
        raise HTTPException(status_code=409, detail=f"Invoice is {row.status} and can no longer be edited")
    if payload.status == InvoiceStatus.paid:
        raise HTTPException(status_code=400, detail="Record payments through the pay endpoint")
    if payload.invoice_number and payload.invoice_number != row.invoice_number and _number_taken(db, payload.invoice_number):
        raise HTTPException(status_code=400, detail="Invoice number already exists")
    changes = apply_changes(row, payload, exclude={"items"})
    _check_refs(db, changes)
    if payload.items is not None:
        row.items = _line_items(payload.items)
        if row.items:
            row.total_amount = round(sum(i["amount"] for i in row.items), 2)
    if _due_before_issue(row.date, row.due_date):
        raise HTTPException(status_code=400, detail="Due date must not be before invoice date")
    db.commit()
    db.refresh(row)
    return ok(_record(row), "Invoice updated")


@router.post("/{invoice_id}/pay")
def pay_invoice(
    invoice_id: str,
    payload: Optional[InvoicePayment] = None,
    db: Session = Depends(get_db),
    _=Depends(require_action("edit_invoice")),
):
    row = get_or_404(db, Invoice, invoice_id, "Invoice")
    current = InvoiceStatus.parse(row.status)
    if current == InvoiceStatus.paid:
        raise HTTPException(status_code=409, detail="Invoice is already paid")
    if current == InvoiceStatus.cancelled:
        raise HTTPException(status_code=409, detail="Cancelled invoices cannot be paid")
    payload = payload or InvoicePayment()
    row.status = InvoiceStatus.paid.value
    row.payment_date = payload.payment_date or datetime.now(timezone.utc)
    row.payment_reference = payload.payment_reference
    db.commit()
    db.refresh(row)
    logger.info("invoice_paid", invoice_id=str(row.id), amount=row.total_amount)
    return ok(_record(row), "Invoice marked as paid")


@router.delete("/{invoice_id}")
def delete_invoice(invoice_id: str, db: Session = Depends(get_db), _=Depends(require_action("delete_invoice"))):
    row = get_or_404(db, Invoice, invoice_id, "Invoice")
    db.delete(row)
    db.commit()
    logger.info("invoice_deleted", invoice_id=invoice_id)
    return ok(None, "Invoice deleted")
