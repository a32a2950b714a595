import enum
import uuid
from typing import Any, Iterable, Optional

from fastapi import HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

# reference columns stored as UUID; everything else ending in _id is free text
UUID_FIELDS = frozenset({
    "building_id",
    "service_installer_id",
    "assignee_id",
    "project_id",
    "manager_id",
    "user_id",
    "order_id",
})


def parse_uuid(value: Any, label: str = "id") -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {label}")


def get_or_404(db: Session, model, row_id: Any, label: str):
    row = db.query(model).filter(model.id == parse_uuid(row_id, f"{label.lower()} id")).first()
    if not row:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return row


def ensure_exists(db: Session, model, row_id: Optional[uuid.UUID], label: str) -> None:
    if row_id is None:
        return
    if db.query(model.id).filter(model.id == row_id).first() is None:
        raise HTTPException(status_code=400, detail=f"{label} not found")


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): _dump(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_dump(v) for v in value]
    return value


def column_values(payload: BaseModel, exclude: Iterable[str] = (), only_set: bool = False) -> dict:
    """Payload fields converted to what the columns store."""
    skip = set(exclude)
    names = payload.model_fields_set if only_set else type(payload).model_fields.keys()
    values = {}
    for name in names:
        if name in skip:
            continue
        value = getattr(payload, name)
        if name in UUID_FIELDS and value is not None:
            value = parse_uuid(value, name.replace("_", " "))
        values[name] = _dump(value)
    return values


def apply_changes(row, payload: BaseModel, exclude: Iterable[str] = ()) -> dict:
    changes = column_values(payload, exclude=exclude, only_set=True)
    for name, value in changes.items():
        setattr(row, name, value)
    return changes
