"""
Builds an ``AppState`` from the database so the server's dashboard and report
endpoints run the same selectors the client does.
"""
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ..models import models
from ..schemas.enums import OrderType
from ..state import AppState, RECORD_TYPES

ACTIVATION_TYPES = (OrderType.activation.value, OrderType.modification.value)

_SOURCES = {
    "orders": models.Order,
    "activations": models.Order,
    "buildings": models.Building,
    "materials": models.Material,
    "splitters": models.Splitter,
    "service_installers": models.ServiceInstaller,
    "tasks": models.Task,
    "projects": models.Project,
    "users": models.User,
    "invoices": models.Invoice,
}


def to_record(name: str, row):
    return RECORD_TYPES[name].model_validate(row)


def _rows(db: Session, name: str):
    query = db.query(_SOURCES[name])
    if name == "activations":
        query = query.filter(models.Order.order_type.in_(ACTIVATION_TYPES))
    return query.all()


def load_state(db: Session, names: Optional[Iterable[str]] = None) -> AppState:
    state = AppState()
    for name in names or _SOURCES:
        state.receive(name, [to_record(name, row) for row in _rows(db, name)])
    return state
