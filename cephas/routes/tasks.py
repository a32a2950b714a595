from typing import Optional

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth.security import require_action
from ..db import get_db
from ..models.models import Project, Task, User
from ..schemas import records
from ..schemas.enums import Priority, WorkStatus
from ..schemas.resources import TaskCreate, TaskUpdate
from ..selectors.tasks import get_assignee_workload
from ..services.crud import apply_changes, column_values, ensure_exists, get_or_404, parse_uuid
from ..services.envelope import ok
from ..services.snapshot import load_state

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("")
def list_tasks(
    q: Optional[str] = None,
    status: Optional[WorkStatus] = None,
    priority: Optional[Priority] = None,
    assignee_id: Optional[str] = None,
    project_id: Optional[str] = None,
    db: Session = Depends(get_db),
    _=Depends(require_action("view_task")),
):
    query = db.query(Task)
    if q:
        like = f"%{q}%"
        query = query.filter(Task.title.ilike(like) | Task.description.ilike(like))
    if status is not None:
        query = query.filter(Task.status == status.value)
    if priority is not None:
        query = query.filter(Task.priority == priority.value)
    if assignee_id:
        query = query.filter(Task.assignee_id == parse_uuid(assignee_id, "assignee id"))
    if project_id:
        query = query.filter(Task.project_id == parse_uuid(project_id, "project id"))
    rows = query.order_by(Task.created_at.desc()).all()
    return ok([records.Task.model_validate(r) for r in rows])


@router.get("/workload")
def assignee_workload(db: Session = Depends(get_db), _=Depends(require_action("view_task"))):
    return ok(get_assignee_workload(load_state(db, ["tasks"])))


@router.get("/{task_id}")
def get_task(task_id: str, db: Session = Depends(get_db), _=Depends(require_action("view_task"))):
    return ok(records.Task.model_validate(get_or_404(db, Task, task_id, "Task")))


@router.post("", status_code=201)
def create_task(payload: TaskCreate, db: Session = Depends(get_db), _=Depends(require_action("create_task"))):
    values = column_values(payload)
    ensure_exists(db, User, values.get("assignee_id"), "Assignee")
    ensure_exists(db, Project, values.get("project_id"), "Project")
    row = Task(**values)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("task_created", task_id=str(row.id))
    return ok(records.Task.model_validate(row), "Task created")


@router.put("/{task_id}")
def update_task(task_id: str, payload: TaskUpdate, db: Session = Depends(get_db), _=Depends(require_action("edit_task"))):
    row = get_or_404(db, Task, task_id, "Task")
    changes = apply_changes(row, payload)
    ensure_exists(db, User, changes.get("assignee_id"), "Assignee")
    ensure_exists(db, Project, changes.get("project_id"), "Project")
    db.commit()
    db.refresh(row)
    return ok(records.Task.model_validate(row), "Task updated")
