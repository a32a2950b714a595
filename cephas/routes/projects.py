from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth.security import require_action
from ..db import get_db
from ..models.models import Project, User
from ..schemas import records
from ..schemas.enums import ProjectStatus
from ..schemas.resources import ProjectCreate, ProjectUpdate
from ..selectors.common import to_local
from ..selectors.projects import (
    get_project_completion,
    get_project_with_tasks,
    get_projects_stats,
    get_projects_with_budget,
    search_projects,
)
from ..services.crud import apply_changes, column_values, ensure_exists, get_or_404
from ..services.envelope import ok
from ..services.snapshot import load_state

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


def _ends_before_start(start, due) -> bool:
    start, due = to_local(start), to_local(due)
    return start is not None and due is not None and due < start


@router.get("")
def list_projects(
    q: Optional[str] = None,
    status: Optional[ProjectStatus] = None,
    db: Session = Depends(get_db),
    _=Depends(require_action("view_project")),
):
    state = load_state(db, ["projects"])
    items = get_projects_with_budget(state)
    if q:
        matched = {p.id for p in search_projects(state, q)}
        items = [p for p in items if p.id in matched]
    if status is not None:
        items = [p for p in items if p.status == status.value]
    return ok(items)


@router.get("/stats")
def projects_stats(db: Session = Depends(get_db), _=Depends(require_action("view_project"))):
    return ok(get_projects_stats(load_state(db, ["projects"])))


@router.get("/{project_id}")
def get_project(project_id: str, db: Session = Depends(get_db), _=Depends(require_action("view_project"))):
    row = get_or_404(db, Project, project_id, "Project")
    state = load_state(db, ["projects", "tasks"])
    key = str(row.id)
    return ok({"project": get_project_with_tasks(state, key), "completion": get_project_completion(state, key)})


@router.post("", status_code=201)
def create_project(payload: ProjectCreate, db: Session = Depends(get_db), _=Depends(require_action("create_project"))):
    values = column_values(payload)
    ensure_exists(db, User, values.get("manager_id"), "Manager")
    if _ends_before_start(payload.start_date, payload.due_date):
        raise HTTPException(status_code=400, detail="Due date must not be before start date")
    row = Project(**values)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("project_created", project_id=str(row.id))
    return ok(records.Project.model_validate(row), "Project created")


@router.put("/{project_id}")
def update_project(project_id: str, payload: ProjectUpdate, db: Session = Depends(get_db), _=Depends(require_action("edit_project"))):
    row = get_or_404(db, Project, project_id, "Project")
    changes = apply_changes(row, payload)
    ensure_exists(db, User, changes.get("manager_id"), "Manager")
    if _ends_before_start(row.start_date, row.due_date):
        raise HTTPException(status_code=400, detail="Due date must not be before start date")
    db.commit()
    db.refresh(row)
    return ok(records.Project.model_validate(row), "Project updated")
