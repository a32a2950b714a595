import math
from datetime import datetime, timedelta
from typing import Any, List, Optional

from ..schemas.enums import PRIORITY_RANK, Priority, ProjectStatus, WorkStatus
from ..schemas.records import Project
from ..schemas.views import BudgetInfo, ProjectsStats, ProjectWithBudget, ProjectWithTasks, TaskStats
from ..state import AppState
from .common import (
    count_by,
    error_of,
    filter_by,
    filter_by_date_range,
    filter_by_ref,
    find_by_id,
    is_open,
    items_of,
    loading_of,
    local_now,
    same_id,
    search,
    to_local,
    total_count_of,
)

PROJECT_SEARCH_FIELDS = ("name", "description", "client_name", "manager_name")
UPCOMING_DEADLINE_DAYS = 14
RECENT_PROJECTS_LIMIT = 5

# "active" is the legacy spelling of in_progress
_ACTIVE_STATUSES = frozenset({ProjectStatus.in_progress.value, "active"})


def _round_percent(part: float, whole: float) -> int:
    if not whole or whole <= 0:
        return 0
    return max(0, math.floor(part / whole * 100 + 0.5))


def get_projects_list(state: AppState) -> List[Project]:
    return items_of(state, "projects")


def get_projects_loading(state: AppState) -> bool:
    return loading_of(state, "projects")


def get_projects_error(state: AppState) -> Optional[str]:
    return error_of(state, "projects")


def get_total_projects_count(state: AppState) -> int:
    return total_count_of(state, "projects")


def get_project_by_id(state: AppState, project_id: Any) -> Optional[Project]:
    return find_by_id(get_projects_list(state), project_id)


def get_projects_by_status(state: AppState, status: Any = None) -> List[Project]:
    return filter_by(get_projects_list(state), "status", status)


def get_projects_by_client(state: AppState, client_id: Any = None) -> List[Project]:
    return filter_by_ref(get_projects_list(state), "client_id", client_id)


def get_projects_by_manager(state: AppState, manager_id: Any = None) -> List[Project]:
    return filter_by_ref(get_projects_list(state), "manager_id", manager_id)


def get_active_projects(state: AppState) -> List[Project]:
    return [p for p in get_projects_list(state) if p.status in _ACTIVE_STATUSES]


def get_completed_projects(state: AppState) -> List[Project]:
    return [p for p in get_projects_list(state) if p.status == ProjectStatus.completed.value]


def get_project_with_tasks(state: AppState, project_id: Any) -> Optional[ProjectWithTasks]:
    project = get_project_by_id(state, project_id)
    if project is None:
        return None
    tasks = [t for t in items_of(state, "tasks") if same_id(t.project_id, project.id)]
    counts = count_by(tasks, "status", WorkStatus)
    return ProjectWithTasks(**project.model_dump(), tasks=tasks, task_stats=TaskStats(**counts))


def get_project_completion(state: AppState, project_id: Any) -> int:
    """Whole-number percentage of the project's tasks that are completed."""
    joined = get_project_with_tasks(state, project_id)
    if joined is None or not joined.tasks:
        return 0
    return _round_percent(joined.task_stats.completed, joined.task_stats.total)


def get_projects_by_priority(state: AppState) -> List[Project]:
    """High to low; projects without a known priority sort last, in their original order."""
    return sorted(get_projects_list(state), key=lambda p: PRIORITY_RANK.get(p.priority, len(PRIORITY_RANK)))


def get_recent_projects(state: AppState, limit: int = RECENT_PROJECTS_LIMIT) -> List[Project]:
    dated = [p for p in get_projects_list(state) if to_local(p.updated_at) is not None]
    undated = [p for p in get_projects_list(state) if to_local(p.updated_at) is None]
    dated.sort(key=lambda p: to_local(p.updated_at), reverse=True)
    return (dated + undated)[:limit]


def get_projects_stats(state: AppState) -> ProjectsStats:
    projects = get_projects_list(state)
    by_priority = count_by(projects, "priority", Priority)
    by_priority.pop("total")
    return ProjectsStats(
        total=len(projects),
        active=sum(1 for p in projects if p.status in _ACTIVE_STATUSES),
        completed=sum(1 for p in projects if p.status == ProjectStatus.completed.value),
        cancelled=sum(1 for p in projects if p.status == ProjectStatus.cancelled.value),
        on_hold=sum(1 for p in projects if p.status == ProjectStatus.on_hold.value),
        by_priority=by_priority,
    )


def search_projects(state: AppState, query: Optional[str] = None) -> List[Project]:
    return search(get_projects_list(state), query, PROJECT_SEARCH_FIELDS)


def get_projects_with_budget(state: AppState) -> List[ProjectWithBudget]:
    result = []
    for project in get_projects_list(state):
        enriched = ProjectWithBudget(**project.model_dump())
        if project.budget:
            spent = sum(e.amount for e in project.expenses)
            remaining = project.budget - spent
            enriched.budget_info = BudgetInfo(
                total=project.budget,
                spent=spent,
                remaining=remaining,
                percent_used=_round_percent(spent, project.budget),
                over_budget=remaining < 0,
            )
        result.append(enriched)
    return result


def get_projects_by_date_range(state: AppState, start: Any = None, end: Any = None) -> List[Project]:
    return filter_by_date_range(get_projects_list(state), "start_date", start, end)


def get_upcoming_deadline_projects(state: AppState, now: Optional[datetime] = None) -> List[Project]:
    """Open projects due within the next two weeks, soonest first."""
    current = local_now(now)
    horizon = current + timedelta(days=UPCOMING_DEADLINE_DAYS)
    upcoming = []
    for project in get_projects_list(state):
        due = to_local(project.due_date)
        if due is not None and is_open(project) and current < due <= horizon:
            upcoming.append((due, project))
    upcoming.sort(key=lambda pair: pair[0])
    return [project for _, project in upcoming]


def get_overdue_projects(state: AppState, now: Optional[datetime] = None) -> List[Project]:
    current = local_now(now)
    overdue = []
    for project in get_projects_list(state):
        due = to_local(project.due_date)
        if due is not None and is_open(project) and due < current:
            overdue.append((due, project))
    overdue.sort(key=lambda pair: pair[0])
    return [project for _, project in overdue]
