from datetime import datetime
from typing import Any, Dict, List, Optional

from ..schemas.enums import Priority, WorkStatus
from ..schemas.records import Task
from ..schemas.views import AssigneeWorkload
from ..state import AppState
from .common import (
    count_by,
    error_of,
    filter_by,
    filter_by_ref,
    find_by_id,
    has_value,
    is_open,
    items_of,
    loading_of,
    local_now,
    same_day,
    search,
    to_local,
    total_count_of,
    week_bounds,
    within,
    without_ref,
)

TASK_SEARCH_FIELDS = ("title", "description")


def get_tasks_list(state: AppState) -> List[Task]:
    return items_of(state, "tasks")


def get_tasks_loading(state: AppState) -> bool:
    return loading_of(state, "tasks")


def get_tasks_error(state: AppState) -> Optional[str]:
    return error_of(state, "tasks")


def get_total_tasks_count(state: AppState) -> int:
    return total_count_of(state, "tasks")


def get_task_by_id(state: AppState, task_id: Any) -> Optional[Task]:
    return find_by_id(get_tasks_list(state), task_id)


def get_tasks_by_status(state: AppState, status: Any = None) -> List[Task]:
    return filter_by(get_tasks_list(state), "status", status)


def get_tasks_by_priority(state: AppState, priority: Any = None) -> List[Task]:
    return filter_by(get_tasks_list(state), "priority", priority)


def get_tasks_by_assignee(state: AppState, assignee_id: Any = None) -> List[Task]:
    return filter_by_ref(get_tasks_list(state), "assignee_id", assignee_id)


def get_tasks_by_project(state: AppState, project_id: Any = None) -> List[Task]:
    return filter_by_ref(get_tasks_list(state), "project_id", project_id)


def get_tasks_by_due_date(state: AppState, start: Any = None, end: Any = None) -> List[Task]:
    """Tasks with a due date inside the range; tasks without one never match."""
    lower = to_local(start) if has_value(start) else None
    upper = to_local(end) if has_value(end) else None
    return [t for t in get_tasks_list(state) if within(to_local(t.due_date), lower, upper)]


def get_overdue_tasks(state: AppState, now: Optional[datetime] = None) -> List[Task]:
    current = local_now(now)
    result = []
    for task in get_tasks_list(state):
        due = to_local(task.due_date)
        if due is not None and due < current and is_open(task):
            result.append(task)
    return result


def get_tasks_due_today(state: AppState, now: Optional[datetime] = None) -> List[Task]:
    today = local_now(now)
    return [t for t in get_tasks_list(state) if same_day(to_local(t.due_date), today) and is_open(t)]


def get_tasks_due_this_week(state: AppState, now: Optional[datetime] = None) -> List[Task]:
    start, end = week_bounds(local_now(now))
    return [t for t in get_tasks_list(state) if within(to_local(t.due_date), start, end) and is_open(t)]


def get_task_status_counts(state: AppState) -> Dict[str, int]:
    return count_by(get_tasks_list(state), "status", WorkStatus)


def get_task_priority_counts(state: AppState) -> Dict[str, int]:
    return count_by(get_tasks_list(state), "priority", Priority)


def get_unassigned_tasks(state: AppState) -> List[Task]:
    return without_ref(get_tasks_list(state), "assignee_id")


def search_tasks(state: AppState, query: Optional[str] = None) -> List[Task]:
    return search(get_tasks_list(state), query, TASK_SEARCH_FIELDS)


def get_assignee_workload(state: AppState) -> Dict[str, AssigneeWorkload]:
    """Open (not completed/cancelled) task counts per assignee id, split by priority."""
    workload: Dict[str, AssigneeWorkload] = {}
    for task in get_tasks_list(state):
        if not has_value(task.assignee_id) or not is_open(task):
            continue
        entry = workload.setdefault(str(task.assignee_id), AssigneeWorkload())
        entry.total += 1
        if task.priority == Priority.high.value:
            entry.high += 1
        elif task.priority == Priority.medium.value:
            entry.medium += 1
        elif task.priority == Priority.low.value:
            entry.low += 1
    return workload
