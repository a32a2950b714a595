from datetime import datetime

import pytest

from cephas.selectors import projects, tasks
from cephas.state import build_state

# Wednesday; the week runs Sunday 2025-03-30 to Saturday 2025-04-05
NOW = datetime(2025, 4, 2, 12, 0)


@pytest.fixture
def state():
    return build_state(
        tasks=[
            {"id": 1, "title": "Splice riser cable", "status": "todo", "priority": "high",
             "assigneeId": 5, "projectId": 100, "dueDate": "2025-04-01T09:00:00"},
            {"id": 2, "title": "Survey level 3", "status": "in_progress", "priority": "medium",
             "assigneeId": "5", "projectId": 100, "dueDate": "2025-04-02T18:00:00"},
            {"id": 3, "title": "Label splitters", "status": "completed", "priority": "low",
             "assigneeId": 6, "projectId": "100", "dueDate": "2025-03-01T09:00:00"},
            {"id": 4, "title": "Order patch panels", "description": "Ask warehouse for stock",
             "status": "todo", "priority": "low", "projectId": 200},
            {"id": 5, "title": "Handover report", "status": "cancelled", "priority": "high",
             "assigneeId": 6, "projectId": 200, "dueDate": "2025-04-04T09:00:00"},
        ],
        projects=[
            {"id": 100, "name": "Velocity fibre rollout", "status": "in_progress", "priority": "high",
             "clientId": "C-1", "managerId": 5, "budget": 1000,
             "expenses": [{"amount": 300}, {"amount": 250.5, "description": "Cable"}],
             "startDate": "2025-03-01T00:00:00", "dueDate": "2025-04-10T00:00:00",
             "updatedAt": "2025-04-01T10:00:00"},
            {"id": 200, "name": "Parkview upgrade", "status": "active", "priority": "low",
             "clientId": "C-2", "budget": 100, "expenses": [{"amount": 150}],
             "dueDate": "2025-03-15T00:00:00", "updatedAt": "2025-04-02T08:00:00"},
            {"id": 300, "name": "Mall backbone", "status": "completed", "priority": "medium",
             "clientId": "C-1", "dueDate": "2025-03-01T00:00:00"},
            {"id": 400, "name": "Campus survey", "status": "on_hold", "clientName": "Setia Group",
             "dueDate": "2025-05-30T00:00:00"},
        ],
    )


# ---------- tasks ----------

def test_due_date_windows(state):
    assert [t.id for t in tasks.get_overdue_tasks(state, now=NOW)] == [1]
    assert [t.id for t in tasks.get_tasks_due_today(state, now=NOW)] == [2]
    # the cancelled task inside the week is excluded
    assert [t.id for t in tasks.get_tasks_due_this_week(state, now=NOW)] == [1, 2]


def test_due_date_range_skips_undated_tasks(state):
    assert [t.id for t in tasks.get_tasks_by_due_date(state)] == [1, 2, 3, 5]
    ranged = tasks.get_tasks_by_due_date(state, "2025-04-01T00:00:00", "2025-04-02T23:59:59")
    assert [t.id for t in ranged] == [1, 2]


def test_task_counts(state):
    assert tasks.get_task_status_counts(state) == {
        "todo": 2, "in_progress": 1, "completed": 1, "cancelled": 1, "total": 5,
    }
    assert tasks.get_task_priority_counts(state) == {"high": 2, "medium": 1, "low": 2, "total": 5}


def test_task_reference_filters(state):
    assert [t.id for t in tasks.get_tasks_by_assignee(state, 5)] == [1, 2]
    assert [t.id for t in tasks.get_tasks_by_project(state, "100")] == [1, 2, 3]
    assert [t.id for t in tasks.get_unassigned_tasks(state)] == [4]


def test_workload_counts_open_tasks_only(state):
    workload = tasks.get_assignee_workload(state)
    assert set(workload) == {"5"}
    assert (workload["5"].total, workload["5"].high, workload["5"].medium, workload["5"].low) == (2, 1, 1, 0)


def test_task_search_covers_description(state):
    assert [t.id for t in tasks.search_tasks(state, "warehouse")] == [4]


# ---------- projects ----------

def test_project_with_tasks_and_completion(state):
    joined = projects.get_project_with_tasks(state, 100)
    assert [t.id for t in joined.tasks] == [1, 2, 3]
    assert (joined.task_stats.total, joined.task_stats.completed) == (3, 1)
    assert projects.get_project_completion(state, 100) == 33
    assert projects.get_project_completion(state, 300) == 0
    assert projects.get_project_completion(state, 999) == 0


def test_budget_info(state):
    enriched = {p.id: p for p in projects.get_projects_with_budget(state)}
    first = enriched[100].budget_info
    assert first.spent == pytest.approx(550.5)
    assert first.remaining == pytest.approx(449.5)
    assert first.percent_used == 55
    assert not first.over_budget

    over = enriched[200].budget_info
    assert over.over_budget and over.percent_used == 150
    assert enriched[300].budget_info is None


def test_active_includes_legacy_spelling(state):
    assert [p.id for p in projects.get_active_projects(state)] == [100, 200]
    assert [p.id for p in projects.get_completed_projects(state)] == [300]


def test_project_stats(state):
    stats = projects.get_projects_stats(state)
    assert (stats.total, stats.active, stats.completed, stats.cancelled, stats.on_hold) == (4, 2, 1, 0, 1)
    assert stats.by_priority == {"high": 1, "medium": 1, "low": 1}


def test_priority_and_recency_ordering(state):
    assert [p.id for p in projects.get_projects_by_priority(state)] == [100, 300, 200, 400]
    assert [p.id for p in projects.get_recent_projects(state)] == [200, 100, 300, 400]
    assert [p.id for p in projects.get_recent_projects(state, limit=1)] == [200]


def test_deadline_windows(state):
    assert [p.id for p in projects.get_upcoming_deadline_projects(state, now=NOW)] == [100]
    # completed projects are never overdue
    assert [p.id for p in projects.get_overdue_projects(state, now=NOW)] == [200]


def test_project_filters_and_search(state):
    assert [p.id for p in projects.get_projects_by_client(state, "C-1")] == [100, 300]
    assert [p.id for p in projects.get_projects_by_manager(state, "5")] == [100]
    assert [p.id for p in projects.get_projects_by_date_range(state, "2025-02-01T00:00:00")] == [100]
    assert [p.id for p in projects.search_projects(state, "setia")] == [400]
