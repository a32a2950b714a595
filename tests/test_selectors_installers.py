import pytest

from cephas.selectors import service_installers as installers
from cephas.state import build_state


@pytest.fixture
def state():
    return build_state(
        service_installers=[
            {"id": 7, "name": "Hafiz Team", "contactNo": "013-111", "isActive": True, "maxAssignments": 2},
            {"id": 8, "name": "Ravi Fibre", "email": "ravi@example.com", "isActive": False},
            {"id": "9", "name": "Chong Installers", "isActive": True},
        ],
        orders=[
            {"id": 1, "status": "assigned", "serviceInstallerId": 7},
            {"id": 2, "status": "in_progress", "serviceInstallerId": "7"},
            {"id": 3, "status": "completed", "serviceInstallerId": 7,
             "assignedDate": "2025-04-01T08:00:00", "completedDate": "2025-04-01T12:00:00",
             "appointmentDate": "2025-04-01T10:00:00"},
            {"id": 4, "status": "completed", "serviceInstallerId": 7,
             "assignedDate": "2025-04-01T00:00:00", "completedDate": "2025-04-03T00:00:00",
             "appointmentDate": "2025-04-02T09:00:00"},
            {"id": 5, "status": "cancelled", "serviceInstallerId": 7},
            {"id": 6, "status": "pending"},
        ],
    )


def test_stats_split_assigned_orders(state):
    stats = {str(i.id): i.order_stats for i in installers.get_service_installers_with_stats(state)}
    assert stats["7"].total_assigned == 5
    assert (stats["7"].completed, stats["7"].in_progress, stats["7"].pending) == (2, 1, 2)
    assert stats["9"].total_assigned == 0


def test_availability_respects_ceiling_and_active_flag(state):
    availability = installers.get_service_installer_availability(state)
    busy = availability["7"]
    assert not busy.available
    assert busy.reason == "Max assignments reached"
    assert (busy.active_assignments, busy.max_assignments) == (2, 2)

    assert availability["8"].available is False
    assert availability["8"].reason == "Inactive"

    free = availability["9"]
    assert free.available and free.reason is None
    assert free.max_assignments == 5


def test_performance_rates(state):
    perf = installers.get_service_installer_performance(state)["7"]
    assert (perf.total_assigned, perf.completed, perf.cancelled) == (5, 2, 1)
    assert perf.completion_rate == pytest.approx(40.0)
    assert perf.average_completion_hours == pytest.approx(26.0)
    assert perf.on_time_rate == pytest.approx(50.0)


def test_performance_without_orders_is_all_zero(state):
    perf = installers.get_service_installer_performance(state)["9"]
    assert perf.completion_rate == 0
    assert perf.average_completion_hours == 0
    assert perf.on_time_rate == 0


def test_workload_orders_least_busy_first(state):
    ordered = [str(i.id) for i in installers.get_service_installers_by_workload(state)]
    assert ordered == ["8", "9", "7"]


def test_active_lists_and_dropdown(state):
    assert [str(i.id) for i in installers.get_active_service_installers(state)] == ["7", "9"]
    assert [str(i.id) for i in installers.get_inactive_service_installers(state)] == ["8"]
    assert [(o.value, o.label) for o in installers.get_service_installers_for_dropdown(state)] == [
        ("7", "Hafiz Team"),
        ("9", "Chong Installers"),
    ]


def test_search_over_name_phone_and_email(state):
    assert [str(i.id) for i in installers.search_service_installers(state, "013")] == ["7"]
    assert [str(i.id) for i in installers.search_service_installers(state, "RAVI@")] == ["8"]
    assert installers.get_service_installer_by_id(state, 9).name == "Chong Installers"
