from datetime import datetime

import pytest

from cephas.schemas.enums import OrderStatus, OrderType
from cephas.selectors import activations, orders
from cephas.selectors.common import AnyOf
from cephas.state import build_state


@pytest.fixture
def state():
    return build_state(
        orders=[
            {"id": 1, "customer": "Ahmad Zainal", "customerPhone": "012-345", "status": "pending",
             "orderType": "activation", "buildingId": 10, "appointmentDate": "2025-04-02T23:59:59"},
            {"id": 2, "customer": "Lee Wei Ming", "status": "assigned", "orderType": "modification",
             "buildingId": "10", "serviceInstallerId": 7, "appointmentDate": "2025-04-01T23:59:59"},
            {"id": "3", "customer": "Sarah Tan", "tbbnoId": "TBBN-99", "status": "completed",
             "orderType": "assurance", "serviceInstallerId": "7", "appointmentDate": "2025-04-05T09:00:00"},
            {"id": 4, "customer": "Legacy", "status": "on_hold", "orderType": "activation"},
        ],
        activations=[
            {"id": 11, "name": "Nurul", "trbnNo": "TRBN1", "orderType": "activation", "orderSubType": "upgrade",
             "status": "completed", "materialsAssigned": True},
            {"id": 12, "name": "Kumar", "building": "Parkview", "orderType": "activation", "status": "pending"},
            {"id": 13, "name": "Wong", "orderType": "modification", "status": "completed"},
        ],
    )


# ---------- filters ----------

@pytest.mark.parametrize("criterion", [None, [], "", ()])
def test_empty_status_filter_returns_whole_collection(state, criterion):
    assert orders.get_orders_by_status(state, criterion) == orders.get_orders_list(state)


def test_status_filter_accepts_scalar_list_and_enum(state):
    assert [str(o.id) for o in orders.get_orders_by_status(state, "pending")] == ["1"]
    both = orders.get_orders_by_status(state, ["pending", OrderStatus.assigned])
    assert {str(o.id) for o in both} == {"1", "2"}
    assert len(orders.get_orders_by_status(state, AnyOf(["completed"]))) == 1


def test_reference_filters_compare_ids_as_strings(state):
    assert {str(o.id) for o in orders.get_orders_by_building(state, "10")} == {"1", "2"}
    assert {str(o.id) for o in orders.get_orders_by_service_installer(state, 7)} == {"2", "3"}


def test_order_by_id_handles_mixed_id_types(state):
    assert orders.get_order_by_id(state, 3).customer == "Sarah Tan"
    assert orders.get_order_by_id(state, "999") is None
    assert orders.get_order_by_id(state, None) is None


def test_status_counts_cover_known_buckets_only(state):
    counts = orders.get_order_status_counts(state)
    assert counts["total"] == 4
    assert counts["pending"] == 1 and counts["assigned"] == 1 and counts["completed"] == 1
    buckets = sum(v for k, v in counts.items() if k != "total")
    # the legacy on_hold order is outside the enumerated statuses
    assert buckets == 3 < counts["total"]


def test_type_counts_sum_to_total_when_every_type_is_known(state):
    counts = orders.get_order_type_counts(state)
    assert sum(counts[t.value] for t in OrderType) == counts["total"] == 4


def test_todays_orders_use_local_calendar_day(state):
    for hour in (0, 12, 23):
        today = orders.get_todays_orders(state, now=datetime(2025, 4, 2, hour, 30))
        assert [str(o.id) for o in today] == ["1"]


def test_this_weeks_orders_run_sunday_through_saturday(state):
    week = orders.get_this_weeks_orders(state, now=datetime(2025, 4, 2, 10, 0))
    assert {str(o.id) for o in week} == {"1", "2", "3"}
    next_week = orders.get_this_weeks_orders(state, now=datetime(2025, 4, 6, 0, 0))
    assert next_week == []


def test_date_range_is_inclusive_and_skips_undated(state):
    found = orders.get_orders_by_date_range(state, "2025-04-01T23:59:59", datetime(2025, 4, 2, 23, 59, 59))
    assert {str(o.id) for o in found} == {"1", "2"}
    assert len(orders.get_orders_by_date_range(state)) == 4


def test_unassigned_and_search(state):
    assert {str(o.id) for o in orders.get_unassigned_orders(state)} == {"1", "4"}
    assert [o.customer for o in orders.search_orders(state, "tbbn-99")] == ["Sarah Tan"]
    assert [o.customer for o in orders.search_orders(state, "012")] == ["Ahmad Zainal"]
    assert len(orders.search_orders(state, "")) == 4


# ---------- activations ----------

def test_activation_subtype_counts_only_count_activations(state):
    counts = activations.get_activation_subtype_counts(state)
    assert counts == {"upgrade": 1, "default": 1, "total": 2}


def test_active_connections_are_completed_activations(state):
    assert [str(a.id) for a in activations.get_active_connections(state)] == ["11"]


def test_activations_without_materials(state):
    assert {str(a.id) for a in activations.get_activations_without_materials(state)} == {"12", "13"}


def test_search_activations_by_building_name(state):
    assert [a.name for a in activations.search_activations(state, "park")] == ["Kumar"]
    assert [a.name for a in activations.search_activations(state, "trbn1")] == ["Nurul"]


def test_missing_collection_reads_as_empty():
    state = build_state()
    state.orders = None
    assert orders.get_orders_list(state) == []
    assert orders.get_total_orders_count(state) == 0
    assert orders.get_order_status_counts(state)["total"] == 0
