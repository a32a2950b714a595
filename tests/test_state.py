import pytest

from cephas.schemas.records import Building, Order
from cephas.selectors import buildings, orders
from cephas.state import AppState, AuthSession, build_state


def test_receive_validates_wire_payloads():
    state = AppState()
    state.begin_loading("orders")
    assert orders.get_orders_loading(state)

    state.receive("orders", [{"id": 1, "trackerId": "TR25040001", "serviceInstallerId": "7"}])
    order = orders.get_orders_list(state)[0]
    assert isinstance(order, Order)
    assert order.tracker_id == "TR25040001"
    assert not orders.get_orders_loading(state)
    assert orders.get_total_orders_count(state) == 1


def test_receive_keeps_server_total_count():
    state = AppState()
    state.receive("buildings", [Building(id=1, name="A")], total_count=40)
    assert buildings.get_total_buildings_count(state) == 40


def test_failed_fetch_keeps_last_known_items_by_default():
    state = build_state(buildings=[{"id": 1, "name": "Sunway"}])
    state.begin_loading("buildings")
    state.fail("buildings", "Network error")
    assert buildings.get_buildings_error(state) == "Network error"
    assert [b.name for b in buildings.get_buildings_list(state)] == ["Sunway"]

    state.fail("buildings", "Still down", keep_items=False)
    assert buildings.get_buildings_list(state) == []
    assert buildings.get_total_buildings_count(state) == 0


def test_begin_loading_clears_the_previous_error():
    state = AppState()
    state.fail("materials", "boom")
    state.begin_loading("materials")
    assert state.materials.error is None and state.materials.loading


def test_missing_collection_reads_as_empty():
    state = AppState(orders=None)
    assert orders.get_orders_list(state) == []
    assert orders.get_total_orders_count(state) == 0
    assert orders.get_orders_error(state) is None
    assert orders.get_orders_list(None) == []


def test_unknown_collection_is_rejected():
    with pytest.raises(KeyError, match="invoices"):
        AppState().collection("invoices")


def test_reset_clears_everything():
    state = build_state(orders=[{"id": 1}])
    state.auth = AuthSession(token="t")
    state.reset()
    assert orders.get_orders_list(state) == []
    assert state.auth.token is None
    assert state.notifications == []
