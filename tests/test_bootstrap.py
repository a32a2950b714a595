import asyncio

import httpx
import pytest

from cephas.auth.session import CredentialStore
from cephas.selectors import auth, buildings, materials, orders
from cephas.services.api_client import ApiError, CephasClient
from cephas.services.bootstrap import bootstrap, restore_session, sign_in, sign_out
from cephas.state import AppState, build_state


def envelope(data=None, success=True, message="Success"):
    return {"success": success, "message": message, "data": data}


def make_client(routes, token=None):
    """Client whose transport answers from ``routes``: path -> (status, body)."""
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path not in routes:
            return httpx.Response(404, json=envelope(success=False, message="Not Found"))
        status, body = routes[request.url.path]
        if isinstance(body, Exception):
            raise body
        return httpx.Response(status, json=body)

    return CephasClient(base_url="http://tracker.test", token=token, transport=httpx.MockTransport(handler))


def run(coro):
    return asyncio.run(coro)


# ---------- client ----------

def test_client_unwraps_envelope_and_sends_token():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json=envelope([{"id": 1}]))

    async def go():
        async with CephasClient(base_url="http://t", token="abc", transport=httpx.MockTransport(handler)) as client:
            return await client.list("buildings")

    assert run(go()) == [{"id": 1}]
    assert seen["auth"] == "Bearer abc"


def test_client_raises_on_failure_envelope():
    client = make_client({"/orders": (409, envelope(success=False, message="Cannot change status"))})
    with pytest.raises(ApiError) as info:
        run(client.list("orders"))
    assert info.value.message == "Cannot change status"
    assert info.value.status_code == 409


def test_client_flags_unauthorized():
    client = make_client({"/auth/me": (401, envelope(success=False, message="Token expired"))})
    with pytest.raises(ApiError) as info:
        run(client.me())
    assert info.value.unauthorized


def test_client_wraps_network_errors():
    client = make_client({"/materials": (0, httpx.ConnectError("refused"))})
    with pytest.raises(ApiError, match="Network error"):
        run(client.list("materials"))


def test_unknown_collection():
    with pytest.raises(KeyError):
        run(make_client({}).list("invoices"))


# ---------- bootstrap ----------

def test_partial_failure_keeps_successful_collections():
    client = make_client({
        "/buildings": (200, envelope([{"id": 1, "name": "Sunway Velocity"}])),
        "/materials": (500, envelope(success=False, message="Inventory service down")),
        "/service-installers": (200, envelope([])),
        "/orders": (200, envelope([{"id": 5, "status": "pending"}])),
    })
    state = AppState()
    result = run(bootstrap(client, state))

    assert not result.ok
    assert result.failures == {"materials": "Inventory service down"}
    assert set(result.loaded) == {"buildings", "service_installers", "orders"}

    assert [b.name for b in buildings.get_buildings_list(state)] == ["Sunway Velocity"]
    assert not buildings.get_buildings_loading(state)
    assert materials.get_materials_list(state) == []
    assert materials.get_materials_error(state) == "Inventory service down"
    assert not materials.get_materials_loading(state)
    assert len(orders.get_orders_list(state)) == 1


def test_failed_reload_keeps_previous_items():
    state = build_state(materials=[{"id": 1, "sapCode": "SAP1"}])
    client = make_client({"/materials": (0, httpx.ReadTimeout("slow"))})
    result = run(bootstrap(client, state, collections=("materials",)))
    assert "materials" in result.failures
    assert [m.sap_code for m in materials.get_materials_list(state)] == ["SAP1"]


def test_numeric_text_fields_are_read_as_strings():
    client = make_client({
        "/buildings": (200, envelope([{"id": "b1", "contactPerson": 60123456}])),
        "/materials": (200, envelope([{"id": "m1", "sapCode": 100234}])),
    })
    state = AppState()
    result = run(bootstrap(client, state, collections=("buildings", "materials")))

    assert result.ok
    assert buildings.get_buildings_list(state)[0].contact_person == "60123456"
    assert materials.get_material_by_sap_code(state, "100234") is not None


def test_invalid_record_fails_only_its_collection():
    state = build_state(splitters=[{"id": "s0", "portCount": 16}])
    client = make_client({
        "/splitters": (200, envelope([{"id": "s1", "portCount": "many"}])),
        "/materials": (200, envelope([{"id": "m1", "sapCode": "SAP1"}])),
        "/orders": (200, envelope({"id": "not-a-list"})),
    })
    result = run(bootstrap(client, state, collections=("splitters", "materials", "orders")))

    assert result.loaded == ["materials"]
    assert result.failures["splitters"].startswith("Malformed splitters payload")
    assert result.failures["orders"] == "Malformed orders payload: expected a list"
    assert [m.sap_code for m in materials.get_materials_list(state)] == ["SAP1"]
    # previous splitters survive the bad reload
    assert [s.id for s in state.splitters.items] == ["s0"]
    for name in ("splitters", "materials", "orders"):
        assert not state.collection(name).loading


def test_everything_loaded():
    client = make_client({"/buildings": (200, envelope([])), "/orders": (200, envelope(None))})
    result = run(bootstrap(client, AppState(), collections=("buildings", "orders")))
    assert result.ok


# ---------- session wiring ----------

def test_sign_in_persists_credentials(tmp_path):
    store = CredentialStore(str(tmp_path / "credentials.json"))
    user = {"id": "u-1", "username": "aisha", "role": "supervisor", "isActive": True}
    client = make_client({"/auth/login": (200, envelope({"token": "jwt", "tokenType": "bearer", "user": user}))})
    state = AppState()

    signed = run(sign_in(client, state, store, "aisha", "pw"))
    assert signed.username == "aisha"
    assert auth.is_authenticated(state)
    assert client.token == "jwt"

    restored = AppState()
    assert restore_session(restored, store)
    assert auth.get_user_role(restored).value == "supervisor"

    sign_out(restored, store)
    assert not auth.is_authenticated(restored)
    assert not restore_session(AppState(), store)


def test_sign_in_failure_records_error(tmp_path):
    store = CredentialStore(str(tmp_path / "credentials.json"))
    client = make_client({"/auth/login": (401, envelope(success=False, message="Invalid credentials"))})
    state = AppState()
    assert run(sign_in(client, state, store, "aisha", "wrong")) is None
    assert auth.get_auth_error(state) == "Invalid credentials"
    assert not auth.is_auth_loading(state)
    assert not auth.is_authenticated(state)
