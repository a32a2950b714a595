from datetime import datetime

import pytest

from cephas.schemas.enums import Role
from cephas.schemas.records import Notification, User
from cephas.selectors import auth, notifications, users
from cephas.state import AppState, AuthSession, build_state

NOW = datetime(2025, 4, 2, 12, 0)


@pytest.fixture
def state():
    return build_state(
        users=[
            {"id": 1, "firstName": "Aisha", "lastName": "Rahman", "username": "aisha",
             "email": "aisha@cephas.my", "role": "super_admin", "isActive": True,
             "lastActivityAt": "2025-04-01T12:00:00"},
            {"id": 2, "firstName": "Daniel", "username": "daniel", "role": "Supervisor", "isActive": True,
             "permissions": ["view_report"], "lastActivityAt": "2025-02-01T12:00:00"},
            {"id": 3, "firstName": "Kamal", "lastName": "Idris", "role": "service_installer", "isActive": False},
            {"id": 4, "username": "ghost", "role": "ghost", "isActive": True},
        ]
    )


# ---------- users ----------

def test_role_filter_normalizes_stored_spellings(state):
    assert [u.id for u in users.get_users_by_role(state, "installer")] == [3]
    assert [u.id for u in users.get_users_by_role(state, Role.supervisor)] == [2]
    assert [u.id for u in users.get_users_by_role(state, ["super_admin", "supervisor"])] == [1, 2]
    assert len(users.get_users_by_role(state, None)) == 4


def test_permissions_fall_back_to_role_defaults(state):
    assert "all" in users.get_user_permissions(state, 1)
    assert users.get_user_permissions(state, 2) == ["view_report"]
    assert users.get_user_permissions(state, 4) == []
    assert users.get_user_permissions(state, 99) == []


def test_all_permission_grants_everything(state):
    assert users.has_permission(state, 1, "anything_at_all")
    assert users.has_permission(state, 2, "view_report")
    assert not users.has_permission(state, 2, "assign_job")


def test_users_with_details(state):
    details = {u.id: u for u in users.get_users_with_details(state, now=NOW)}
    assert details[1].full_name == "Aisha Rahman"
    assert details[1].days_inactive == 1 and not details[1].is_inactive_too_long
    assert details[2].full_name == "Daniel"
    assert details[2].days_inactive == 60 and details[2].is_inactive_too_long
    assert details[3].days_inactive is None and not details[3].is_inactive_too_long
    assert details[3].permissions == ["complete_job", "update_stock"]


def test_users_stats(state):
    stats = users.get_users_stats(state, now=NOW)
    assert (stats.total, stats.active, stats.inactive, stats.recently_active) == (4, 3, 1, 1)
    assert stats.by_role == {
        "super_admin": 1, "supervisor": 1, "installer": 1, "accountant": 0, "warehouse": 0,
    }


def test_user_search(state):
    assert [u.id for u in users.search_users(state, "CEPHAS.MY")] == [1]
    assert [u.id for u in users.search_users(state, "idris")] == [3]
    assert [u.id for u in users.get_inactive_users(state)] == [3]


# ---------- session ----------

@pytest.fixture
def session_state():
    user = User(id=9, first_name="nur", last_name="izzah", role="warehouse", last_login=NOW)
    return AppState(auth=AuthSession(token="tok", user=user))


def test_session_identity(session_state):
    assert auth.is_authenticated(session_state)
    assert auth.get_user_role(session_state) == Role.warehouse
    assert auth.get_user_full_name(session_state) == "nur izzah"
    assert auth.get_user_initials(session_state) == "NI"
    assert auth.get_last_login_time(session_state) == NOW


def test_session_role_and_permission_checks(session_state):
    assert auth.has_role(session_state, ["warehouse", "accountant"])
    assert not auth.has_role(session_state, "supervisor")
    assert not auth.has_role(session_state, [])
    assert auth.session_has_permission(session_state, "update_stock")
    assert not auth.session_has_permission(session_state, "manage_users")


def test_signed_out_session():
    state = AppState(auth=AuthSession(token=""))
    assert not auth.is_authenticated(state)
    assert auth.get_user_role(state) is None
    assert auth.get_user_initials(state) == ""
    assert auth.get_current_user(None) is None
    assert auth.get_session_permissions(state) == []


# ---------- notifications ----------

def test_notification_feed():
    state = AppState(
        notifications=[
            Notification(id=1, title="Order assigned", created_at="2025-04-01T09:00:00", read=True),
            Notification(id=2, title="Low stock", created_at="2025-04-02T09:00:00"),
            Notification(id=3, title="Undated"),
        ]
    )
    assert notifications.get_unread_notifications_count(state) == 2
    assert [n.id for n in notifications.get_recent_notifications(state)] == [2, 1, 3]
    assert [n.id for n in notifications.get_recent_notifications(state, limit=1)] == [2]
    assert notifications.get_notification_by_id(state, "3").title == "Undated"
    assert notifications.get_notifications(None) == []
