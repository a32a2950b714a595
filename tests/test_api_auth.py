from datetime import datetime, timedelta, timezone

from cephas.models.models import PasswordReset, User
from conftest import PASSWORD


def login(client, identifier, password=PASSWORD):
    return client.post("/auth/login", json={"identifier": identifier, "password": password})


# ---------- login ----------

def test_login_by_username_or_email(client, make_user):
    make_user("supervisor", username="daniel", email="daniel@cephas.my")
    for identifier in ("daniel", "daniel@cephas.my"):
        res = login(client, identifier)
        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert body["message"] == "Login successful"
        assert body["data"]["token"]
        assert body["data"]["tokenType"] == "bearer"
        assert body["data"]["user"]["username"] == "daniel"
        assert "passwordHash" not in body["data"]["user"]


def test_login_records_activity(client, make_user, db):
    user = make_user("warehouse")
    assert login(client, user.username).status_code == 200
    db.expire_all()
    fresh = db.query(User).filter(User.id == user.id).first()
    assert fresh.last_login is not None
    assert fresh.last_activity_at is not None


def test_bad_credentials_use_failure_envelope(client, make_user):
    make_user("supervisor", username="daniel")
    res = login(client, "daniel", "wrong-password")
    assert res.status_code == 401
    assert res.json() == {"success": False, "message": "Invalid credentials", "data": None}
    assert login(client, "nobody").status_code == 401


def test_deactivated_account_cannot_login(client, make_user):
    make_user("installer", username="kamal", is_active=False)
    res = login(client, "kamal")
    assert res.status_code == 403
    assert res.json()["message"] == "Account is deactivated"


def test_malformed_body_is_a_validation_failure(client):
    res = client.post("/auth/login", json={"identifier": "daniel"})
    assert res.status_code == 422
    body = res.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert any("password" in err["loc"] for err in body["data"])


# ---------- me ----------

def test_me_requires_token(client):
    res = client.get("/auth/me")
    assert res.status_code == 401
    assert res.json()["message"] == "Not authenticated"


def test_me_rejects_garbage_token(client):
    res = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401
    assert res.json()["message"] == "Invalid token"


def test_me_describes_role(client, make_user, auth_headers):
    user = make_user("warehouse")
    res = client.get("/auth/me", headers=auth_headers(user))
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["roleName"] == "Warehouse Manager"
    assert data["dashboard"] == "WarehouseDashboard"
    assert data["modules"] == ["dashboard", "material", "search"]
    assert data["permissions"] == ["update_stock", "create_material", "edit_material"]


def test_me_prefers_explicit_permissions(client, make_user, auth_headers):
    user = make_user("supervisor", permissions=["view_report"])
    data = client.get("/auth/me", headers=auth_headers(user)).json()["data"]
    assert data["permissions"] == ["view_report"]


def test_deactivated_user_token_stops_working(client, make_user, auth_headers, db):
    user = make_user("supervisor")
    headers = auth_headers(user)
    user.is_active = False
    db.commit()
    res = client.get("/auth/me", headers=headers)
    assert res.status_code == 401
    assert res.json()["message"] == "User not active"


# ---------- password reset ----------

FORGOT_MESSAGE = "If the email is registered, a reset link has been sent"


def test_forgot_password_answers_the_same_for_unknown_email(client, db):
    res = client.post("/auth/forgot-password", json={"email": "ghost@example.com"})
    assert res.status_code == 200
    assert res.json()["message"] == FORGOT_MESSAGE
    assert db.query(PasswordReset).count() == 0


def test_password_reset_flow(client, make_user, db):
    user = make_user("accountant", email="lim@example.com")
    res = client.post("/auth/forgot-password", json={"email": "lim@example.com"})
    assert res.json()["message"] == FORGOT_MESSAGE

    reset = db.query(PasswordReset).filter(PasswordReset.user_id == user.id).one()
    res = client.post("/auth/reset-password", json={"token": reset.token, "password": "brand-new-pass"})
    assert res.status_code == 200
    assert res.json()["message"] == "Password has been reset"

    assert login(client, user.username).status_code == 401
    assert login(client, user.username, "brand-new-pass").status_code == 200

    # a token works once
    again = client.post("/auth/reset-password", json={"token": reset.token, "password": "another-pass"})
    assert again.status_code == 400
    assert again.json()["message"] == "Invalid or expired token"


def test_expired_reset_token_is_rejected(client, make_user, db):
    user = make_user("accountant")
    db.add(
        PasswordReset(
            user_id=user.id,
            token="expired-token",
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
        )
    )
    db.commit()
    res = client.post("/auth/reset-password", json={"token": "expired-token", "password": "brand-new-pass"})
    assert res.status_code == 400


def test_reset_password_enforces_length(client):
    res = client.post("/auth/reset-password", json={"token": "whatever", "password": "short"})
    assert res.status_code == 422
