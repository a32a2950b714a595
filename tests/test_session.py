import json

from cephas.auth.session import CredentialStore
from cephas.schemas.records import User


def test_missing_file_is_an_empty_session(tmp_path):
    session = CredentialStore(str(tmp_path / "credentials.json")).load()
    assert session.token is None and session.user is None


def test_save_then_load(tmp_path):
    store = CredentialStore(str(tmp_path / "nested" / "credentials.json"))
    user = User(id="u-1", username="aisha", role="supervisor", is_active=True)
    saved = store.save("jwt-token", user)
    assert saved.token == "jwt-token"

    loaded = store.load()
    assert loaded.token == "jwt-token"
    assert loaded.user.username == "aisha"
    assert loaded.user.role == "supervisor"

    stored = json.loads((tmp_path / "nested" / "credentials.json").read_text())
    assert stored["user"]["isActive"] is True


def test_clear_removes_credentials(tmp_path):
    store = CredentialStore(str(tmp_path / "credentials.json"))
    store.save("jwt-token")
    store.clear()
    assert store.load().token is None
    # clearing twice is harmless
    store.clear()


def test_unreadable_or_tokenless_files_are_ignored(tmp_path):
    path = tmp_path / "credentials.json"
    path.write_text("{not json")
    assert CredentialStore(str(path)).load().token is None

    path.write_text(json.dumps({"token": "", "user": {"username": "x"}}))
    assert CredentialStore(str(path)).load().token is None


def test_invalid_profile_keeps_the_token(tmp_path):
    path = tmp_path / "credentials.json"
    path.write_text(json.dumps({"token": "abc", "user": {"isActive": "not-a-bool"}}))
    session = CredentialStore(str(path)).load()
    assert session.token == "abc"
    assert session.user is None
