"""
Persisted credential: the bearer token plus the signed-in user's profile.

Read at startup and after login, cleared at logout. A non-empty token is all
the gate needs to treat the session as authenticated.
"""
import json
import os
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError

from ..config import settings
from ..schemas.records import User
from ..state import AuthSession

logger = structlog.get_logger(__name__)


class CredentialStore:
    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.credential_path)

    def load(self) -> AuthSession:
        """Return the stored session, or an empty one when nothing usable is stored."""
        if not self.path.exists():
            return AuthSession()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("credentials_unreadable", path=str(self.path), error=str(exc))
            return AuthSession()
        token = raw.get("token") if isinstance(raw, dict) else None
        if not token:
            return AuthSession()
        user = None
        if raw.get("user"):
            try:
                user = User.model_validate(raw["user"])
            except ValidationError as exc:
                logger.warning("credentials_profile_invalid", path=str(self.path), error=str(exc))
        return AuthSession(token=token, user=user)

    def save(self, token: str, user: Optional[User] = None) -> AuthSession:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"token": token, "user": user.to_wire() if user is not None else None}
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(payload), encoding="utf-8")
        os.replace(tmp, self.path)
        return AuthSession(token=token, user=user)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
