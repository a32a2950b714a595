"""
Per-navigation authorization decisions.

Nothing here is cached: every navigation builds a fresh ``Identity`` from the
current session and asks the gate again, since the token or the role may
have changed in between.
"""
import enum
from typing import Iterable, Optional

from pydantic import BaseModel

from ..schemas.enums import Role
from ..state import AppState, AuthSession
from .access import is_user_authorized

LOGIN_PATH = "/login"
DASHBOARD_PATH = "/dashboard"
UNAUTHORIZED_PATH = "/unauthorized"
RESET_PASSWORD_PATH = "/reset-password"

PUBLIC_PATHS = frozenset({LOGIN_PATH, "/forgot-password", RESET_PASSWORD_PATH})


class GateState(str, enum.Enum):
    unauthenticated = "unauthenticated"
    authenticated_no_role = "authenticated_no_role"
    authorized = "authorized"
    unauthorized = "unauthorized"


class Identity(BaseModel):
    token: Optional[str] = None
    role: Optional[Role] = None

    class Config:
        frozen = True

    @property
    def authenticated(self) -> bool:
        return bool(self.token)

    @classmethod
    def from_session(cls, session: Optional[AuthSession]) -> "Identity":
        if session is None:
            return cls()
        role = Role.parse(session.user.role) if session.user is not None else None
        return cls(token=session.token or None, role=role)

    @classmethod
    def from_state(cls, state: Optional[AppState]) -> "Identity":
        return cls.from_session(state.auth if state is not None else None)


class GateDecision(BaseModel):
    state: GateState
    redirect: Optional[str] = None

    class Config:
        frozen = True

    @property
    def allowed(self) -> bool:
        return self.redirect is None


def is_public_path(path: str) -> bool:
    return path in PUBLIC_PATHS or path.startswith(RESET_PASSWORD_PATH + "/")


def authenticate(identity: Identity) -> GateDecision:
    """Only checks for a session. Signed-in users without a role pass with their own state."""
    if not identity.authenticated:
        return GateDecision(state=GateState.unauthenticated, redirect=LOGIN_PATH)
    if identity.role is None:
        return GateDecision(state=GateState.authenticated_no_role)
    return GateDecision(state=GateState.authorized)


def authorize(identity: Identity, roles: Optional[Iterable] = None) -> GateDecision:
    """Decide whether ``identity`` may view a component restricted to ``roles``.

    ``roles=None`` means the component itself declares no restriction; a role
    is still required to view it.
    """
    if not identity.authenticated:
        return GateDecision(state=GateState.unauthenticated, redirect=LOGIN_PATH)
    if identity.role is None:
        return GateDecision(state=GateState.authenticated_no_role, redirect=UNAUTHORIZED_PATH)
    if roles is None:
        return GateDecision(state=GateState.authorized)
    if is_user_authorized(identity.role, roles):
        return GateDecision(state=GateState.authorized)
    return GateDecision(state=GateState.unauthorized, redirect=UNAUTHORIZED_PATH)


def guard_public(identity: Identity) -> GateDecision:
    """Public pages are for signed-out users; everyone else lands on the dashboard."""
    if identity.authenticated:
        state = GateState.authorized if identity.role is not None else GateState.authenticated_no_role
        return GateDecision(state=state, redirect=DASHBOARD_PATH)
    return GateDecision(state=GateState.unauthenticated)
