"""Selectors over the signed-in session."""
from datetime import datetime
from typing import Any, List, Optional

from ..schemas.enums import Role
from ..schemas.records import User
from ..state import AppState
from .common import AnyOf
from .users import full_name_of, permissions_of


def get_current_user(state: AppState) -> Optional[User]:
    return state.auth.user if state is not None else None


def get_auth_token(state: AppState) -> Optional[str]:
    return state.auth.token if state is not None else None


def is_auth_loading(state: AppState) -> bool:
    return bool(state.auth.loading) if state is not None else False


def get_auth_error(state: AppState) -> Optional[str]:
    return state.auth.error if state is not None else None


def is_authenticated(state: AppState) -> bool:
    """A non-empty stored token counts as signed in; expiry is the server's concern."""
    return bool(get_auth_token(state))


def get_user_role(state: AppState) -> Optional[Role]:
    user = get_current_user(state)
    return Role.parse(user.role) if user is not None else None


def get_session_permissions(state: AppState) -> List[str]:
    return permissions_of(get_current_user(state))


def session_has_permission(state: AppState, permission: str) -> bool:
    return permission in get_session_permissions(state)


def get_user_full_name(state: AppState) -> str:
    return full_name_of(get_current_user(state))


def get_user_initials(state: AppState) -> str:
    user = get_current_user(state)
    if user is None:
        return ""
    return f"{(user.first_name or '')[:1]}{(user.last_name or '')[:1]}".upper()


def has_role(state: AppState, role: Any) -> bool:
    wanted = AnyOf.coerce(role)
    current = get_user_role(state)
    if wanted is None or current is None:
        return False
    return any(Role.parse(r) == current for r in wanted.values)


def get_last_login_time(state: AppState) -> Optional[datetime]:
    user = get_current_user(state)
    return user.last_login if user is not None else None
