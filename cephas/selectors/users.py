from datetime import datetime
from typing import Any, List, Optional

from ..auth.access import get_default_permissions
from ..schemas.enums import Role
from ..schemas.records import User
from ..schemas.views import UsersStats, UserWithDetails
from ..state import AppState
from .common import (
    AnyOf,
    error_of,
    find_by_id,
    items_of,
    loading_of,
    local_now,
    search,
    to_local,
    total_count_of,
)

USER_SEARCH_FIELDS = ("first_name", "last_name", "email", "username")
INACTIVE_AFTER_DAYS = 30
RECENTLY_ACTIVE_DAYS = 7


def full_name_of(user: Optional[User]) -> str:
    if user is None:
        return ""
    return f"{user.first_name or ''} {user.last_name or ''}".strip()


def permissions_of(user: Optional[User]) -> List[str]:
    """Explicit permissions when the profile carries them, else the role defaults."""
    if user is None:
        return []
    if user.permissions is not None:
        return list(user.permissions)
    return get_default_permissions(user.role)


def _days_since(value: Any, now: datetime) -> Optional[int]:
    seen = to_local(value)
    if seen is None:
        return None
    return int((now - seen).total_seconds() // 86400)


def get_users_list(state: AppState) -> List[User]:
    return items_of(state, "users")


def get_users_loading(state: AppState) -> bool:
    return loading_of(state, "users")


def get_users_error(state: AppState) -> Optional[str]:
    return error_of(state, "users")


def get_total_users_count(state: AppState) -> int:
    return total_count_of(state, "users")


def get_user_by_id(state: AppState, user_id: Any) -> Optional[User]:
    return find_by_id(get_users_list(state), user_id)


def get_users_by_role(state: AppState, role: Any = None) -> List[User]:
    """Role filter; stored role spellings are normalized before comparison."""
    wanted = AnyOf.coerce(role)
    users = get_users_list(state)
    if wanted is None:
        return list(users)
    roles = {Role.parse(r) for r in wanted.values} - {None}
    return [u for u in users if u.role in wanted or Role.parse(u.role) in roles]


def get_active_users(state: AppState) -> List[User]:
    return [u for u in get_users_list(state) if u.is_active]


def get_inactive_users(state: AppState) -> List[User]:
    return [u for u in get_users_list(state) if not u.is_active]


def get_user_permissions(state: AppState, user_id: Any) -> List[str]:
    return permissions_of(get_user_by_id(state, user_id))


def has_permission(state: AppState, user_id: Any, permission: str) -> bool:
    permissions = get_user_permissions(state, user_id)
    return "all" in permissions or permission in permissions


def get_users_with_details(state: AppState, now: Optional[datetime] = None) -> List[UserWithDetails]:
    current = local_now(now)
    result = []
    for user in get_users_list(state):
        days = _days_since(user.last_activity_at, current)
        data = user.model_dump()
        data["permissions"] = permissions_of(user)
        result.append(
            UserWithDetails(
                **data,
                full_name=full_name_of(user),
                days_inactive=days,
                is_inactive_too_long=days is not None and days > INACTIVE_AFTER_DAYS,
            )
        )
    return result


def get_users_stats(state: AppState, now: Optional[datetime] = None) -> UsersStats:
    current = local_now(now)
    users = get_users_list(state)
    by_role = {r.value: 0 for r in Role}
    recently_active = 0
    for user in users:
        role = Role.parse(user.role)
        if role is not None:
            by_role[role.value] += 1
        days = _days_since(user.last_activity_at, current)
        if days is not None and days < RECENTLY_ACTIVE_DAYS:
            recently_active += 1
    return UsersStats(
        total=len(users),
        active=sum(1 for u in users if u.is_active),
        inactive=sum(1 for u in users if not u.is_active),
        by_role=by_role,
        recently_active=recently_active,
    )


def search_users(state: AppState, query: Optional[str] = None) -> List[User]:
    return search(get_users_list(state), query, USER_SEARCH_FIELDS)
