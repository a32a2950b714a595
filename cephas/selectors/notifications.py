from datetime import datetime
from typing import Any, List, Optional

from ..schemas.records import Notification
from ..state import AppState
from .common import find_by_id, to_local

RECENT_NOTIFICATIONS_LIMIT = 5


def get_notifications(state: AppState) -> List[Notification]:
    if state is None:
        return []
    return state.notifications or []


def get_unread_notifications_count(state: AppState) -> int:
    return sum(1 for n in get_notifications(state) if not n.read)


def get_recent_notifications(state: AppState, limit: int = RECENT_NOTIFICATIONS_LIMIT) -> List[Notification]:
    """Newest first; undated notifications go last."""
    def _key(notification: Notification):
        created = to_local(notification.created_at)
        return (created is not None, created or datetime.min)

    return sorted(get_notifications(state), key=_key, reverse=True)[:limit]


def get_notification_by_id(state: AppState, notification_id: Any) -> Optional[Notification]:
    return find_by_id(get_notifications(state), notification_id)
