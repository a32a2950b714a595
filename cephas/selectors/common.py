"""
Shared building blocks for the selector modules.

All helpers are pure and total: a record missing the attribute being read is
treated as carrying the neutral value (None / empty string / zero) and simply
fails to match, it never raises.
"""
import enum
from collections.abc import Iterable
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..config import settings
from ..schemas.records import _loose_datetime
from ..state import AppState, Collection


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, enum.Enum) else value


class AnyOf:
    """Filter criterion: a scalar is a one-element set, a sequence is membership."""

    __slots__ = ("values",)

    def __init__(self, values: Iterable):
        self.values = frozenset(_plain(v) for v in values)

    @classmethod
    def coerce(cls, criterion: Any) -> Optional["AnyOf"]:
        """Return None when the criterion is empty, meaning "do not filter"."""
        if criterion is None:
            return None
        if isinstance(criterion, AnyOf):
            return criterion if criterion.values else None
        if isinstance(criterion, (str, bytes, enum.Enum)) or not isinstance(criterion, Iterable):
            if criterion == "":
                return None
            return cls([criterion])
        values = list(criterion)
        return cls(values) if values else None

    def __contains__(self, value: Any) -> bool:
        return _plain(value) in self.values

    def __repr__(self) -> str:
        return f"AnyOf({sorted(map(str, self.values))})"


def same_id(left: Any, right: Any) -> bool:
    if left is None or right is None:
        return False
    return str(_plain(left)) == str(_plain(right))


def has_value(value: Any) -> bool:
    return value is not None and value != ""


# ---------- collection access ----------

def collection_of(state: Optional[AppState], name: str) -> Optional[Collection]:
    if state is None:
        return None
    return getattr(state, name, None)


def items_of(state: Optional[AppState], name: str) -> List[Any]:
    coll = collection_of(state, name)
    if coll is None:
        return []
    return coll.items or []


def loading_of(state: Optional[AppState], name: str) -> bool:
    coll = collection_of(state, name)
    return bool(coll.loading) if coll is not None else False


def error_of(state: Optional[AppState], name: str) -> Optional[str]:
    coll = collection_of(state, name)
    return coll.error if coll is not None else None


def total_count_of(state: Optional[AppState], name: str) -> int:
    coll = collection_of(state, name)
    return (coll.total_count or 0) if coll is not None else 0


# ---------- lookups & filters ----------

def find_by_id(items: Sequence[Any], target: Any) -> Optional[Any]:
    if not has_value(target):
        return None
    for item in items:
        if same_id(getattr(item, "id", None), target):
            return item
    return None


def find_by(items: Sequence[Any], attr: str, value: Any) -> Optional[Any]:
    if not has_value(value):
        return None
    for item in items:
        if getattr(item, attr, None) == value:
            return item
    return None


def filter_by(items: Sequence[Any], attr: str, criterion: Any) -> List[Any]:
    wanted = AnyOf.coerce(criterion)
    if wanted is None:
        return list(items)
    return [item for item in items if getattr(item, attr, None) in wanted]


def filter_by_ref(items: Sequence[Any], attr: str, target: Any) -> List[Any]:
    """Foreign-key filter with string-coerced comparison."""
    if not has_value(target):
        return list(items)
    return [item for item in items if same_id(getattr(item, attr, None), target)]


def without_ref(items: Sequence[Any], attr: str) -> List[Any]:
    return [item for item in items if not has_value(getattr(item, attr, None))]


def search(items: Sequence[Any], query: Optional[str], fields: Sequence[str]) -> List[Any]:
    if not query:
        return list(items)
    term = query.lower()

    def _matches(item: Any) -> bool:
        for field in fields:
            value = getattr(item, field, None)
            if isinstance(value, str) and term in value.lower():
                return True
        return False

    return [item for item in items if _matches(item)]


# ---------- aggregation ----------

def count_by(items: Sequence[Any], attr: str, buckets: Iterable[Any]) -> Dict[str, int]:
    """Counts per enumerated bucket. ``total`` is always ``len(items)``."""
    counts: Dict[str, int] = {str(_plain(b)): 0 for b in buckets}
    counts["total"] = len(items)
    for item in items:
        key = _plain(getattr(item, attr, None))
        if isinstance(key, str) and key != "total" and key in counts:
            counts[key] += 1
    return counts


def tally(items: Sequence[Any], key: Callable[[Any], str]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for item in items:
        k = key(item)
        counts[k] = counts.get(k, 0) + 1
    return counts


def rate(part: float, whole: float) -> float:
    """Percentage in 0..100; a zero or negative denominator yields 0."""
    if not whole or whole <= 0:
        return 0.0
    value = (part / whole) * 100
    return max(value, 0.0)


# ---------- dates (local time) ----------

def to_local(value: Any) -> Optional[datetime]:
    dt = value if isinstance(value, datetime) else _loose_datetime(value)
    if dt is None:
        return None
    if dt.tzinfo is not None:
        return dt.astimezone().replace(tzinfo=None)
    return dt


def local_now(now: Optional[datetime] = None) -> datetime:
    return to_local(now) if now is not None else datetime.now()


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def same_day(left: Optional[datetime], right: datetime) -> bool:
    if left is None:
        return False
    return start_of_day(left) == start_of_day(right)


def week_bounds(now: datetime) -> Tuple[datetime, datetime]:
    """Sunday 00:00:00.000 through Saturday 23:59:59.999 around ``now``."""
    days_since_sunday = (now.weekday() + 1) % 7
    start = start_of_day(now) - timedelta(days=days_since_sunday)
    end = start + timedelta(days=6, hours=23, minutes=59, seconds=59, milliseconds=999)
    return start, end


def within(dt: Optional[datetime], start: Optional[datetime], end: Optional[datetime]) -> bool:
    if dt is None:
        return False
    if start is not None and dt < start:
        return False
    if end is not None and dt > end:
        return False
    return True


def filter_by_date_range(items: Sequence[Any], attr: str, start: Any = None, end: Any = None) -> List[Any]:
    lower = to_local(start) if has_value(start) else None
    upper = to_local(end) if has_value(end) else None
    if lower is None and upper is None:
        return list(items)
    return [item for item in items if within(to_local(getattr(item, attr, None)), lower, upper)]


def filter_today(items: Sequence[Any], attr: str, now: Optional[datetime] = None) -> List[Any]:
    today = local_now(now)
    return [item for item in items if same_day(to_local(getattr(item, attr, None)), today)]


def filter_this_week(items: Sequence[Any], attr: str, now: Optional[datetime] = None) -> List[Any]:
    start, end = week_bounds(local_now(now))
    return [item for item in items if within(to_local(getattr(item, attr, None)), start, end)]


def is_open(item: Any) -> bool:
    return getattr(item, "status", None) not in ("completed", "cancelled")


def hours_between(start: Any, end: Any) -> Optional[float]:
    begin = to_local(start)
    finish = to_local(end)
    if begin is None or finish is None:
        return None
    return (finish - begin).total_seconds() / 3600


def day_of(value: Any) -> Optional[date]:
    dt = to_local(value)
    return dt.date() if dt is not None else None


# ---------- splitter ports ----------

def port_count_of(splitter: Any) -> int:
    count = getattr(splitter, "port_count", None)
    if not count or count < 0:
        return settings.default_port_count
    return count


def port_usage(splitter: Any) -> Tuple[int, int]:
    """(port_count, used_ports); ports outside ``1..port_count`` are ignored."""
    count = port_count_of(splitter)
    status = getattr(splitter, "port_status", None) or {}
    used = 0
    for number in range(1, count + 1):
        port = status.get(number)
        if port is not None and port.is_used:
            used += 1
    return count, used
