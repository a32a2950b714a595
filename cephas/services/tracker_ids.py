"""
Tracker ids: ``TR`` + 2-digit year + 2-digit month + sequence.

The sequence is zero-padded to 4 digits and widens once it passes 9999
(``TR250410000`` follows ``TR25049999``). It continues from the most recently
created order regardless of the month it was created in; it does not restart
each month.
"""
import re
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ..models.models import Order

TRACKER_PREFIX = "TR"
SEQUENCE_DIGITS = 4

_TRACKER_RE = re.compile(rf"^{TRACKER_PREFIX}\d{{4}}(\d{{{SEQUENCE_DIGITS},}})$")


def next_sequence(last_tracker_id: Optional[str]) -> int:
    if not last_tracker_id:
        return 1
    match = _TRACKER_RE.match(last_tracker_id)
    if match:
        return int(match.group(1)) + 1
    # ids from elsewhere: fall back to their last four digits
    tail = last_tracker_id[-SEQUENCE_DIGITS:]
    if len(tail) != SEQUENCE_DIGITS or not tail.isdigit():
        return 1
    return int(tail) + 1


def format_tracker_id(now: datetime, sequence: int) -> str:
    return f"{TRACKER_PREFIX}{now:%y%m}{sequence:0{SEQUENCE_DIGITS}d}"


def next_tracker_id(db: Session, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    last = db.query(Order).order_by(Order.created_at.desc(), Order.tracker_id.desc()).first()
    sequence = next_sequence(last.tracker_id if last is not None else None)
    candidate = format_tracker_id(now, sequence)
    # an id can already exist when orders share a creation timestamp
    while db.query(Order.id).filter(Order.tracker_id == candidate).first() is not None:
        sequence += 1
        candidate = format_tracker_id(now, sequence)
    return candidate
