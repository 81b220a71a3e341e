"""
Client-side filtering, ordering and render-time derived fields

Everything here is a pure function over an already-loaded collection.
Nothing computed here is ever sent back to the backend.
"""

import math
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, TypeVar, Union

from studenthub.exceptions import ValidationError
from studenthub.schemas import Announcement, Borrowing, BorrowingStatus, Course, Hostel, Room

T = TypeVar("T")
Predicate = Callable[[Any], bool]

# Filter values that mean "no filter"
ANY_VALUES = (None, "", "all")


def _always(_: Any) -> bool:
    return True


def field_value(record: Any, name: str) -> Any:
    value = getattr(record, name, None)
    if isinstance(value, Enum):
        return value.value
    return value


def _normalize(value: Any) -> Any:
    """Comparable form; scalars compare as text so "2" from the CLI matches year 2"""
    if isinstance(value, Enum):
        value = value.value
    if value is None:
        return None
    return str(value).strip().lower()


def text_search(query: Optional[str], fields: Sequence[str]) -> Predicate:
    """Case-insensitive substring match over any of `fields`"""
    needle = (query or "").strip().lower()
    if not needle or not fields:
        return _always

    def matches(record: Any) -> bool:
        return any(needle in str(field_value(record, f) or "").lower() for f in fields)

    return matches


def equals(field: str, value: Any) -> Predicate:
    if value in ANY_VALUES:
        return _always
    expected = _normalize(value)
    return lambda record: _normalize(field_value(record, field)) == expected


def _as_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def on_date(field: str, day: Union[date, str, None]) -> Predicate:
    if day in ANY_VALUES:
        return _always
    try:
        wanted = _as_date(day)
    except ValueError as e:
        raise ValidationError("Dates must look like YYYY-MM-DD", field=field) from e
    return lambda record: _as_date(getattr(record, field, None)) == wanted


def build_predicates(
    filters: Dict[str, Any],
    search_fields: Sequence[str] = (),
    date_fields: Sequence[str] = (),
    skip: Iterable[str] = (),
) -> List[Predicate]:
    """
    Turn a view's filter dict into predicates.

    `search` is free text over `search_fields`; keys in `date_fields` compare
    by calendar day; every other key is an equality filter on that attribute.
    """
    skipped = set(skip)
    predicates: List[Predicate] = []
    for key, value in filters.items():
        if key in skipped or value in ANY_VALUES:
            continue
        if key == "search":
            predicates.append(text_search(value, search_fields))
        elif key in date_fields:
            predicates.append(on_date(key, value))
        else:
            predicates.append(equals(key, value))
    return predicates


def apply_filters(collection: Iterable[T], predicates: Sequence[Predicate]) -> List[T]:
    """Subset of `collection`, order preserved, where every predicate holds"""
    return [item for item in collection if all(p(item) for p in predicates)]


# ---------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------

def _to_utc(value: datetime) -> datetime:
    # Naive timestamps from the backend are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _timestamp(value: Optional[datetime]) -> float:
    if value is None:
        return float("-inf")
    return _to_utc(value).timestamp()


def sort_announcements(announcements: Iterable[Announcement]) -> List[Announcement]:
    """Priority high > medium > low, then newest first"""
    return sorted(
        announcements,
        key=lambda a: (a.rank, _timestamp(a.created_at)),
        reverse=True,
    )


# ---------------------------------------------------------------
# Derived fields
# ---------------------------------------------------------------

def round_percent(part: float, whole: float) -> int:
    """Nearest integer percent, halves rounded up; 0 when whole is 0"""
    if not whole:
        return 0
    return int(math.floor(part / whole * 100 + 0.5))


def available_seats(course: Course) -> int:
    return course.capacity - course.enrolled


def enrollment_rate(course: Course) -> int:
    return round_percent(course.enrolled, course.capacity)


def occupancy_rate(hostel: Hostel) -> int:
    return round_percent(hostel.occupied_rooms, hostel.total_rooms)


def free_rooms(hostel: Hostel) -> int:
    return hostel.total_rooms - hostel.occupied_rooms


def recompute_occupancy(hostel: Hostel, rooms: Sequence[Room]) -> Hostel:
    """Hostel with occupied_rooms counted from its loaded rooms"""
    occupied = sum(1 for room in rooms if room.is_occupied)
    return hostel.model_copy(update={"occupied_rooms": occupied})


def is_overdue(borrowing: Borrowing, now: Optional[datetime] = None) -> bool:
    """Borrowed and past its due date; returned books are never overdue"""
    if borrowing.status != BorrowingStatus.BORROWED:
        return False
    due = borrowing.due_date
    if not isinstance(due, datetime):
        due = datetime.combine(due, time.min)
    now = now or datetime.now(timezone.utc)
    return _to_utc(due) < _to_utc(now)
