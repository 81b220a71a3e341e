"""
CSV export of a view's visible rows
"""

import csv
import io
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import aiofiles

from studenthub.filters import available_seats, occupancy_rate
from studenthub.logging_config import get_logger

logger = get_logger(__name__)

# (header, attribute name or callable)
Column = Tuple[str, Union[str, Callable[[Any], Any]]]

COLUMNS: Dict[str, List[Column]] = {
    "students": [
        ("Student ID", "student_id"),
        ("Full Name", "name"),
        ("Email", "email"),
        ("Phone", "phone"),
        ("Department", "department"),
        ("Year", "year"),
        ("Status", "status"),
        ("Hostel", "hostel_building"),
        ("Room Number", "room_number"),
    ],
    "courses": [
        ("Code", "code"),
        ("Name", "name"),
        ("Credits", "credits"),
        ("Instructor", "instructor"),
        ("Semester", "semester"),
        ("Enrolled", "enrolled"),
        ("Capacity", "capacity"),
        ("Available Seats", available_seats),
        ("Category", "category"),
    ],
    "hostels": [
        ("Name", "name"),
        ("Type", "type"),
        ("Total Rooms", "total_rooms"),
        ("Occupied Rooms", "occupied_rooms"),
        ("Occupancy %", occupancy_rate),
        ("Warden", "warden_name"),
        ("Warden Contact", "warden_contact"),
    ],
    "books": [
        ("Title", "title"),
        ("Author", "author"),
        ("ISBN", "isbn"),
        ("Category", "category"),
        ("Total Copies", "total_copies"),
        ("Available Copies", "available_copies"),
    ],
    "requests": [
        ("Type", "type"),
        ("Status", "status"),
        ("Student", "student_name"),
        ("Email", "student_email"),
        ("Summary", "summary"),
        ("Requested At", "requested_at"),
        ("Admin Note", "admin_note"),
    ],
}


def format_cell(value: Any) -> str:
    if value is None:
        return "N/A"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def render_csv(rows: Iterable[Any], columns: Sequence[Column]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([header for header, _ in columns])
    for row in rows:
        writer.writerow([
            format_cell(getter(row) if callable(getter) else getattr(row, getter, None))
            for _, getter in columns
        ])
    return output.getvalue()


async def export_csv(resource: str, rows: Sequence[Any], path: Union[str, Path]) -> Path:
    """Write `rows` of a known resource to `path`; returns the path written"""
    if resource not in COLUMNS:
        raise ValueError(f"No export format for {resource}; choose from {', '.join(COLUMNS)}")

    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    content = render_csv(rows, COLUMNS[resource])

    async with aiofiles.open(target, "w", encoding="utf-8", newline="") as f:
        await f.write(content)

    logger.info(f"Exported {len(rows)} {resource} to {target}")
    return target


def default_filename(resource: str, when: Optional[datetime] = None) -> str:
    when = when or datetime.now()
    return f"{resource}_export_{when.strftime('%Y%m%d_%H%M%S')}.csv"
