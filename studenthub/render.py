"""
Terminal rendering of portal views with rich

Tables only ever show what a view's visible() returns. The Actions column
is drawn only when the session may act on at least one row, so students and
teachers never see mutation controls.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from rich.box import ROUNDED
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from studenthub.export import format_cell
from studenthub.filters import available_seats, is_overdue, occupancy_rate
from studenthub.navigation import Section
from studenthub.views.base import ResourceView

Column = Tuple[str, Callable[[Any], Any]]

STATUS_COLORS = {
    "pending": "yellow",
    "approved": "green",
    "active": "green",
    "borrowed": "cyan",
    "completed": "blue",
    "returned": "blue",
    "graduated": "blue",
    "rejected": "red",
    "cancelled": "red",
    "inactive": "dim",
}

PRIORITY_COLORS = {"high": "red", "medium": "yellow", "low": "green"}


def _attr(name: str) -> Callable[[Any], Any]:
    return lambda row: getattr(row, name, None)


def _status(row: Any) -> Text:
    value = format_cell(getattr(row, "status", None))
    return Text(value, style=STATUS_COLORS.get(value, ""))


def _columns_for(view: ResourceView) -> List[Column]:
    name = view.name
    if name == "courses":
        return [
            ("Code", _attr("code")),
            ("Name", _attr("name")),
            ("Instructor", _attr("instructor")),
            ("Credits", _attr("credits")),
            ("Enrolled", lambda c: f"{c.enrolled}/{c.capacity}"),
            ("Seats", available_seats),
        ]
    if name == "hostels":
        return [
            ("Name", _attr("name")),
            ("Type", _attr("type")),
            ("Rooms", lambda h: f"{view.display(h).occupied_rooms}/{h.total_rooms}"),
            ("Occupancy", lambda h: f"{occupancy_rate(view.display(h))}%"),
            ("Warden", _attr("warden_name")),
        ]
    if name == "rooms":
        return [
            ("Room", _attr("room_number")),
            ("Floor", _attr("floor")),
            ("Residents", lambda r: f"{len(r.residents)}/{r.capacity}"),
            ("Warnings", lambda r: len(r.warnings)),
        ]
    if name == "books":
        return [
            ("Title", _attr("title")),
            ("Author", _attr("author")),
            ("Category", _attr("category")),
            ("Available", lambda b: f"{b.available_copies}/{b.total_copies}"),
        ]
    if name == "borrowings":
        return [
            ("Student", _attr("student_name")),
            ("Book", _attr("book_title")),
            ("Due", _attr("due_date")),
            ("Status", _status),
            ("Overdue", lambda b: Text("OVERDUE", style="bold red") if is_overdue(b, view.clock()) else ""),
        ]
    if name == "announcements":
        return [
            ("", lambda a: Text("●", style="cyan") if view.is_unread(a) else ""),
            ("Title", _attr("title")),
            ("Type", _attr("type")),
            ("Priority", lambda a: Text(a.priority.value, style=PRIORITY_COLORS[a.priority.value])),
            ("Posted", _attr("created_at")),
        ]
    if name == "appointments":
        return [
            ("Token", _attr("token_number")),
            ("Service", _attr("service_name")),
            ("Student", _attr("student_name")),
            ("Slot", _attr("slot")),
            ("Status", _status),
        ]
    if name == "students":
        return [
            ("Student ID", _attr("student_id")),
            ("Name", _attr("name")),
            ("Email", _attr("email")),
            ("Department", _attr("department")),
            ("Year", _attr("year")),
            ("Status", _status),
        ]
    if name == "requests":
        return [
            ("Type", _attr("type")),
            ("Student", _attr("student_name")),
            ("Summary", _attr("summary")),
            ("Status", _status),
        ]
    if name == "pending_users":
        return [
            ("Name", _attr("name")),
            ("Email", _attr("email")),
            ("Department", _attr("department")),
            ("Registered", _attr("created_at")),
        ]
    if name == "users":
        return [
            ("Name", _attr("name")),
            ("Email", _attr("email")),
            ("Role", _attr("role")),
            ("Department", _attr("department")),
        ]
    if name == "notifications":
        return [
            ("", lambda n: "" if n.read else Text("●", style="cyan")),
            ("Title", _attr("title")),
            ("Message", _attr("message")),
            ("Received", _attr("created_at")),
        ]
    return [("ID", _attr("id"))]


def _text(value: Any) -> Any:
    if isinstance(value, Text):
        return value
    if value == "":
        return ""
    return format_cell(value)


def build_table(view: ResourceView, rows: Optional[Sequence[Any]] = None) -> Table:
    """Table of the view's visible rows, with an Actions column for admins only"""
    rows = view.visible() if rows is None else rows
    columns = _columns_for(view)
    row_actions = [view.actions(row) for row in rows]
    show_actions = any(row_actions)

    table = Table(
        title=view.plural.title(),
        box=ROUNDED,
        show_header=True,
        header_style="bold cyan",
    )
    for header, _ in columns:
        table.add_column(header)
    if show_actions:
        table.add_column("Actions", style="dim")

    for row, actions in zip(rows, row_actions):
        cells = [_text(getter(row)) for _, getter in columns]
        if show_actions:
            cells.append(", ".join(actions))
        table.add_row(*cells)
    return table


def render_view(console: Console, view: ResourceView) -> None:
    rows = view.visible()
    if not rows:
        console.print(f"[dim]No {view.plural} found[/dim]")
        return
    console.print(build_table(view, rows))
    toolbar = view.actions()
    if toolbar:
        console.print(f"[dim]Available: {', '.join(toolbar)}[/dim]")


def render_menu(console: Console, sections: Sequence[Section], user_name: str = "") -> None:
    lines = [f"[cyan]{s.key:<15}[/cyan] {s.label}" for s in sections]
    title = f"StudentHub - {user_name}" if user_name else "StudentHub"
    console.print(Panel("\n".join(lines), title=title, border_style="cyan", box=ROUNDED))


def render_summary(console: Console, title: str, values: Dict[str, Any]) -> None:
    table = Table(show_header=False, box=ROUNDED, title=title)
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    for key, value in values.items():
        table.add_row(key.replace("_", " ").title(), format_cell(value))
    console.print(table)
