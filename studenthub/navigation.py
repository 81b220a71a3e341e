"""
Role-based navigation

Every section a role can open, in menu order, and the views behind it.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from studenthub import views
from studenthub.exceptions import AuthorizationError
from studenthub.views.base import ViewContext


@dataclass(frozen=True)
class Section:
    key: str
    label: str
    admin_only: bool = False


MENU: Tuple[Section, ...] = (
    Section("dashboard", "Dashboard"),
    Section("hostel", "Hostel", admin_only=True),
    Section("library", "Library"),
    Section("courses", "Courses"),
    Section("appointments", "Appointments"),
    Section("announcements", "Announcements"),
    Section("students", "Students", admin_only=True),
    Section("requests", "Requests", admin_only=True),
    Section("pending", "Pending Approval", admin_only=True),
    Section("users", "Users", admin_only=True),
    Section("notifications", "Notifications"),
    Section("settings", "Settings"),
)

ViewFactory = Callable[[ViewContext], object]

# (admin view, student view) per section
_VIEWS: Dict[str, Tuple[Optional[ViewFactory], Optional[ViewFactory]]] = {
    "dashboard": (views.DashboardView, views.DashboardView),
    "hostel": (views.HostelsView, None),
    "library": (views.BooksView, views.StudentLibraryView),
    "courses": (views.CoursesView, views.StudentCoursesView),
    "appointments": (views.AppointmentsView, views.StudentAppointmentsView),
    "announcements": (views.AnnouncementsView, views.AnnouncementsView),
    "students": (views.StudentsView, None),
    "requests": (views.RequestsView, None),
    "pending": (views.PendingApprovalView, None),
    "users": (views.UsersView, None),
    "notifications": (views.NotificationsView, views.NotificationsView),
    "settings": (views.SettingsView, views.SettingsView),
}


def menu_for(is_admin: bool) -> List[Section]:
    return [s for s in MENU if is_admin or not s.admin_only]


def find_section(key: str) -> Optional[Section]:
    return next((s for s in MENU if s.key == key), None)


def open_section(key: str, ctx: ViewContext):
    """Instantiate the view a section shows for the session's role"""
    section = find_section(key)
    if section is None:
        raise KeyError(f"Unknown section: {key}")

    is_admin = ctx.session.is_admin
    if section.admin_only and not is_admin:
        raise AuthorizationError(f"{section.label} is only available to administrators")

    admin_view, student_view = _VIEWS.get(key, (None, None))
    factory = admin_view if is_admin else student_view
    if factory is None:
        raise KeyError(f"{section.label} has no standalone view")
    return factory(ctx)
