from studenthub.views.base import (
    Dialog,
    DialogMode,
    ResourceView,
    ViewContext,
    ViewState,
    ask_confirm,
)
from studenthub.views.announcements import AnnouncementsView
from studenthub.views.appointments import AppointmentsView, StudentAppointmentsView
from studenthub.views.courses import CoursesView, StudentCoursesView
from studenthub.views.dashboard import DashboardView, currently_borrowed
from studenthub.views.hostels import HostelsView, RoomsView
from studenthub.views.library import BooksView, BorrowingsView, StudentLibraryView
from studenthub.views.notifications import NotificationsView
from studenthub.views.pending import PendingApprovalView, suggest_student_id
from studenthub.views.requests import ProfileCompletion, RequestsView
from studenthub.views.settings import SettingsView
from studenthub.views.students import StudentDetail, StudentsView, generate_student_id
from studenthub.views.users import UsersView

__all__ = [
    "Dialog",
    "DialogMode",
    "ResourceView",
    "ViewContext",
    "ViewState",
    "ask_confirm",
    "AnnouncementsView",
    "AppointmentsView",
    "StudentAppointmentsView",
    "CoursesView",
    "StudentCoursesView",
    "DashboardView",
    "currently_borrowed",
    "HostelsView",
    "RoomsView",
    "BooksView",
    "BorrowingsView",
    "StudentLibraryView",
    "NotificationsView",
    "PendingApprovalView",
    "suggest_student_id",
    "ProfileCompletion",
    "RequestsView",
    "SettingsView",
    "StudentDetail",
    "StudentsView",
    "generate_student_id",
    "UsersView",
]
