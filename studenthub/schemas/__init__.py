from studenthub.schemas.base import PortalModel, Record
from studenthub.schemas.appointment import (
    ALLOWED_TRANSITIONS,
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
    Service,
    TimeSlot,
    can_transition,
    check_transition,
)
from studenthub.schemas.announcement import (
    PRIORITY_RANK,
    Announcement,
    AnnouncementType,
    Priority,
)
from studenthub.schemas.course import Course, Enrollment, TransferRecord
from studenthub.schemas.hostel import Hostel, HostelType, Resident, Room, RoomWarning
from studenthub.schemas.library import Book, Borrowing, BorrowingStatus
from studenthub.schemas.student import Student, StudentStatus
from studenthub.schemas.request import (
    BorrowRequest,
    EnrollRequest,
    NewUserRequest,
    PortalRequest,
    RequestBase,
    RequestStatus,
    RequestType,
    ReturnRequest,
    SupportRequest,
    UnenrollRequest,
    parse_request,
    parse_requests,
)
from studenthub.schemas.user import (
    Notification,
    PasswordSecurityReport,
    PendingUser,
    User,
    UserRole,
)

__all__ = [
    "PortalModel",
    "Record",
    "ALLOWED_TRANSITIONS",
    "Appointment",
    "AppointmentCreate",
    "AppointmentStatus",
    "Service",
    "TimeSlot",
    "can_transition",
    "check_transition",
    "PRIORITY_RANK",
    "Announcement",
    "AnnouncementType",
    "Priority",
    "Course",
    "Enrollment",
    "TransferRecord",
    "Hostel",
    "HostelType",
    "Resident",
    "Room",
    "RoomWarning",
    "Book",
    "Borrowing",
    "BorrowingStatus",
    "Student",
    "StudentStatus",
    "BorrowRequest",
    "EnrollRequest",
    "NewUserRequest",
    "PortalRequest",
    "RequestBase",
    "RequestStatus",
    "RequestType",
    "ReturnRequest",
    "SupportRequest",
    "UnenrollRequest",
    "parse_request",
    "parse_requests",
    "Notification",
    "PasswordSecurityReport",
    "PendingUser",
    "User",
    "UserRole",
]
