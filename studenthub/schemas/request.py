"""
Request schemas

A request is a pending action awaiting admin review. It is a tagged union keyed
by `type`: each variant carries only the fields that make sense for it.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, ClassVar, Dict, FrozenSet, List, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from studenthub.schemas.base import Record


class RequestType(str, Enum):
    BORROW = "borrow"
    RETURN = "return"
    ENROLL = "enroll"
    UNENROLL = "unenroll"
    SUPPORT = "support"
    NEW_USER = "new_user"


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RequestBase(Record):
    READ_ONLY: ClassVar[FrozenSet[str]] = frozenset({"id", "status", "admin_note"})

    status: RequestStatus = RequestStatus.PENDING
    student_id: Optional[str] = Field(default=None, alias="studentId")
    student_name: Optional[str] = Field(default=None, alias="studentName")
    student_email: Optional[str] = Field(default=None, alias="studentEmail")
    admin_note: Optional[str] = Field(default=None, alias="adminNote")
    requested_at: Optional[datetime] = Field(default=None, alias="requestedAt")

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    @property
    def summary(self) -> str:
        return self.type


class BorrowRequest(RequestBase):
    type: Literal["borrow"] = "borrow"
    book_id: str = Field(alias="bookId")
    book_title: Optional[str] = Field(default=None, alias="bookTitle")
    book_author: Optional[str] = Field(default=None, alias="bookAuthor")

    @property
    def summary(self) -> str:
        return f"Borrow {self.book_title or self.book_id}"


class ReturnRequest(RequestBase):
    type: Literal["return"] = "return"
    book_id: str = Field(alias="bookId")
    book_title: Optional[str] = Field(default=None, alias="bookTitle")
    borrowing_id: Optional[str] = Field(default=None, alias="borrowingId")

    @property
    def summary(self) -> str:
        return f"Return {self.book_title or self.book_id}"


class EnrollRequest(RequestBase):
    type: Literal["enroll"] = "enroll"
    course_code: str = Field(alias="courseCode")
    course_name: Optional[str] = Field(default=None, alias="courseName")
    course_instructor: Optional[str] = Field(default=None, alias="courseInstructor")
    course_semester: Optional[str] = Field(default=None, alias="courseSemester")

    @property
    def summary(self) -> str:
        return f"Enroll in {self.course_code}"


class UnenrollRequest(RequestBase):
    type: Literal["unenroll"] = "unenroll"
    course_code: str = Field(alias="courseCode")
    course_name: Optional[str] = Field(default=None, alias="courseName")
    enrollment_id: Optional[str] = Field(default=None, alias="enrollmentId")

    @property
    def summary(self) -> str:
        return f"Unenroll from {self.course_code}"


class SupportRequest(RequestBase):
    type: Literal["support"] = "support"
    subject: str
    message: str
    category: Optional[str] = None

    @property
    def summary(self) -> str:
        return f"Support: {self.subject}"


class NewUserRequest(RequestBase):
    type: Literal["new_user"] = "new_user"
    phone: Optional[str] = None
    department: Optional[str] = None
    year: Optional[int] = None

    @property
    def summary(self) -> str:
        return f"New account for {self.student_email}"


PortalRequest = Annotated[
    Union[
        BorrowRequest,
        ReturnRequest,
        EnrollRequest,
        UnenrollRequest,
        SupportRequest,
        NewUserRequest,
    ],
    Field(discriminator="type"),
]

_request_adapter: TypeAdapter = TypeAdapter(PortalRequest)
_request_list_adapter: TypeAdapter = TypeAdapter(List[PortalRequest])


def parse_request(data: Dict[str, Any]) -> RequestBase:
    return _request_adapter.validate_python(data)


def parse_requests(data: List[Dict[str, Any]]) -> List[RequestBase]:
    return _request_list_adapter.validate_python(data)
