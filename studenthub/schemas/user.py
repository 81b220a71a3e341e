from datetime import datetime
from enum import Enum
from typing import ClassVar, FrozenSet, Optional

from pydantic import AliasChoices, Field

from studenthub.schemas.base import PortalModel, Record


class UserRole(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class User(Record):
    name: str
    email: str
    phone: Optional[str] = None
    role: UserRole = UserRole.TEACHER
    department: Optional[str] = None
    approved: Optional[bool] = None


class PendingUser(Record):
    READ_ONLY: ClassVar[FrozenSet[str]] = frozenset({"id", "created_at"})

    name: str
    email: str
    phone: Optional[str] = None
    department: Optional[str] = None
    year: Optional[int] = None
    created_at: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("created_at", "createdAt")
    )


class PasswordSecurityReport(PortalModel):
    is_leaked: bool = Field(default=False, alias="isLeaked")
    leak_count: int = Field(default=0, alias="leakCount")
    used_before: bool = Field(default=False, alias="usedBefore")
    error: Optional[str] = None

    @property
    def is_safe(self) -> bool:
        return not (self.is_leaked or self.used_before)


class Notification(Record):
    title: str = ""
    message: str
    type: Optional[str] = None
    read: bool = Field(default=False, validation_alias=AliasChoices("read", "is_read", "isRead"))
    created_at: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("created_at", "createdAt")
    )
