from datetime import datetime
from enum import Enum
from typing import ClassVar, Dict, FrozenSet, Optional

from pydantic import AliasChoices, Field

from studenthub.schemas.base import Record


class AnnouncementType(str, Enum):
    ACADEMIC = "academic"
    HOSTEL = "hostel"
    LIBRARY = "library"
    GENERAL = "general"
    URGENT = "urgent"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_RANK: Dict[Priority, int] = {
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


class Announcement(Record):
    READ_ONLY: ClassVar[FrozenSet[str]] = frozenset({"id", "created_at"})

    title: str
    content: str
    type: AnnouncementType = AnnouncementType.GENERAL
    priority: Priority = Priority.MEDIUM
    author: Optional[str] = None
    created_at: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("created_at", "createdAt")
    )

    @property
    def rank(self) -> int:
        return PRIORITY_RANK[self.priority]
