from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar, FrozenSet, Optional, Union

from pydantic import AliasChoices, Field, field_validator

from studenthub.schemas.base import Record


class Book(Record):
    title: str
    author: str
    isbn: Optional[str] = None
    category: Optional[str] = None
    total_copies: int = Field(default=1, validation_alias=AliasChoices("total_copies", "total"))
    available_copies: int = Field(
        default=1, validation_alias=AliasChoices("available_copies", "available")
    )

    @property
    def is_available(self) -> bool:
        return self.available_copies > 0


class BorrowingStatus(str, Enum):
    BORROWED = "borrowed"
    RETURNED = "returned"


class Borrowing(Record):
    READ_ONLY: ClassVar[FrozenSet[str]] = frozenset({"id", "return_date"})

    student_id: str = Field(validation_alias=AliasChoices("student_id", "studentId"))
    student_name: Optional[str] = None
    book_id: str = Field(validation_alias=AliasChoices("book_id", "bookId"))
    book_title: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("book_title", "title")
    )
    borrow_date: Union[datetime, date] = Field(
        validation_alias=AliasChoices("borrow_date", "borrowDate")
    )
    due_date: Union[datetime, date] = Field(validation_alias=AliasChoices("due_date", "dueDate"))
    return_date: Optional[Union[datetime, date]] = None
    status: BorrowingStatus = BorrowingStatus.BORROWED

    @field_validator("student_id", "book_id", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value
