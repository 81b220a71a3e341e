"""
Library views

Admins manage the book catalogue and the borrowing ledger. Students never
borrow directly: they file borrow / return requests, which are checked
against the loaded catalogue and their own borrowings before anything is sent.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set

from studenthub.exceptions import PortalError, ValidationError
from studenthub.filters import is_overdue
from studenthub.logging_config import get_logger
from studenthub.schemas import (
    Book,
    Borrowing,
    BorrowingStatus,
    BorrowRequest,
    RequestBase,
    RequestStatus,
    ReturnRequest,
)
from studenthub.views.base import Dialog, ResourceView, ViewContext

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BooksView(ResourceView[Book]):
    name = "books"
    label = "Book"
    plural = "books"
    model = Book
    search_fields = ("title", "author", "isbn")

    def default_form(self) -> Dict[str, Any]:
        return {"total_copies": 1, "available_copies": 1}

    def validate(self, payload: Book, dialog: Dialog) -> None:
        if not payload.title.strip() or not payload.author.strip():
            raise ValidationError("Title and author are required", field="title")
        if payload.total_copies < 1:
            raise ValidationError("Total copies must be at least 1", field="total_copies")
        if not 0 <= payload.available_copies <= payload.total_copies:
            raise ValidationError(
                "Available copies must be between 0 and total copies", field="available_copies"
            )

    def stock(self) -> Dict[str, int]:
        return {
            "titles": len(self.items),
            "copies": sum(b.total_copies for b in self.items),
            "available": sum(b.available_copies for b in self.items),
        }


class BorrowingsView(ResourceView[Borrowing]):
    """Admin ledger of every borrowing"""

    name = "borrowings"
    label = "Borrowing"
    plural = "borrowings"
    model = Borrowing
    search_fields = ("student_name", "book_title")
    computed_filters = ("overdue",)
    collection_actions = ()
    record_actions = ("mark_returned",)
    invalidates = ("books",)

    def __init__(self, ctx: ViewContext, clock: Clock = utc_now):
        super().__init__(ctx)
        self.clock = clock

    def is_overdue(self, borrowing: Borrowing) -> bool:
        return is_overdue(borrowing, self.clock())

    def visible(self) -> List[Borrowing]:
        rows = super().visible()
        if self.filters.get("overdue"):
            rows = [b for b in rows if self.is_overdue(b)]
        return rows

    def overdue(self) -> List[Borrowing]:
        return [b for b in self.items if self.is_overdue(b)]

    def actions(self, record: Optional[Borrowing] = None) -> List[str]:
        actions = super().actions(record)
        if record is not None and record.status == BorrowingStatus.RETURNED:
            return [a for a in actions if a != "mark_returned"]
        return actions

    async def mark_returned(self, borrowing: Borrowing) -> bool:
        self._require_admin("update")
        if borrowing.status == BorrowingStatus.RETURNED:
            self.notifier.error("This book has already been returned")
            return False
        return await self.mutate(
            lambda: self.api.borrowings.return_book(borrowing.key),
            success="Book marked as returned",
            failure="Failed to return book",
        )


class StudentLibraryView(ResourceView[Book]):
    """Book catalogue as a student sees it, plus their borrowings and requests"""

    name = "books"
    label = "Book"
    plural = "books"
    model = Book
    search_fields = ("title", "author", "isbn")
    collection_actions = ()
    record_actions = ()
    invalidates = ("requests",)

    def __init__(self, ctx: ViewContext, clock: Clock = utc_now):
        super().__init__(ctx)
        self.clock = clock
        self.my_borrowings: List[Borrowing] = []
        self.my_requests: List[RequestBase] = []
        self.submitting: Set[str] = set()

    @property
    def student_key(self) -> str:
        return self.session.email

    async def refresh(self) -> bool:
        loaded, mine = await asyncio.gather(self.load(), self.load_mine())
        return loaded and mine

    async def load_mine(self) -> bool:
        try:
            self.my_borrowings, self.my_requests = await asyncio.gather(
                self.api.borrowings.by_student(self.student_key),
                self.api.requests.by_student(self.student_key),
            )
        except PortalError as e:
            logger.warning(f"Failed to load borrowings and requests: {e.message}")
            self.notifier.error("Failed to load library data")
            return False
        return True

    def active_borrowings(self) -> List[Borrowing]:
        return [b for b in self.my_borrowings if b.status == BorrowingStatus.BORROWED]

    def my_overdue(self) -> List[Borrowing]:
        now = self.clock()
        return [b for b in self.my_borrowings if is_overdue(b, now)]

    def pending_requests(self) -> List[RequestBase]:
        return [r for r in self.my_requests if r.status == RequestStatus.PENDING]

    def _check_borrow(self, book: Book) -> None:
        if book.available_copies <= 0:
            raise ValidationError("All copies of this book are currently borrowed")
        for request in self.pending_requests():
            if isinstance(request, BorrowRequest) and request.book_id == book.id:
                raise ValidationError("You already have a pending borrow request for this book")
        if any(b.book_id == book.id for b in self.active_borrowings()):
            raise ValidationError("You already have this book borrowed")

    async def _submit(self, key: str, request: RequestBase, success: str, failure: str) -> bool:
        self.submitting.add(key)
        try:
            await self.api.requests.create(request)
        except PortalError as e:
            logger.warning(f"{failure}: {e.message}")
            self.notifier.error(e.message or failure)
            return False
        finally:
            self.submitting.discard(key)

        self.notifier.success(success)
        self.ctx.stores.invalidate(*self.invalidates)
        await self.load_mine()
        return True

    async def request_borrow(self, book: Book) -> bool:
        """File a borrow request; blocked locally when it could not be granted"""
        if book.key in self.submitting:
            return False
        try:
            self._check_borrow(book)
        except ValidationError as e:
            self.notifier.error(e.message)
            return False

        user = self.session.user
        request = BorrowRequest(
            student_id=self.student_key,
            student_name=user.name if user else None,
            student_email=self.session.email,
            book_id=book.key,
            book_title=book.title,
            book_author=book.author,
            requested_at=datetime.now(timezone.utc),
        )
        return await self._submit(
            book.key, request,
            success="Borrow request submitted successfully!",
            failure="Failed to submit borrow request",
        )

    async def request_return(self, borrowing: Borrowing) -> bool:
        if borrowing.key in self.submitting:
            return False
        if borrowing.status == BorrowingStatus.RETURNED:
            self.notifier.error("This book has already been returned")
            return False
        for request in self.pending_requests():
            if isinstance(request, ReturnRequest) and request.borrowing_id == borrowing.id:
                self.notifier.error("You already have a pending return request for this book")
                return False

        user = self.session.user
        request = ReturnRequest(
            student_id=self.student_key,
            student_name=user.name if user else None,
            student_email=self.session.email,
            book_id=borrowing.book_id,
            book_title=borrowing.book_title,
            borrowing_id=borrowing.id,
            requested_at=datetime.now(timezone.utc),
        )
        return await self._submit(
            borrowing.key, request,
            success="Return request submitted successfully!",
            failure="Failed to submit return request",
        )
