"""
Request review

Admins approve or reject pending requests with an optional note (required
when rejecting). Two new_user cases differ from the rest:

* approving does not update the request here; the caller gets a
  ProfileCompletion to open the students view with, and confirms the
  registration once the profile exists;
* rejecting also deletes the registered account. A failed delete only
  changes the success message.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from studenthub.exceptions import PortalError
from studenthub.logging_config import get_logger
from studenthub.schemas import NewUserRequest, RequestBase, RequestStatus
from studenthub.views.base import Dialog, DialogMode, ResourceView, ViewState

logger = get_logger(__name__)


@dataclass
class ProfileCompletion:
    """What the students view needs to finish a new_user registration"""
    request_id: str
    name: str
    email: str
    phone: Optional[str] = None
    department: Optional[str] = None
    year: Optional[int] = None

    @classmethod
    def from_request(cls, request: NewUserRequest) -> "ProfileCompletion":
        return cls(
            request_id=request.key,
            name=request.student_name or "",
            email=request.student_email or "",
            phone=request.phone,
            department=request.department,
            year=request.year,
        )

    def form(self) -> Dict[str, Any]:
        fields = {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "department": self.department,
            "year": self.year,
        }
        return {k: v for k, v in fields.items() if v is not None}


class RequestsView(ResourceView[RequestBase]):
    name = "requests"
    label = "Request"
    plural = "requests"
    model = RequestBase
    search_fields = ("student_name", "student_email")
    # "pending" switches to the pending-only endpoint
    server_filters = ("scope",)
    collection_actions = ()
    record_actions = ("approve", "reject")

    def __init__(self, ctx):
        super().__init__(ctx)
        self.processing = False

    async def fetch(self) -> List[RequestBase]:
        if self.filters.get("scope") == "pending":
            return await self.api.requests.pending()
        return await self.api.requests.get_all()

    def actions(self, record: Optional[RequestBase] = None) -> List[str]:
        if record is not None and not record.is_pending:
            return []
        return super().actions(record)

    def pending_count(self) -> int:
        return sum(1 for r in self.items if r.is_pending)

    def open_review(self, request: RequestBase) -> Dialog:
        self._require_admin("review")
        self.dialog = Dialog(DialogMode.EDIT, record=request, form={"admin_note": ""})
        self.state = ViewState.DIALOG_OPEN
        return self.dialog

    def _note(self, note: Optional[str]) -> str:
        if note is None and self.dialog is not None:
            note = self.dialog.form.get("admin_note")
        return (note or "").strip()

    def _check_reviewable(self, request: RequestBase) -> bool:
        if self.processing:
            return False
        if not request.is_pending:
            self.notifier.error("This request has already been reviewed")
            return False
        return True

    async def _set_status(
        self, request: RequestBase, status: RequestStatus, note: str
    ) -> Optional[PortalError]:
        self.processing = True
        self.state = ViewState.SUBMITTING
        try:
            await self.api.requests.update_status(request.key, status, note)
        except PortalError as e:
            logger.warning(f"Setting request {request.id} to {status.value} failed: {e.message}")
            return e
        finally:
            self.processing = False
            self.state = ViewState.DIALOG_OPEN if self.dialog else ViewState.IDLE
        return None

    async def _finish(self, message: str) -> None:
        self.close_dialog()
        self.notifier.success(message)
        self.invalidate()
        await self.load()

    async def approve(
        self, request: RequestBase, note: Optional[str] = None
    ) -> Union[bool, ProfileCompletion]:
        """Approve, or hand a new_user request over to profile completion"""
        self._require_admin("approve")
        if not self._check_reviewable(request):
            return False

        if isinstance(request, NewUserRequest):
            handoff = ProfileCompletion.from_request(request)
            self.close_dialog()
            self.notifier.info("Complete the student profile to finish this registration")
            logger.info(f"Registration {request.id} handed to profile completion")
            return handoff

        error = await self._set_status(request, RequestStatus.APPROVED, self._note(note))
        if error is not None:
            self.notifier.error(error.message or "Failed to approve request")
            return False
        await self._finish("Request approved successfully!")
        return True

    async def complete_registration(self, handoff: ProfileCompletion, note: str = "") -> bool:
        """Mark a new_user request approved after its profile was created"""
        self._require_admin("approve")
        return await self.mutate(
            lambda: self.api.requests.update_status(
                handoff.request_id, RequestStatus.APPROVED, note or "Profile completed"
            ),
            success="Registration approved",
            failure="Failed to approve request",
        )

    async def reject(self, request: RequestBase, note: Optional[str] = None) -> bool:
        self._require_admin("reject")
        note = self._note(note)
        if not note:
            self.notifier.error("Please provide a reason for rejection")
            return False
        if not self._check_reviewable(request):
            return False

        error = await self._set_status(request, RequestStatus.REJECTED, note)
        if error is not None:
            self.notifier.error(error.message or "Failed to reject request")
            return False

        message = "Request rejected"
        if isinstance(request, NewUserRequest) and request.student_email:
            try:
                await self.api.auth.delete_user(request.student_email)
                message = "Registration rejected and user account deleted"
            except PortalError as e:
                logger.warning(f"Could not delete account {request.student_email}: {e.message}")

        await self._finish(message)
        return True
