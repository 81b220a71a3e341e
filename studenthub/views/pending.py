import random
from datetime import date
from typing import List, Optional

from studenthub.schemas import PendingUser
from studenthub.views.base import Dialog, DialogMode, ResourceView, ViewState


def suggest_student_id(today: Optional[date] = None, rng: Optional[random.Random] = None) -> str:
    """STU + two-digit year + four random digits, e.g. STU250042"""
    today = today or date.today()
    rng = rng or random.Random()
    return f"STU{today.year % 100:02d}{rng.randint(0, 9999):04d}"


class PendingApprovalView(ResourceView[PendingUser]):
    """Self-registered accounts waiting for an admin"""

    name = "pending_users"
    label = "User"
    plural = "pending users"
    model = PendingUser
    search_fields = ("name", "email")
    collection_actions = ()
    record_actions = ("approve", "reject")
    invalidates = ("users", "students")

    async def fetch(self) -> List[PendingUser]:
        return await self.api.auth.pending_users()

    def open_approve(self, user: PendingUser) -> Dialog:
        self._require_admin("approve")
        self.dialog = Dialog(
            DialogMode.EDIT, record=user, form={"student_id": suggest_student_id()}
        )
        self.state = ViewState.DIALOG_OPEN
        return self.dialog

    async def approve(self, user: PendingUser, student_id: Optional[str] = None) -> bool:
        self._require_admin("approve")
        if student_id is None and self.dialog is not None:
            student_id = self.dialog.form.get("student_id")
        student_id = (student_id or "").strip()
        if not student_id:
            self.notifier.error("Please enter a student ID")
            return False

        self.close_dialog()
        return await self.mutate(
            lambda: self.api.auth.approve_user(user.key, student_id),
            success=f"{user.name} approved successfully!",
            failure="Failed to approve user",
        )

    async def reject(self, user: PendingUser) -> bool:
        self._require_admin("reject")
        if not self.ctx.confirm(f"Reject {user.name}'s registration? This cannot be undone."):
            return False
        return await self.mutate(
            lambda: self.api.auth.reject_user(user.key),
            success=f"{user.name}'s registration rejected",
            failure="Failed to reject user",
        )
