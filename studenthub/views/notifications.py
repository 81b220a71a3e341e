from typing import List, Optional

from studenthub.exceptions import PortalError
from studenthub.logging_config import get_logger
from studenthub.schemas import Notification
from studenthub.views.base import ResourceView

logger = get_logger(__name__)


class NotificationsView(ResourceView[Notification]):
    """The logged-in user's backend notification inbox"""

    name = "notifications"
    label = "Notification"
    plural = "notifications"
    model = Notification
    search_fields = ("title", "message")
    collection_actions = ("mark_all_read",)
    record_actions = ("mark_read", "delete")
    admin_only = False

    def store_key(self) -> str:
        return f"{self.name}:{self.session.email}"

    async def fetch(self) -> List[Notification]:
        return await self.api.notifications.by_email(self.session.email)

    def actions(self, record: Optional[Notification] = None) -> List[str]:
        actions = super().actions(record)
        if record is not None and record.read:
            actions.remove("mark_read")
        return actions

    def unread(self) -> List[Notification]:
        return [n for n in self.items if not n.read]

    async def unread_count(self) -> int:
        """Unread count as the backend reports it; the loaded list if unreachable"""
        try:
            return await self.api.notifications.unread_count(self.session.email)
        except PortalError as e:
            logger.debug(f"Unread count unavailable: {e.message}")
            return len(self.unread())

    async def mark_read(self, notification: Notification) -> bool:
        if notification.read:
            return True
        return await self.mutate(
            lambda: self.api.notifications.mark_read(notification.key),
            success=None,
            failure="Failed to mark as read",
        )

    async def mark_all_read(self) -> bool:
        return await self.mutate(
            self.api.notifications.mark_all_read,
            success="All notifications marked as read",
            failure="Failed to mark all as read",
        )

    def delete_prompt(self, record: Notification) -> str:
        return "Delete this notification?"
