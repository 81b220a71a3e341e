from typing import Dict, List

from studenthub.filters import sort_announcements
from studenthub.schemas import Announcement, Priority
from studenthub.views.base import ResourceView


class AnnouncementsView(ResourceView[Announcement]):
    """Announcements, highest priority and newest first; read state is per session"""

    name = "announcements"
    label = "Announcement"
    plural = "announcements"
    model = Announcement
    search_fields = ("title", "content")

    def default_form(self) -> Dict[str, str]:
        return {"type": "general", "priority": "medium"}

    def sort(self, items: List[Announcement]) -> List[Announcement]:
        return sort_announcements(items)

    def is_unread(self, announcement: Announcement) -> bool:
        return not self.session.is_read(announcement.id)

    def unread(self) -> List[Announcement]:
        return [a for a in self.visible() if self.is_unread(a)]

    def unread_count(self) -> int:
        return len(self.unread())

    def mark_read(self, announcement: Announcement) -> None:
        self.session.mark_read([announcement.key])

    def mark_all_read(self) -> int:
        """Mark every visible announcement read; returns how many changed"""
        fresh = [a.key for a in self.unread()]
        self.session.mark_read(fresh)
        return len(fresh)

    def priority_counts(self) -> Dict[Priority, int]:
        counts = {p: 0 for p in Priority}
        for announcement in self.items:
            counts[announcement.priority] += 1
        return counts
