"""
Unit Tests for Announcements and the Notification Inbox
"""
import pytest

from studenthub.schemas import Priority
from studenthub.views import AnnouncementsView, NotificationsView


@pytest.fixture
def announcements(backend):
    backend.seed('announcements', title='Library hours', content='Open late',
                 priority='low', created_at='2025-03-01T09:00:00')
    backend.seed('announcements', title='Exam schedule', content='Posted',
                 priority='high', created_at='2025-02-01T09:00:00')
    backend.seed('announcements', title='Fire drill', content='Friday',
                 priority='high', created_at='2025-03-05T09:00:00')
    backend.seed('announcements', title='Wifi upgrade', content='Tonight',
                 priority='medium', created_at='2025-03-10T09:00:00')


class TestAnnouncements:
    """Test ordering and per-session read state"""

    @pytest.mark.asyncio
    async def test_priority_then_newest(self, student_ctx, announcements):
        view = AnnouncementsView(student_ctx)
        await view.load()

        titles = [a.title for a in view.visible()]

        assert titles == ['Fire drill', 'Exam schedule', 'Wifi upgrade', 'Library hours']

    @pytest.mark.asyncio
    async def test_search(self, student_ctx, announcements):
        view = AnnouncementsView(student_ctx)
        await view.load()

        rows = await view.set_filter('search', 'WIFI')

        assert [a.title for a in rows] == ['Wifi upgrade']

    @pytest.mark.asyncio
    async def test_everything_starts_unread(self, student_ctx, announcements):
        view = AnnouncementsView(student_ctx)
        await view.load()

        assert view.unread_count() == 4

    @pytest.mark.asyncio
    async def test_mark_read_is_stored_in_session(self, student_ctx, student_session, announcements):
        view = AnnouncementsView(student_ctx)
        await view.load()
        first = view.visible()[0]

        view.mark_read(first)

        assert student_session.is_read(first.id)
        assert view.is_unread(first) is False
        assert view.unread_count() == 3

    @pytest.mark.asyncio
    async def test_mark_all_read(self, student_ctx, backend, announcements):
        view = AnnouncementsView(student_ctx)
        await view.load()
        view.mark_read(view.visible()[0])

        assert view.mark_all_read() == 3
        assert view.unread_count() == 0
        assert view.mark_all_read() == 0
        assert backend.mutations() == []

    @pytest.mark.asyncio
    async def test_read_state_is_per_session(self, make_ctx, announcements):
        reader = AnnouncementsView(make_ctx('student'))
        other = AnnouncementsView(make_ctx('student'))
        await reader.load()
        await other.load()

        reader.mark_all_read()

        assert other.unread_count() == 4

    @pytest.mark.asyncio
    async def test_priority_counts(self, admin_ctx, announcements):
        view = AnnouncementsView(admin_ctx)
        await view.load()

        assert view.priority_counts() == {Priority.HIGH: 2, Priority.MEDIUM: 1, Priority.LOW: 1}

    @pytest.mark.asyncio
    async def test_admin_posts_with_defaults(self, admin_ctx, backend):
        view = AnnouncementsView(admin_ctx)
        view.open_create({'title': 'Holiday', 'content': 'Campus closed Monday'})

        assert await view.submit()

        stored = backend.rows('announcements')[0]
        assert (stored['type'], stored['priority']) == ('general', 'medium')


class TestNotificationInbox:
    """Test the backend notification inbox"""

    @pytest.fixture
    def ctx(self, make_ctx):
        return make_ctx('student', email='mira@uni.edu')

    @pytest.fixture
    def inbox(self, backend):
        backend.seed('notifications', email='mira@uni.edu', title='Book due', message='Return Dune')
        backend.seed('notifications', email='mira@uni.edu', title='Approved', message='Enrolled', read=True)
        backend.seed('notifications', email='someone@uni.edu', title='Other', message='Not yours')

    @pytest.mark.asyncio
    async def test_only_own_notifications(self, ctx, inbox):
        view = NotificationsView(ctx)
        await view.load()

        assert sorted(n.title for n in view.items) == ['Approved', 'Book due']
        assert [n.title for n in view.unread()] == ['Book due']

    @pytest.mark.asyncio
    async def test_actions_hide_mark_read_once_read(self, ctx, inbox):
        view = NotificationsView(ctx)
        await view.load()
        by_title = {n.title: n for n in view.items}

        assert view.actions(by_title['Book due']) == ['mark_read', 'delete']
        assert view.actions(by_title['Approved']) == ['delete']
        assert view.actions() == ['mark_all_read']

    @pytest.mark.asyncio
    async def test_unread_count_from_backend(self, ctx, backend, inbox):
        view = NotificationsView(ctx)

        assert await view.unread_count() == 1
        assert backend.count('GET', '/notifications/unread/count/mira@uni.edu') == 1

    @pytest.mark.asyncio
    async def test_unread_count_falls_back_to_list(self, ctx, backend, inbox):
        view = NotificationsView(ctx)
        await view.load()
        backend.fail('GET', '/notifications/unread/count/mira@uni.edu', 500)

        assert await view.unread_count() == 1

    @pytest.mark.asyncio
    async def test_mark_read(self, ctx, backend, inbox):
        view = NotificationsView(ctx)
        await view.load()
        unread = view.unread()[0]

        assert await view.mark_read(unread)

        assert view.unread() == []
        assert backend.tables['notifications'][unread.id]['read'] is True

    @pytest.mark.asyncio
    async def test_mark_read_twice_makes_one_call(self, ctx, backend, inbox):
        view = NotificationsView(ctx)
        await view.load()
        unread = view.unread()[0]
        await view.mark_read(unread)

        assert await view.mark_read(view.items[0].model_copy(update={'read': True}))
        assert len(backend.mutations()) == 1

    @pytest.mark.asyncio
    async def test_mark_all_read(self, ctx, backend, notifier, inbox):
        view = NotificationsView(ctx)
        await view.load()

        assert await view.mark_all_read()

        assert view.unread() == []
        assert notifier.last.message == 'All notifications marked as read'

    @pytest.mark.asyncio
    async def test_delete(self, ctx, backend, confirm, inbox):
        view = NotificationsView(ctx)
        await view.load()

        assert await view.delete(view.items[0])

        assert confirm.questions == ['Delete this notification?']
        assert len(view.items) == 1
