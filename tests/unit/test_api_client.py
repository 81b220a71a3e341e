"""
Unit Tests for the Portal API Client
Tests for: transport errors, status mapping, generic CRUD, auth, enrollment move
"""
from datetime import datetime, timezone

import httpx
import pytest
from faker import Faker

from studenthub.api import PortalAPIClient, created_id
from studenthub.exceptions import (
    APIError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ConnectionFailedError,
    InvalidResponseError,
    NotFoundError,
    RequestTimeoutError,
    TransferIncompleteError,
)
from studenthub.schemas import BorrowRequest, NewUserRequest, Student

fake = Faker()


def client_for(config, handler) -> PortalAPIClient:
    return PortalAPIClient(config, token='tok', transport=httpx.MockTransport(handler))


class TestTransport:
    """Test the request layer against raw handlers"""

    @pytest.mark.asyncio
    async def test_base_url_and_auth_header(self, config):
        """Test that every resource shares one base URL and sends the token"""
        seen = []

        def handler(request):
            seen.append((request.url.path, request.headers.get('Authorization')))
            return httpx.Response(200, json=[])

        async with client_for(config, handler) as api:
            await api.courses.get_all()
            await api.books.get_all()

        assert seen == [('/api/courses', 'Bearer tok'), ('/api/books', 'Bearer tok')]

    @pytest.mark.asyncio
    async def test_empty_params_dropped(self, config):
        seen = []

        def handler(request):
            seen.append(dict(request.url.params))
            return httpx.Response(200, json=[])

        async with client_for(config, handler) as api:
            await api.appointments.get_all(status='pending', date=None, search='')

        assert seen == [{'status': 'pending'}]

    @pytest.mark.asyncio
    async def test_connection_failure(self, config):
        def handler(request):
            raise httpx.ConnectError('refused', request=request)

        async with client_for(config, handler) as api:
            with pytest.raises(ConnectionFailedError):
                await api.courses.get_all()

    @pytest.mark.asyncio
    async def test_timeout(self, config):
        def handler(request):
            raise httpx.ReadTimeout('slow', request=request)

        async with client_for(config, handler) as api:
            with pytest.raises(RequestTimeoutError) as exc_info:
                await api.courses.get_all()

        assert exc_info.value.details['timeout'] == config.timeout

    @pytest.mark.asyncio
    async def test_non_json_body(self, config):
        def handler(request):
            return httpx.Response(200, text='<html>oops</html>')

        async with client_for(config, handler) as api:
            with pytest.raises(InvalidResponseError):
                await api.courses.get_all()

    @pytest.mark.asyncio
    async def test_unexpected_shape(self, config):
        def handler(request):
            return httpx.Response(200, json={'not': 'a list'})

        async with client_for(config, handler) as api:
            with pytest.raises(InvalidResponseError):
                await api.courses.get_all()

    @pytest.mark.asyncio
    @pytest.mark.parametrize('body', [5, [1, 2], {'count': 'many'}])
    async def test_unread_count_needs_an_object(self, config, body):
        def handler(request):
            return httpx.Response(200, json=body)

        async with client_for(config, handler) as api:
            with pytest.raises(InvalidResponseError):
                await api.notifications.unread_count('mira@uni.edu')

    @pytest.mark.asyncio
    async def test_requests_list_must_be_a_list(self, config):
        def handler(request):
            return httpx.Response(200, json={'type': 'borrow'})

        async with client_for(config, handler) as api:
            with pytest.raises(InvalidResponseError):
                await api.requests.get_all()

    @pytest.mark.asyncio
    async def test_empty_body_is_none(self, config):
        def handler(request):
            return httpx.Response(204)

        async with client_for(config, handler) as api:
            assert await api.delete('/courses/1') is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize('status,error_type', [
        (401, AuthenticationError),
        (403, AuthorizationError),
        (404, NotFoundError),
        (409, ConflictError),
        (500, APIError),
    ])
    async def test_status_mapping(self, config, status, error_type):
        """Test that the backend's message is surfaced verbatim"""
        def handler(request):
            return httpx.Response(status, json={'message': 'Backend says no'})

        async with client_for(config, handler) as api:
            with pytest.raises(error_type) as exc_info:
                await api.courses.get_by_id('1')

        assert exc_info.value.message == 'Backend says no'
        assert exc_info.value.status_code == status


class TestCreatedId:
    """Test id extraction from create responses"""

    @pytest.mark.parametrize('body,expected', [
        ({'message': 'ok', 'id': 5}, '5'),
        ({'_id': 'abc'}, 'abc'),
        ({'insertedId': 'x1'}, 'x1'),
        ({'userId': 9}, '9'),
        ({'message': 'ok'}, None),
        (None, None),
    ])
    def test_created_id(self, body, expected):
        assert created_id(body) == expected


class TestGenericCrud:
    """Test the CRUD round trip against the mock backend"""

    def make_student(self) -> Student:
        return Student(
            student_id=f'STU{fake.random_int(1000, 9999)}',
            name=fake.name(),
            email=fake.unique.email(),
            department='science',
            year=2,
        )

    @pytest.mark.asyncio
    async def test_create_then_get_all(self, api):
        """Test that a created record comes back with its fields"""
        student = self.make_student()

        response = await api.students.create(student)
        students = await api.students.get_all()

        assert created_id(response) is not None
        assert len(students) == 1
        assert students[0].model_dump(exclude={'id'}) == student.model_dump(exclude={'id'})

    @pytest.mark.asyncio
    async def test_partial_update_overlays(self, api):
        """Test that an update keeps every field it does not touch"""
        student = self.make_student()
        record_id = created_id(await api.students.create(student))

        await api.students.update(record_id, {'year': 3})
        updated = await api.students.get_by_id(record_id)

        assert updated.year == 3
        assert updated.model_dump(exclude={'id', 'year'}) == student.model_dump(exclude={'id', 'year'})

    @pytest.mark.asyncio
    async def test_delete_twice(self, api):
        """Test that deleting a deleted record is a not-found error"""
        record_id = created_id(await api.students.create(self.make_student()))

        await api.students.delete(record_id)

        assert await api.students.get_all() == []
        with pytest.raises(NotFoundError):
            await api.students.delete(record_id)

    @pytest.mark.asyncio
    async def test_get_by_parent(self, api, backend):
        backend.seed('enrollments', studentId='s1', courseCode='CS1')
        backend.seed('enrollments', studentId='s2', courseCode='CS1')
        backend.seed('enrollments', studentId='s1', courseCode='CS2')

        by_course = await api.enrollments.by_course('CS1')
        by_student = await api.enrollments.by_student('s1')

        assert {e.student_id for e in by_course} == {'s1', 's2'}
        assert {e.course_code for e in by_student} == {'CS1', 'CS2'}

    @pytest.mark.asyncio
    async def test_requests_parsed_by_type(self, api, backend):
        backend.seed(
            'requests', type='borrow', status='pending', studentId='s1@uni.edu',
            bookId='b1', bookTitle='Dune',
        )
        backend.seed(
            'requests', type='new_user', status='pending', studentName='Kiran Rao',
            studentEmail='kiran@uni.edu', department='physics', year=1,
        )

        requests = await api.requests.get_all()

        assert [type(r) for r in requests] == [BorrowRequest, NewUserRequest]


class TestAuth:
    """Test login and account endpoints"""

    @pytest.mark.asyncio
    async def test_login_sets_token(self, api, backend):
        email = fake.email()
        backend.add_account(email, 'Secret123', role='admin')

        data = await api.auth.login(email, 'Secret123')

        assert data['user']['role'] == 'admin'
        assert api.token == data['token']

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, api, backend):
        email = fake.email()
        backend.add_account(email, 'Secret123')

        with pytest.raises(AuthenticationError) as exc_info:
            await api.auth.login(email, 'wrong')

        assert exc_info.value.message == 'Invalid email or password'

    @pytest.mark.asyncio
    async def test_unapproved_account_gets_no_session(self, api, backend):
        """Test that a pending account is refused even with the right password"""
        email = fake.email()
        backend.add_account(email, 'Secret123', approved=False)

        with pytest.raises(AuthenticationError) as exc_info:
            await api.auth.login(email, 'Secret123')

        assert 'pending approval' in exc_info.value.message
        assert api.token == 'test-token'

    @pytest.mark.asyncio
    async def test_delete_user_sends_email_body(self, api, backend):
        email = fake.email()
        backend.add_account(email, 'Secret123')

        await api.auth.delete_user(email)

        assert email not in backend.accounts
        assert backend.bodies[-1] == {'email': email}


class TestEnrollmentMove:
    """Test the create-then-delete enrollment move"""

    async def seed(self, backend):
        backend.seed('courses', code='CS101', name='Intro', enrolled=1, capacity=30)
        backend.seed('courses', code='CS102', name='Systems', enrolled=0, capacity=30)
        return backend.seed(
            'enrollments', studentId='s@uni.edu', courseCode='CS101',
            enrolledAt='2025-01-10T09:00:00Z',
        )

    @pytest.mark.asyncio
    async def test_move_keeps_enrolled_at(self, api, backend):
        """Test that exactly one enrollment remains, in the new course"""
        await self.seed(backend)
        enrollment = (await api.enrollments.by_student('s@uni.edu'))[0]
        when = datetime(2025, 2, 1, tzinfo=timezone.utc)

        moved = await api.enrollments.move(enrollment, 'CS102', 'Systems', when=when)

        remaining = await api.enrollments.by_student('s@uni.edu')
        assert len(remaining) == 1
        assert remaining[0].course_code == 'CS102'
        assert remaining[0].enrolled_at == enrollment.enrolled_at
        assert remaining[0].id == moved.id
        history = remaining[0].transfer_history
        assert [(h.from_course, h.to_course) for h in history] == [('CS101', 'CS102')]

    @pytest.mark.asyncio
    async def test_failed_delete_reported(self, api, backend):
        """Test that a half-finished move raises TransferIncompleteError"""
        old = await self.seed(backend)
        enrollment = (await api.enrollments.by_student('s@uni.edu'))[0]
        backend.fail('DELETE', f"/enrollments/{old['id']}", 500, 'database unavailable')

        with pytest.raises(TransferIncompleteError) as exc_info:
            await api.enrollments.move(enrollment, 'CS102')

        assert exc_info.value.details['old_enrollment_id'] == old['id']
        assert 'database unavailable' in exc_info.value.message
        assert len(backend.rows('enrollments')) == 2
