"""
Unit Tests for Appointment Views
"""
from datetime import date, timedelta

import pytest

from studenthub.exceptions import AuthorizationError, ValidationError
from studenthub.schemas import AppointmentStatus
from studenthub.views import AppointmentsView, StudentAppointmentsView

TOMORROW = date.today() + timedelta(days=1)


def seed_appointment(backend, status='pending', student_id='42', on=None, time='10:00'):
    return backend.seed(
        'appointments',
        student_id=student_id,
        student_name='Ravi',
        service_id='1',
        service_name='Counselling',
        appointment_date=(on or TOMORROW).isoformat(),
        appointment_time=time,
        status=status,
        token_number='A001',
    )


class TestAdminQueue:
    """Test the admin appointment queue"""

    @pytest.mark.asyncio
    async def test_actions_follow_transitions(self, admin_ctx, backend):
        for status in ('pending', 'approved', 'completed', 'rejected', 'cancelled'):
            seed_appointment(backend, status=status)
        view = AppointmentsView(admin_ctx)
        await view.load()

        actions = {a.status: view.actions(a) for a in view.items}

        assert sorted(actions[AppointmentStatus.PENDING]) == ['approve', 'cancel', 'reject']
        assert sorted(actions[AppointmentStatus.APPROVED]) == ['cancel', 'complete']
        assert actions[AppointmentStatus.COMPLETED] == []
        assert actions[AppointmentStatus.REJECTED] == []
        assert actions[AppointmentStatus.CANCELLED] == []
        assert view.actions() == ['create_service']

    @pytest.mark.asyncio
    async def test_status_filter_is_sent_to_server(self, admin_ctx, backend):
        seed_appointment(backend, status='pending')
        seed_appointment(backend, status='approved')
        view = AppointmentsView(admin_ctx)

        rows = await view.set_filter('status', 'approved')

        assert [a.status for a in rows] == [AppointmentStatus.APPROVED]

    @pytest.mark.asyncio
    async def test_approve(self, admin_ctx, backend, notifier):
        record = seed_appointment(backend)
        view = AppointmentsView(admin_ctx)
        await view.load()

        assert await view.update_status(view.items[0], AppointmentStatus.APPROVED, 'See you')

        stored = backend.tables['appointments'][record['id']]
        assert (stored['status'], stored['admin_notes']) == ('approved', 'See you')
        assert notifier.last.message == 'Appointment approved'
        assert view.items[0].status == AppointmentStatus.APPROVED

    @pytest.mark.asyncio
    async def test_invalid_transition_makes_no_call(self, admin_ctx, backend, notifier):
        seed_appointment(backend, status='completed')
        view = AppointmentsView(admin_ctx)
        await view.load()

        assert await view.update_status(view.items[0], AppointmentStatus.APPROVED) is False

        assert notifier.last.message == 'Cannot change status from completed to approved'
        assert backend.mutations() == []

    @pytest.mark.asyncio
    async def test_status_counts(self, admin_ctx, backend):
        seed_appointment(backend, status='pending')
        seed_appointment(backend, status='pending', time='11:00')
        seed_appointment(backend, status='completed')
        view = AppointmentsView(admin_ctx)
        await view.load()

        counts = view.status_counts()

        assert counts[AppointmentStatus.PENDING] == 2
        assert counts[AppointmentStatus.COMPLETED] == 1
        assert counts[AppointmentStatus.CANCELLED] == 0

    @pytest.mark.asyncio
    async def test_create_service(self, admin_ctx, backend, notifier):
        view = AppointmentsView(admin_ctx)

        assert await view.create_service({'name': '  Career advice ', 'duration': 45})

        assert backend.rows('services')[0]['name'] == 'Career advice'
        assert [s.name for s in view.services] == ['Career advice']
        assert notifier.last.message == 'Service created successfully'

    @pytest.mark.asyncio
    async def test_create_service_needs_name(self, admin_ctx, backend, notifier):
        view = AppointmentsView(admin_ctx)

        assert await view.create_service({'name': ' '}) is False
        assert notifier.last.message == 'Service name is required'
        assert backend.mutations() == []

    @pytest.mark.asyncio
    async def test_students_cannot_review(self, student_ctx, backend):
        seed_appointment(backend)
        view = AppointmentsView(student_ctx)
        await view.load()

        assert view.actions(view.items[0]) == []
        with pytest.raises(AuthorizationError):
            await view.update_status(view.items[0], AppointmentStatus.APPROVED)


class TestStudentBooking:
    """Test booking and cancelling as a student"""

    @pytest.fixture
    def ctx(self, make_ctx):
        return make_ctx('student', id='42')

    @pytest.mark.asyncio
    async def test_only_own_appointments(self, ctx, backend):
        seed_appointment(backend, student_id='42')
        seed_appointment(backend, student_id='7')
        view = StudentAppointmentsView(ctx)

        await view.load()

        assert [a.student_id for a in view.items] == ['42']

    @pytest.mark.asyncio
    async def test_book_returns_token(self, ctx, backend, notifier):
        view = StudentAppointmentsView(ctx)

        appointment = await view.book('1', TOMORROW, '09:30', notes='Visa letter')

        assert appointment.token_number == 'A001'
        booked = backend.bodies[backend.calls.index(('POST', '/appointments'))]
        assert (booked['studentId'], booked['notes']) == ('42', 'Visa letter')
        assert notifier.last.message == 'Appointment booked successfully!'
        assert len(view.items) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize('service_id,on,time', [
        (None, TOMORROW, '09:30'),
        ('1', None, '09:30'),
        ('1', TOMORROW, ''),
    ])
    async def test_book_needs_all_fields(self, ctx, backend, notifier, service_id, on, time):
        view = StudentAppointmentsView(ctx)

        assert await view.book(service_id, on, time) is None
        assert notifier.last.message == 'Please fill all required fields'
        assert backend.mutations() == []

    @pytest.mark.asyncio
    async def test_taken_slot(self, ctx, backend, notifier):
        backend.slots[('1', TOMORROW.isoformat())] = [
            {'time': '09:30', 'available': False},
            {'time': '10:00', 'available': True},
        ]
        view = StudentAppointmentsView(ctx)
        slots = await view.load_slots('1', TOMORROW)
        assert [s.available for s in slots] == [False, True]

        assert await view.book('1', TOMORROW, '09:30') is None
        assert notifier.last.message == 'This time slot is already booked'
        assert backend.mutations() == []

    @pytest.mark.asyncio
    async def test_double_booking(self, ctx, backend, notifier):
        seed_appointment(backend, student_id='42', time='09:30')
        view = StudentAppointmentsView(ctx)
        await view.load()

        assert await view.book('1', TOMORROW, '09:30') is None
        assert notifier.last.message == 'You already have an appointment at this time'

    @pytest.mark.asyncio
    async def test_cancelled_booking_frees_the_time(self, ctx, backend):
        seed_appointment(backend, student_id='42', time='09:30', status='cancelled')
        view = StudentAppointmentsView(ctx)
        await view.load()

        assert await view.book('1', TOMORROW, '09:30') is not None

    @pytest.mark.asyncio
    async def test_cancel(self, ctx, backend, confirm, notifier):
        record = seed_appointment(backend, student_id='42')
        view = StudentAppointmentsView(ctx)
        await view.load()

        assert await view.cancel(view.items[0])

        assert backend.tables['appointments'][record['id']]['status'] == 'cancelled'
        assert confirm.questions == ['Are you sure you want to cancel this appointment?']
        assert notifier.last.message == 'Appointment cancelled'

    @pytest.mark.asyncio
    async def test_cancel_declined(self, ctx, backend, confirm):
        seed_appointment(backend, student_id='42')
        view = StudentAppointmentsView(ctx)
        await view.load()
        confirm.answer = False

        assert await view.cancel(view.items[0]) is False
        assert backend.mutations() == []

    @pytest.mark.asyncio
    async def test_completed_cannot_be_cancelled(self, ctx, backend, confirm, notifier):
        seed_appointment(backend, student_id='42', status='completed')
        view = StudentAppointmentsView(ctx)
        await view.load()

        assert view.can_cancel(view.items[0]) is False
        assert await view.cancel(view.items[0]) is False
        assert confirm.questions == []
        assert notifier.last.message == 'This appointment can no longer be cancelled'

    @pytest.mark.asyncio
    async def test_queue_position(self, ctx, backend):
        today = date.today()
        seed_appointment(backend, student_id='7', on=today, time='09:00')
        seed_appointment(backend, student_id='42', on=today, time='09:30')
        seed_appointment(backend, student_id='42', on=TOMORROW)
        view = StudentAppointmentsView(ctx)

        queue = await view.load_queue()

        assert len(queue) == 2
        assert view.queue_position() == 2

    @pytest.mark.asyncio
    async def test_not_in_queue(self, ctx, backend):
        view = StudentAppointmentsView(ctx)
        await view.load_queue()

        assert view.queue_position() is None

    @pytest.mark.asyncio
    async def test_unreadable_date_filter(self, ctx, backend):
        seed_appointment(backend, student_id='42')
        view = StudentAppointmentsView(ctx)
        await view.load()

        view.filters['appointment_date'] = '03/01/2025'

        with pytest.raises(ValidationError) as exc_info:
            view.visible()
        assert exc_info.value.message == 'Dates must look like YYYY-MM-DD'
