"""
Appointment views

Admins review the whole queue (status / date filters are server-side) and
advance each appointment along ALLOWED_TRANSITIONS. Students book against the
available-slot listing and may cancel their own pending or approved bookings.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from studenthub.exceptions import InvalidTransitionError, PortalError, ValidationError
from studenthub.logging_config import get_logger
from studenthub.schemas import (
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
    Service,
    TimeSlot,
    can_transition,
    check_transition,
)
from studenthub.views.base import ResourceView

logger = get_logger(__name__)

# Status a review button moves to
STATUS_ACTIONS = {
    AppointmentStatus.APPROVED: "approve",
    AppointmentStatus.REJECTED: "reject",
    AppointmentStatus.COMPLETED: "complete",
    AppointmentStatus.CANCELLED: "cancel",
}


class AppointmentsView(ResourceView[Appointment]):
    """Admin queue of every appointment"""

    name = "appointments"
    label = "Appointment"
    plural = "appointments"
    model = Appointment
    search_fields = ("student_name", "student_email", "service_name", "token_number")
    server_filters = ("status", "date")
    collection_actions = ("create_service",)
    invalidates = ("services",)

    def __init__(self, ctx):
        super().__init__(ctx)
        self.services: List[Service] = []

    def actions(self, record: Optional[Appointment] = None) -> List[str]:
        if not self.is_admin:
            return []
        if record is None:
            return list(self.collection_actions)
        return [
            action for status, action in STATUS_ACTIONS.items()
            if can_transition(record.status, status)
        ]

    async def update_status(
        self,
        appointment: Appointment,
        status: AppointmentStatus,
        note: Optional[str] = None,
    ) -> bool:
        self._require_admin("update")
        target = AppointmentStatus(status)
        try:
            check_transition(appointment.status, target)
        except InvalidTransitionError as e:
            self.notifier.error(e.message)
            return False

        return await self.mutate(
            lambda: self.api.appointments.update_status(appointment.key, target, note),
            success=f"Appointment {target.value}",
            failure="Failed to update appointment",
        )

    async def load_services(self) -> List[Service]:
        try:
            self.services = await self.api.appointments.services()
        except PortalError as e:
            logger.warning(f"Failed to load services: {e.message}")
            self.notifier.error("Failed to load services")
        return self.services

    async def create_service(self, form: Dict[str, Any]) -> bool:
        self._require_admin("create")
        if not str(form.get("name") or "").strip():
            self.notifier.error("Service name is required")
            return False
        service = Service.model_validate({**form, "name": form["name"].strip()})

        created = await self.mutate(
            lambda: self.api.services.create(service),
            success="Service created successfully",
            failure="Failed to create service",
            reload=False,
        )
        if created:
            await self.load_services()
        return created

    async def stats(self) -> Dict[str, Any]:
        try:
            return await self.api.appointments.stats()
        except PortalError as e:
            self.notifier.error(e.message or "Failed to load statistics")
            return {}

    def status_counts(self) -> Dict[AppointmentStatus, int]:
        counts = {s: 0 for s in AppointmentStatus}
        for appointment in self.items:
            counts[appointment.status] += 1
        return counts


class StudentAppointmentsView(ResourceView[Appointment]):
    """The logged-in student's own bookings"""

    name = "appointments"
    label = "Appointment"
    plural = "appointments"
    model = Appointment
    search_fields = ("service_name", "token_number")
    date_fields = ("appointment_date",)
    collection_actions = ()
    record_actions = ()

    def __init__(self, ctx):
        super().__init__(ctx)
        self.services: List[Service] = []
        self.slots: List[TimeSlot] = []
        self.slots_for: Optional[tuple] = None
        self.queue: List[Appointment] = []
        self.booking = False

    @property
    def student_id(self) -> str:
        return self.session.user.id if self.session.user else ""

    def store_key(self) -> str:
        return f"{self.name}:student:{self.student_id}"

    async def fetch(self) -> List[Appointment]:
        return await self.api.appointments.by_student(self.student_id)

    async def load_services(self) -> List[Service]:
        try:
            self.services = await self.api.appointments.services()
        except PortalError as e:
            logger.warning(f"Failed to load services: {e.message}")
            self.notifier.error("Failed to load services")
        return self.services

    async def load_slots(self, service_id: str, on: date) -> List[TimeSlot]:
        try:
            self.slots = await self.api.appointments.available_slots(service_id, on)
            self.slots_for = (service_id, on)
        except PortalError as e:
            logger.warning(f"Failed to load available slots: {e.message}")
            self.notifier.error("Failed to load available slots")
            self.slots, self.slots_for = [], None
        return self.slots

    def _check_booking(self, booking: AppointmentCreate) -> None:
        if self.slots_for == (booking.service_id, booking.appointment_date):
            taken = {s.time for s in self.slots if not s.available}
            if booking.appointment_time in taken:
                raise ValidationError("This time slot is already booked", field="appointment_time")

        for mine in self.items:
            active = mine.status in (AppointmentStatus.PENDING, AppointmentStatus.APPROVED)
            if active and mine.slot == f"{booking.appointment_date.isoformat()} {booking.appointment_time}":
                raise ValidationError(
                    "You already have an appointment at this time", field="appointment_time"
                )

    async def book(
        self,
        service_id: Optional[str],
        on: Optional[date],
        time: Optional[str],
        notes: Optional[str] = None,
    ) -> Optional[Appointment]:
        """Book a slot; returns the appointment with its token, or None"""
        if self.booking:
            return None
        if not (service_id and on and time):
            self.notifier.error("Please fill all required fields")
            return None

        booking = AppointmentCreate(
            student_id=self.student_id,
            service_id=service_id,
            appointment_date=on,
            appointment_time=time,
            notes=notes or None,
        )
        try:
            self._check_booking(booking)
        except ValidationError as e:
            self.notifier.error(e.message)
            return None

        self.booking = True
        try:
            appointment = await self.api.appointments.book(booking)
        except PortalError as e:
            logger.warning(f"Booking failed: {e.message}")
            self.notifier.error(e.message or "Failed to book appointment")
            return None
        finally:
            self.booking = False

        self.notifier.success("Appointment booked successfully!")
        self.invalidate()
        await self.load()
        return appointment

    def can_cancel(self, appointment: Appointment) -> bool:
        return can_transition(appointment.status, AppointmentStatus.CANCELLED)

    async def cancel(self, appointment: Appointment) -> bool:
        if not self.can_cancel(appointment):
            self.notifier.error("This appointment can no longer be cancelled")
            return False
        if not self.ctx.confirm("Are you sure you want to cancel this appointment?"):
            return False

        return await self.mutate(
            lambda: self.api.appointments.cancel(appointment.key, self.student_id),
            success="Appointment cancelled",
            failure="Failed to cancel appointment",
        )

    async def load_queue(self) -> List[Appointment]:
        try:
            self.queue = await self.api.appointments.today_queue()
        except PortalError as e:
            logger.warning(f"Failed to load today's queue: {e.message}")
            self.notifier.error("Failed to load queue")
        return self.queue

    def queue_position(self) -> Optional[int]:
        """1-based place of the student's first appointment in today's queue"""
        for position, appointment in enumerate(self.queue, start=1):
            if appointment.student_id == self.student_id:
                return position
        return None
