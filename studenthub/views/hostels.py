"""
Hostel and room views

Occupancy on a hostel record is whatever the backend last stored. Once a
hostel's rooms are loaded the view shows the count derived from the rooms
instead (a room is occupied when it has at least one resident).
"""

from typing import Any, Dict, List, Optional

from studenthub.exceptions import PortalError, ValidationError
from studenthub.filters import free_rooms, occupancy_rate, recompute_occupancy
from studenthub.logging_config import get_logger
from studenthub.schemas import Hostel, Resident, Room, RoomWarning, Student
from studenthub.views.base import Dialog, ResourceView, ViewContext

logger = get_logger(__name__)


class HostelsView(ResourceView[Hostel]):
    name = "hostels"
    label = "Hostel"
    plural = "hostels"
    model = Hostel
    search_fields = ("name", "warden_name")
    record_actions = ("edit", "delete", "rooms")

    def __init__(self, ctx: ViewContext):
        super().__init__(ctx)
        self.rooms: Dict[str, List[Room]] = {}

    def default_form(self) -> Dict[str, Any]:
        return {"type": "mixed", "total_rooms": 0}

    def build_payload(self, dialog: Dialog) -> Hostel:
        payload = super().build_payload(dialog)
        if not dialog.is_edit:
            # A new hostel has nobody in it
            payload = payload.model_copy(update={"occupied_rooms": 0})
        return payload

    def validate(self, payload: Hostel, dialog: Dialog) -> None:
        if not payload.name.strip():
            raise ValidationError("Hostel name is required", field="name")
        if payload.total_rooms < 1:
            raise ValidationError("Total rooms must be at least 1", field="total_rooms")
        if payload.occupied_rooms > payload.total_rooms:
            raise ValidationError(
                "Occupied rooms cannot exceed total rooms", field="total_rooms"
            )

    async def load_rooms(self, hostel: Hostel) -> List[Room]:
        try:
            rooms = await self.api.rooms.by_hostel(hostel.key)
        except PortalError as e:
            logger.warning(f"Failed to load rooms for {hostel.name}: {e.message}")
            self.notifier.error("Failed to load rooms")
            return self.rooms.get(hostel.key, [])
        self.rooms[hostel.key] = rooms
        return rooms

    def display(self, hostel: Hostel) -> Hostel:
        """Hostel with occupancy recomputed from its rooms, when they are loaded"""
        rooms = self.rooms.get(hostel.id or "")
        if rooms is None:
            return hostel
        return recompute_occupancy(hostel, rooms)

    def occupancy(self, hostel: Hostel) -> int:
        return occupancy_rate(self.display(hostel))

    def totals(self) -> Dict[str, int]:
        shown = [self.display(h) for h in self.items]
        total = sum(h.total_rooms for h in shown)
        occupied = sum(h.occupied_rooms for h in shown)
        return {
            "hostels": len(shown),
            "total_rooms": total,
            "occupied_rooms": occupied,
            "available_rooms": sum(free_rooms(h) for h in shown),
            "occupancy_rate": occupancy_rate(
                Hostel(name="all", total_rooms=total, occupied_rooms=occupied)
            ),
        }


class RoomsView(ResourceView[Room]):
    """Rooms of one hostel, with resident and warning management"""

    name = "rooms"
    label = "Room"
    plural = "rooms"
    model = Room
    search_fields = ("room_number",)
    record_actions = ("edit", "delete", "add_resident", "remove_resident", "add_warning")
    invalidates = ("hostels", "students")

    def __init__(self, ctx: ViewContext, hostel: Hostel):
        self.hostel = hostel
        super().__init__(ctx)

    def store_key(self) -> str:
        return f"{self.name}:hostel:{self.hostel.key}"

    async def fetch(self) -> List[Room]:
        return await self.api.rooms.by_hostel(self.hostel.key)

    def default_form(self) -> Dict[str, Any]:
        return {"hostel_id": self.hostel.key, "floor": 1, "capacity": 2}

    def validate(self, payload: Room, dialog: Dialog) -> None:
        if payload.capacity < 1:
            raise ValidationError("Capacity must be at least 1", field="capacity")
        if payload.capacity < len(payload.residents):
            raise ValidationError(
                "Capacity cannot be below the current number of residents", field="capacity"
            )
        taken = next(
            (r for r in self.items
             if r.room_number == payload.room_number and r.id != payload.id),
            None,
        )
        if taken is not None:
            raise ValidationError(f"Room {payload.room_number} already exists", field="room_number")

    def available(self) -> List[Room]:
        """Rooms with at least one free bed"""
        return [room for room in self.items if not room.is_full]

    def hostel_occupancy(self) -> Hostel:
        return recompute_occupancy(self.hostel, self.items)

    async def add_resident(self, room: Room, student: Optional[Student]) -> bool:
        self._require_admin("edit")
        if student is None:
            self.notifier.error("Please select a student")
            return False
        if room.is_full:
            self.notifier.error("Room is at full capacity")
            return False
        if any(r.student_id == student.student_id for r in room.residents):
            self.notifier.error(f"{student.name} already lives in this room")
            return False

        resident = Resident(student_id=student.student_id, name=student.name, email=student.email)
        return await self.mutate(
            lambda: self.api.rooms.add_resident(room.key, resident),
            success="Resident added successfully!",
            failure="Failed to add resident",
        )

    async def remove_resident(self, room: Room, resident: Resident) -> bool:
        self._require_admin("edit")
        resident_id = resident.id or resident.student_id
        if not resident_id:
            self.notifier.error("Resident has no id")
            return False
        return await self.mutate(
            lambda: self.api.rooms.remove_resident(room.key, resident_id),
            success="Resident removed successfully!",
            failure="Failed to remove resident",
        )

    async def add_warning(self, room: Room, message: str, severity: str = "minor") -> bool:
        self._require_admin("edit")
        if not (message or "").strip():
            self.notifier.error("Warning message is required")
            return False
        warning = RoomWarning(message=message.strip(), severity=severity)
        return await self.mutate(
            lambda: self.api.rooms.add_warning(room.key, warning),
            success="Warning added successfully!",
            failure="Failed to add warning",
        )
