from typing import Any, Dict

from studenthub.exceptions import ValidationError
from studenthub.passwords import validate_password
from studenthub.schemas import User, UserRole
from studenthub.views.base import Dialog, ResourceView

STAFF_ROLES = (UserRole.ADMIN, UserRole.TEACHER)


class UsersView(ResourceView[User]):
    """Staff (admin / teacher) accounts"""

    name = "users"
    label = "User"
    plural = "users"
    model = User
    search_fields = ("name", "email")

    def default_form(self) -> Dict[str, Any]:
        return {"role": UserRole.TEACHER.value}

    def validate(self, payload: User, dialog: Dialog) -> None:
        if not payload.name.strip():
            raise ValidationError("Name is required", field="name")
        if "@" not in payload.email:
            raise ValidationError("Please enter a valid email", field="email")
        if payload.role not in STAFF_ROLES:
            raise ValidationError("Staff accounts must be admin or teacher", field="role")
        if not dialog.is_edit:
            password = dialog.form.get("password") or ""
            if not validate_password(password).is_valid:
                raise ValidationError("Password does not meet requirements", field="password")

    async def persist(self, payload: User, dialog: Dialog) -> Any:
        if dialog.is_edit:
            return await self.client.update(dialog.record.key, payload)
        # The password only travels in the create body
        body = {**payload.to_payload(), "password": dialog.form["password"]}
        return await self.client.create(body)
