"""
Account settings: display name, password change, password suggestions
"""

from typing import List, Optional

from studenthub.exceptions import AuthenticationError, PortalError
from studenthub.logging_config import get_logger, set_view
from studenthub.passwords import PasswordCheck, generate_suggestions, validate_password
from studenthub.schemas import PasswordSecurityReport
from studenthub.views.base import ViewContext

logger = get_logger(__name__)


class SettingsView:
    """Settings for whoever is logged in; needs no admin role"""

    name = "settings"

    def __init__(self, ctx: ViewContext):
        self.ctx = ctx
        self.submitting = False
        self.last_report: Optional[PasswordSecurityReport] = None

    @property
    def notifier(self):
        return self.ctx.notifier

    def update_name(self, name: str) -> bool:
        """Rename the session user; subscribers of the session see it immediately"""
        name = (name or "").strip()
        if not name:
            self.notifier.error("Please enter a valid name")
            return False
        if self.ctx.session.user is None:
            self.notifier.error("Failed to update name")
            return False

        self.ctx.session.update_name(name)
        self.notifier.success("Name updated successfully!")
        return True

    def check_rules(self, password: str) -> PasswordCheck:
        return validate_password(password)

    async def check_security(self, password: str) -> PasswordSecurityReport:
        """
        Ask the backend whether a password is breached or reused.

        An unreachable check is reported through `error` and does not block.
        """
        try:
            report = await self.ctx.api.auth.check_password_security(
                password, self.ctx.session.email or None
            )
        except PortalError as e:
            logger.warning(f"Password security check unavailable: {e.message}")
            report = PasswordSecurityReport(error=e.message or "Security check unavailable")
        self.last_report = report
        return report

    async def change_password(self, old_password: str, new_password: str, confirm: str) -> bool:
        if self.submitting:
            return False
        set_view(self.name)

        if not self.check_rules(new_password).is_valid:
            self.notifier.error("Password does not meet requirements")
            return False
        if new_password != confirm:
            self.notifier.error("Passwords do not match")
            return False
        if new_password == old_password:
            self.notifier.error("New password must be different from old password")
            return False

        self.submitting = True
        try:
            report = await self.check_security(new_password)
            if report.is_leaked:
                self.notifier.error(
                    f"This password has been exposed in {report.leak_count:,} data breaches. "
                    "Please choose a different password."
                )
                return False
            if report.used_before:
                self.notifier.error(
                    "You have used this password before. Please choose a different password."
                )
                return False

            await self.ctx.api.auth.change_password(
                self.ctx.session.email, old_password, new_password
            )
        except PortalError as e:
            logger.warning(f"Password change failed: {e.message}")
            self.notifier.error(e.message or "Failed to change password")
            if isinstance(e, AuthenticationError) or "current password" in e.message.lower():
                self.notifier.info("Hint: Make sure you're entering the password you used to login")
            return False
        finally:
            self.submitting = False

        self.notifier.success("Password changed successfully!")
        return True

    async def suggestions(self, count: int = 3, length: int = 16) -> List[str]:
        """Strong password suggestions; generated locally if the backend can't"""
        try:
            suggested = await self.ctx.api.auth.generate_password(count, length)
        except PortalError as e:
            logger.info(f"Using local password generator: {e.message}")
            suggested = []
        return suggested or generate_suggestions(count, length)
