"""
Session Store - Logged-in identity, token and client-local read state

Persisted as one JSON file (~/.studenthub/session.json). Everything that
reads the session holds a reference to the same SessionStore and may
subscribe to changes, so a name change shows up everywhere without a reload.
"""

import json
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from studenthub.logging_config import get_logger, set_user_email

logger = get_logger(__name__)

SessionListener = Callable[["SessionStore"], None]


@dataclass
class SessionUser:
    """The logged-in user as the backend described them at login"""
    id: str
    name: str
    email: str
    role: str = "student"
    student_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionUser":
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            email=data.get("email", ""),
            role=data.get("role", "student"),
            student_id=data.get("student_id") or data.get("studentId"),
        )


class SessionStore:
    """Holds the current session; in-memory only when no path is given"""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else None
        self.user: Optional[SessionUser] = None
        self.token: Optional[str] = None
        self.read_announcements: Set[str] = set()
        self._listeners: List[SessionListener] = []

        if self.path:
            self._load()

    # ---------------------------------------------------------------
    # Queries
    # ---------------------------------------------------------------

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and bool(self.token)

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.is_admin

    @property
    def role(self) -> str:
        return self.user.role if self.user else ""

    @property
    def email(self) -> str:
        return self.user.email if self.user else ""

    def is_read(self, announcement_id: Optional[str]) -> bool:
        return announcement_id is not None and announcement_id in self.read_announcements

    # ---------------------------------------------------------------
    # Mutations (each one persists and notifies)
    # ---------------------------------------------------------------

    def login(self, user: SessionUser, token: str) -> None:
        self.user = user
        self.token = token
        set_user_email(user.email)
        logger.info(f"Session started for {user.email} ({user.role})")
        self._changed()

    def logout(self) -> None:
        self.user = None
        self.token = None
        self.read_announcements = set()
        set_user_email("")
        if self.path and self.path.exists():
            self.path.unlink()
        self._notify()

    def update_name(self, name: str) -> None:
        if self.user is None:
            raise RuntimeError("No user is logged in")
        self.user.name = name
        self._changed()

    def mark_read(self, announcement_ids: Iterable[str]) -> None:
        before = len(self.read_announcements)
        self.read_announcements.update(i for i in announcement_ids if i)
        if len(self.read_announcements) != before:
            self._changed()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a change listener; returns the unsubscribe function"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---------------------------------------------------------------
    # Persistence
    # ---------------------------------------------------------------

    def _changed(self) -> None:
        self._save()
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not load session from {self.path}: {e}")
            return

        if data.get("user"):
            self.user = SessionUser.from_dict(data["user"])
            set_user_email(self.user.email)
        self.token = data.get("token")
        self.read_announcements = set(data.get("read_announcements", []))

    def _save(self) -> None:
        if not self.path:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "version": "1.0",
            "user": self.user.to_dict() if self.user else None,
            "token": self.token,
            "read_announcements": sorted(self.read_announcements),
        }
        with open(self.path, 'w') as f:
            json.dump(data, f, indent=2)
        # The token is a credential
        try:
            os.chmod(self.path, 0o600)
        except OSError as e:
            logger.debug(f"Could not restrict permissions on {self.path}: {e}")
