"""
Resource Stores - Shared, observable collections per resource type

Every view of a resource reads the same ResourceStore, so a mutation in one
view invalidates all of them together:

    courses view ──┐                 ┌──► student courses view
                   ├── "courses" ────┤
    admin panel  ──┘   store         └──► export

Loads are fenced with monotonic tickets: a view takes a ticket before it
fetches and may only commit with the latest one. A slow response for an old
filter can therefore never overwrite a newer one.
"""

from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Deque, Dict, Generic, List, Optional, TypeVar

from studenthub.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class StoreEventType(str, Enum):
    LOADED = "loaded"
    INVALIDATED = "invalidated"
    DISCARDED = "discarded"


@dataclass
class StoreEvent:
    type: StoreEventType
    resource: str
    ticket: int = 0
    timestamp: datetime = field(default_factory=datetime.now)


StoreHandler = Callable[[StoreEvent], None]


class ResourceStore(Generic[T]):
    """In-memory collection of one resource, shared by every view of it"""

    def __init__(self, name: str):
        self.name = name
        self.items: List[T] = []
        self.loaded = False
        self.stale = False
        self.loaded_at: Optional[datetime] = None
        self._ticket = 0
        self._handlers: List[StoreHandler] = []

    def next_ticket(self) -> int:
        """Reserve the right to commit the next load"""
        self._ticket += 1
        return self._ticket

    @property
    def latest_ticket(self) -> int:
        return self._ticket

    def is_current(self, ticket: int) -> bool:
        return ticket == self._ticket

    def commit(self, ticket: int, items: List[T]) -> bool:
        """Replace the collection if `ticket` is still the latest; drop it otherwise"""
        if not self.is_current(ticket):
            logger.debug(
                f"[Store] Discarding stale {self.name} response "
                f"(ticket {ticket}, latest {self._ticket})"
            )
            self._publish(StoreEvent(StoreEventType.DISCARDED, self.name, ticket))
            return False

        self.items = list(items)
        self.loaded = True
        self.stale = False
        self.loaded_at = datetime.now()
        self._publish(StoreEvent(StoreEventType.LOADED, self.name, ticket))
        return True

    def invalidate(self) -> None:
        """Mark the collection out of date after a mutation"""
        self.stale = True
        self._publish(StoreEvent(StoreEventType.INVALIDATED, self.name, self._ticket))

    def subscribe(self, handler: StoreHandler) -> Callable[[], None]:
        """Register a handler; returns the unsubscribe function"""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def _publish(self, event: StoreEvent) -> None:
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception as e:
                logger.log_error_with_context(e, context=f"store handler for {self.name}")


class StoreRegistry:
    """One store per resource key, created on first use"""

    def __init__(self, history_size: int = 50):
        self._stores: Dict[str, ResourceStore[Any]] = {}
        self._wildcard_handlers: List[StoreHandler] = []
        self._history: Dict[str, Deque[StoreEventType]] = defaultdict(
            lambda: deque(maxlen=history_size)
        )

    def get(self, name: str) -> ResourceStore[Any]:
        store = self._stores.get(name)
        if store is None:
            store = ResourceStore(name)
            store.subscribe(self._forward)
            self._stores[name] = store
        return store

    def invalidate(self, *names: str) -> None:
        """Invalidate every store whose key is, or starts with, one of `names`"""
        for key, store in list(self._stores.items()):
            if any(key == n or key.startswith(n + ":") for n in names):
                store.invalidate()

    def subscribe(self, handler: StoreHandler) -> Callable[[], None]:
        """Receive events from every store"""
        self._wildcard_handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._wildcard_handlers:
                self._wildcard_handlers.remove(handler)

        return unsubscribe

    def history(self, name: str) -> List[StoreEventType]:
        return list(self._history[name])

    def _forward(self, event: StoreEvent) -> None:
        self._history[event.resource].append(event.type)
        for handler in list(self._wildcard_handlers):
            handler(event)
