"""
Resource View - the CRUD-over-REST pattern every portal module shares

State machine (one per view instance):

    IDLE ──load()──► LOADING ──ok / error──► IDLE
    IDLE ──open_create() / open_edit()──► DIALOG_OPEN
    DIALOG_OPEN ──submit()──► SUBMITTING ──ok──► LOADING ──► IDLE
                                         └─error─► DIALOG_OPEN
    IDLE ──delete() + confirm──► DELETING ──► LOADING ──► IDLE

A view subclass only declares what it shows (record model, client, filters,
labels) and adds its module-specific actions on top.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Awaitable,
    Callable,
    ClassVar,
    Dict,
    Generic,
    List,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
)

from pydantic import ValidationError as PydanticValidationError
from rich.prompt import Confirm

from studenthub.api import PortalAPIClient, ResourceClient
from studenthub.exceptions import AuthorizationError, PortalError, ValidationError
from studenthub.filters import ANY_VALUES, apply_filters, build_predicates, field_value
from studenthub.logging_config import get_logger, set_view
from studenthub.notifications import Notifier
from studenthub.schemas import Record
from studenthub.session import SessionStore
from studenthub.store import ResourceStore, StoreRegistry

logger = get_logger(__name__)

T = TypeVar("T", bound=Record)

ConfirmFn = Callable[[str], bool]


def ask_confirm(question: str) -> bool:
    """Blocking yes/no prompt on the terminal"""
    return Confirm.ask(f"[yellow]{question}[/yellow]", default=False)


class ViewState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    DIALOG_OPEN = "dialog_open"
    SUBMITTING = "submitting"
    DELETING = "deleting"


class DialogMode(str, Enum):
    CREATE = "create"
    EDIT = "edit"


@dataclass
class Dialog:
    mode: DialogMode
    record: Optional[Record] = None
    form: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_edit(self) -> bool:
        return self.mode == DialogMode.EDIT


@dataclass
class ViewContext:
    """Collaborators shared by every view of one portal session"""
    api: PortalAPIClient
    session: SessionStore
    notifier: Notifier
    stores: StoreRegistry = field(default_factory=StoreRegistry)
    confirm: ConfirmFn = ask_confirm


def first_error(error: PydanticValidationError) -> ValidationError:
    """Reduce a pydantic error to the first offending field"""
    problem = error.errors()[0]
    loc = ".".join(str(p) for p in problem.get("loc", ()))
    message = f"{loc}: {problem['msg']}" if loc else problem["msg"]
    return ValidationError(message, field=loc or None)


class ResourceView(Generic[T]):
    """Generic list + dialog view over one REST resource"""

    # Store key, also used as the logging context
    name: ClassVar[str] = ""
    # "Course" -> "Course created successfully!"
    label: ClassVar[str] = ""
    # "courses" -> "Failed to load courses"
    plural: ClassVar[str] = ""
    model: ClassVar[Type[Record]]
    # Attribute of PortalAPIClient holding this resource's client
    client_attr: ClassVar[str] = ""

    search_fields: ClassVar[Tuple[str, ...]] = ()
    date_fields: ClassVar[Tuple[str, ...]] = ()
    # Filters sent as query params; changing one re-fetches
    server_filters: ClassVar[Tuple[str, ...]] = ()
    # Filters the subclass applies itself in visible()
    computed_filters: ClassVar[Tuple[str, ...]] = ()

    collection_actions: ClassVar[Tuple[str, ...]] = ("create",)
    record_actions: ClassVar[Tuple[str, ...]] = ("edit", "delete")
    # Stores invalidated after a mutation
    invalidates: ClassVar[Tuple[str, ...]] = ()
    # Mutations need the admin role
    admin_only: ClassVar[bool] = True

    def __init__(self, ctx: ViewContext):
        self.ctx = ctx
        self.state = ViewState.IDLE
        self.dialog: Optional[Dialog] = None
        self.filters: Dict[str, Any] = {}
        self.store: ResourceStore[T] = ctx.stores.get(self.store_key())

    # ---------------------------------------------------------------
    # Collaborators
    # ---------------------------------------------------------------

    @property
    def api(self) -> PortalAPIClient:
        return self.ctx.api

    @property
    def client(self) -> ResourceClient[T]:
        return getattr(self.ctx.api, self.client_attr or self.name)

    @property
    def notifier(self) -> Notifier:
        return self.ctx.notifier

    @property
    def session(self) -> SessionStore:
        return self.ctx.session

    @property
    def is_admin(self) -> bool:
        return self.ctx.session.is_admin

    def store_key(self) -> str:
        return self.name

    # ---------------------------------------------------------------
    # Loading
    # ---------------------------------------------------------------

    @property
    def items(self) -> List[T]:
        return self.store.items

    def server_params(self) -> Dict[str, Any]:
        params = {}
        for key in self.server_filters:
            value = self.filters.get(key)
            if value in ANY_VALUES:
                continue
            if isinstance(value, Enum):
                value = value.value
            elif hasattr(value, "isoformat"):
                value = value.isoformat()
            params[key] = value
        return params

    async def fetch(self) -> List[T]:
        return await self.client.get_all(**self.server_params())

    async def load(self) -> bool:
        """Fetch the collection into the shared store; stale answers are dropped"""
        set_view(self.name)
        ticket = self.store.next_ticket()
        self.state = ViewState.LOADING
        try:
            items = await self.fetch()
        except PortalError as e:
            if self.store.is_current(ticket):
                self.state = ViewState.IDLE
                logger.warning(f"Failed to load {self.plural}: {e.message}")
                self.notifier.error(f"Failed to load {self.plural}")
            return False

        committed = self.store.commit(ticket, items)
        if committed:
            self.state = ViewState.IDLE
            logger.log_view_event(self.name, f"loaded {len(items)} {self.plural}")
        return committed

    def invalidate(self) -> None:
        self.ctx.stores.invalidate(self.store_key(), *self.invalidates)

    # ---------------------------------------------------------------
    # Filtering
    # ---------------------------------------------------------------

    async def set_filter(self, key: str, value: Any) -> List[T]:
        self.filters[key] = value
        if key in self.server_filters:
            await self.load()
        return self.visible()

    async def clear_filters(self) -> List[T]:
        had_server_filter = any(self.filters.get(k) not in ANY_VALUES for k in self.server_filters)
        self.filters = {}
        if had_server_filter:
            await self.load()
        return self.visible()

    def sort(self, items: List[T]) -> List[T]:
        return items

    def visible(self) -> List[T]:
        """Loaded records passing every client-side filter"""
        predicates = build_predicates(
            self.filters,
            search_fields=self.search_fields,
            date_fields=self.date_fields,
            skip=self.server_filters + self.computed_filters,
        )
        return self.sort(apply_filters(self.items, predicates))

    def count_by(self, attribute: str, items: Optional[Sequence[T]] = None) -> Dict[Any, int]:
        counts: Dict[Any, int] = {}
        for item in self.items if items is None else items:
            value = field_value(item, attribute)
            counts[value] = counts.get(value, 0) + 1
        return counts

    # ---------------------------------------------------------------
    # Admin gating
    # ---------------------------------------------------------------

    def actions(self, record: Optional[T] = None) -> List[str]:
        """Mutation affordances to render; none at all for non-admins"""
        if self.admin_only and not self.is_admin:
            return []
        if record is None:
            return list(self.collection_actions)
        return list(self.record_actions)

    def _require_admin(self, action: str) -> None:
        if self.admin_only and not self.is_admin:
            logger.warning(f"Blocked {action} on {self.plural} for role '{self.session.role}'")
            raise AuthorizationError(f"Only administrators can {action} {self.plural}")

    # ---------------------------------------------------------------
    # Dialog
    # ---------------------------------------------------------------

    def default_form(self) -> Dict[str, Any]:
        return {}

    def form_from(self, record: T) -> Dict[str, Any]:
        return record.model_dump(exclude=set(record.READ_ONLY))

    def open_create(self, initial: Optional[Dict[str, Any]] = None) -> Dialog:
        self._require_admin("create")
        form = {**self.default_form(), **(initial or {})}
        self.dialog = Dialog(DialogMode.CREATE, form=form)
        self.state = ViewState.DIALOG_OPEN
        return self.dialog

    def open_edit(self, record: T) -> Dialog:
        self._require_admin("edit")
        self.dialog = Dialog(DialogMode.EDIT, record=record, form=self.form_from(record))
        self.state = ViewState.DIALOG_OPEN
        return self.dialog

    def close_dialog(self) -> None:
        self.dialog = None
        if self.state == ViewState.DIALOG_OPEN:
            self.state = ViewState.IDLE

    def build_payload(self, dialog: Dialog) -> T:
        """Validated record from the dialog form; edits overlay the original"""
        data = dict(dialog.form)
        if dialog.is_edit and dialog.record is not None:
            data = {**dialog.record.model_dump(), **data}
        try:
            return self.model.model_validate(data)
        except PydanticValidationError as e:
            raise first_error(e) from e

    def validate(self, payload: T, dialog: Dialog) -> None:
        """Module-specific advisory checks; raise ValidationError to block"""

    async def persist(self, payload: T, dialog: Dialog) -> Any:
        if dialog.is_edit:
            return await self.client.update(dialog.record.key, payload)
        return await self.client.create(payload)

    async def submit(self, form: Optional[Dict[str, Any]] = None) -> bool:
        """Save the open dialog. A second submit while one is in flight is ignored."""
        if self.state == ViewState.SUBMITTING:
            logger.debug(f"Ignoring duplicate submit on {self.name}")
            return False
        if self.dialog is None or self.state != ViewState.DIALOG_OPEN:
            logger.warning(f"Submit on {self.name} with no open dialog")
            return False

        set_view(self.name)
        dialog = self.dialog
        dialog.form.update(form or {})

        try:
            self._require_admin("edit" if dialog.is_edit else "create")
            payload = self.build_payload(dialog)
            self.validate(payload, dialog)
        except PortalError as e:
            self.notifier.error(e.message)
            return False

        self.state = ViewState.SUBMITTING
        try:
            await self.persist(payload, dialog)
        except PortalError as e:
            self.state = ViewState.DIALOG_OPEN
            logger.warning(f"Saving {self.label.lower()} failed: {e.message}")
            self.notifier.error(e.message or "Operation failed")
            return False

        verb = "updated" if dialog.is_edit else "created"
        self.dialog = None
        self.notifier.success(f"{self.label} {verb} successfully!")
        self.invalidate()
        await self.load()
        return True

    # ---------------------------------------------------------------
    # Delete
    # ---------------------------------------------------------------

    def delete_prompt(self, record: T) -> str:
        return f"Are you sure you want to delete this {self.label.lower()}?"

    async def delete(self, record: T) -> bool:
        """Confirm, delete, reload. Declining the prompt changes nothing."""
        self._require_admin("delete")
        if not self.ctx.confirm(self.delete_prompt(record)):
            return False

        set_view(self.name)
        self.state = ViewState.DELETING
        try:
            await self.client.delete(record.key)
        except PortalError as e:
            self.state = ViewState.IDLE
            logger.warning(f"Deleting {self.label.lower()} {record.id} failed: {e.message}")
            self.notifier.error(e.message or "Delete failed")
            return False

        self.notifier.success(f"{self.label} deleted successfully!")
        self.invalidate()
        await self.load()
        return True

    # ---------------------------------------------------------------
    # Module-specific mutations
    # ---------------------------------------------------------------

    async def mutate(
        self,
        call: Callable[[], Awaitable[Any]],
        success: Optional[str],
        failure: str,
        reload: bool = True,
    ) -> bool:
        """Run one extra mutation with the same notify / invalidate / reload tail"""
        set_view(self.name)
        try:
            await call()
        except PortalError as e:
            logger.warning(f"{failure}: {e.message}")
            self.notifier.error(e.message or failure)
            return False

        if success:
            self.notifier.success(success)
        self.invalidate()
        if reload:
            await self.load()
        return True
