"""
StudentHub - Test Configuration and Fixtures
"""
from typing import AsyncGenerator, List

import pytest
from faker import Faker

from mocks.mock_portal import MockPortalBackend
from studenthub.api import PortalAPIClient
from studenthub.config import PortalConfig
from studenthub.notifications import Notifier
from studenthub.session import SessionStore, SessionUser
from studenthub.store import StoreRegistry
from studenthub.views import ViewContext

fake = Faker()

API_URL = 'http://portal.test/api'


class ConfirmStub:
    """Stands in for the terminal yes/no prompt"""

    def __init__(self, answer: bool = True):
        self.answer = answer
        self.questions: List[str] = []

    def __call__(self, question: str) -> bool:
        self.questions.append(question)
        return self.answer


def make_session(role: str, **overrides) -> SessionStore:
    """In-memory session for a freshly faked user"""
    user = SessionUser(
        id=overrides.pop('id', str(fake.random_int(1, 9999))),
        name=overrides.pop('name', fake.name()),
        email=overrides.pop('email', fake.unique.email()),
        role=role,
        **overrides
    )
    session = SessionStore()
    session.login(user, 'test-token')
    return session


@pytest.fixture
def config(tmp_path) -> PortalConfig:
    """Config isolated to a temporary directory"""
    return PortalConfig(api_base_url=API_URL, config_dir=str(tmp_path), export_dir=str(tmp_path))


@pytest.fixture
def backend() -> MockPortalBackend:
    return MockPortalBackend()


@pytest.fixture
async def api(config: PortalConfig, backend: MockPortalBackend) -> AsyncGenerator[PortalAPIClient, None]:
    """API client wired to the in-memory backend"""
    client = PortalAPIClient(config, token='test-token', transport=backend.transport)
    yield client
    await client.aclose()


@pytest.fixture
def admin_session() -> SessionStore:
    return make_session('admin')


@pytest.fixture
def student_session() -> SessionStore:
    return make_session('student')


@pytest.fixture
def notifier() -> Notifier:
    return Notifier(quiet=True)


@pytest.fixture
def confirm() -> ConfirmStub:
    return ConfirmStub()


@pytest.fixture
def stores() -> StoreRegistry:
    return StoreRegistry()


@pytest.fixture
def admin_ctx(api, admin_session, notifier, confirm, stores) -> ViewContext:
    return ViewContext(api=api, session=admin_session, notifier=notifier, stores=stores, confirm=confirm)


@pytest.fixture
def student_ctx(api, student_session, notifier, confirm, stores) -> ViewContext:
    return ViewContext(api=api, session=student_session, notifier=notifier, stores=stores, confirm=confirm)


@pytest.fixture
def course_data() -> dict:
    """Course record as the backend stores it"""
    return {
        'code': f'CS{fake.random_int(100, 499)}',
        'name': fake.catch_phrase(),
        'credits': 3,
        'instructor': fake.name(),
        'semester': 'Fall 2025',
        'enrolled': 0,
        'capacity': 30,
        'category': 'science',
    }


@pytest.fixture
def make_ctx(api, notifier, confirm, stores):
    """Build a context for any role, sharing the api, notifier and stores"""
    def _make(role: str = 'student', **user_fields) -> ViewContext:
        return ViewContext(
            api=api,
            session=make_session(role, **user_fields),
            notifier=notifier,
            stores=stores,
            confirm=confirm,
        )
    return _make
