"""
Shared test fixtures for Shopfloor Tracker tests

Provides the store, a workflow engine with a controllable clock, operator
identities and an API client bound to the test store.
"""
import pytest
from datetime import datetime, timedelta, timezone
from fastapi.testclient import TestClient

from shopfloor.core.status_config import UserRole
from shopfloor.db.store import WorkflowStore, get_store
from shopfloor.main import app
from shopfloor.models.actor import Actor
from shopfloor.services.workflow_engine import WorkflowEngine

from tests.factories import reset_sequences


BASE_TIME = datetime(2026, 1, 21, 22, 0, tzinfo=timezone.utc)


class FakeClock:
    """Clock that advances a fixed step on every reading."""

    def __init__(self, start: datetime = BASE_TIME, step: timedelta = timedelta(minutes=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture(autouse=True)
def _reset_factory_sequences():
    reset_sequences()
    yield


@pytest.fixture
def store():
    """An empty store for each test"""
    return WorkflowStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(store, clock):
    """Workflow engine over the test store"""
    return WorkflowEngine(store, clock=clock)


@pytest.fixture
def operator():
    return Actor(id="OP-101", name="Mike Johnson", role=UserRole.OPERATOR)


@pytest.fixture
def inspector():
    return Actor(id="QC-201", name="Emily Watson", role=UserRole.QC)


@pytest.fixture
def shipper():
    return Actor(id="SH-301", name="David Miller", role=UserRole.SHIPPING)


@pytest.fixture
def supervisor():
    return Actor(id="SUP-001", name="Pat Morgan", role=UserRole.SUPERVISOR)


@pytest.fixture
def client(store):
    """Create a test client with store override"""
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def operator_headers(actor: Actor) -> dict:
    """Identity headers for an actor"""
    headers = {"X-Operator-Id": actor.id, "X-Operator-Name": actor.name}
    if actor.role is not None:
        headers["X-Operator-Role"] = actor.role.value
    return headers


@pytest.fixture
def operator_auth(operator):
    return operator_headers(operator)


@pytest.fixture
def inspector_auth(inspector):
    return operator_headers(inspector)


@pytest.fixture
def shipper_auth(shipper):
    return operator_headers(shipper)


@pytest.fixture
def supervisor_auth(supervisor):
    return operator_headers(supervisor)
