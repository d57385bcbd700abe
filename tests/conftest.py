import pytest

from burhanpur_admin.core.events import EventBus
from burhanpur_admin.core.heartbeat import ManualScheduler
from burhanpur_admin.core.notifications import NotificationFetcher
from burhanpur_admin.core.overrides import InMemoryOverrideStore
from tests.fakes import FakeBackend


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def store():
    return InMemoryOverrideStore()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def fetcher(backend):
    return NotificationFetcher(backend)
