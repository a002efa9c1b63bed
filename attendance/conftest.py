import contextlib
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass

import pytest
from httpx import ASGITransport, AsyncClient

from attendance.main import app
from attendance.polls.dispatcher import RequestDispatcher
from attendance.polls.engine import AttendanceEngine
from attendance.polls.repository.store import EventStore
from attendance.polls.router import get_dispatcher


@dataclass
class EngineTestConfig:
    timezone: str = "Europe/Berlin"
    datetime_display_format: str = "%Y-%m-%d %H:%M"
    default_title_template: str = "Attendance poll for {event_date}"


@pytest.fixture
def engine_config():
    return EngineTestConfig()


@pytest.fixture
def snapshot_path(tmp_path):
    return tmp_path / "events.json"


@pytest.fixture
def store(snapshot_path):
    """A fresh, empty store per test."""
    event_store = EventStore(snapshot_path)
    event_store.load_on_startup()
    return event_store


@pytest.fixture
def engine(store, engine_config):
    return AttendanceEngine(store, config=engine_config)


@pytest.fixture
async def dispatcher(engine):
    request_dispatcher = RequestDispatcher(engine)
    await request_dispatcher.start()
    yield request_dispatcher
    await request_dispatcher.stop()


@pytest.fixture
def client_factory(dispatcher) -> Callable[[dict], contextlib.AbstractAsyncContextManager]:
    """Build a test client with dependency overrides applied.

    The dispatcher dependency always points at the per-test dispatcher.
    """

    @contextlib.asynccontextmanager
    async def factory(overrides: dict | None = None) -> AsyncIterator[AsyncClient]:
        app.dependency_overrides[get_dispatcher] = lambda: dispatcher
        app.dependency_overrides.update(overrides or {})
        app.state.dispatcher = dispatcher
        transport = ASGITransport(app=app)
        try:
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                yield client
        finally:
            app.dependency_overrides.clear()
            del app.state.dispatcher

    return factory


@pytest.fixture
async def client(client_factory):
    async with client_factory() as ac:
        yield ac
