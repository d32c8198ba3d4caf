"""
Global pytest fixtures for the Linkr test suite.

Responsibilities:
    - Provide isolated in-memory link store and visit log fixtures
    - Provide a controllable clock so expiry can be tested without sleeping
    - Provide a LinkResolver and StatsAggregator wired to those fixtures
    - Provide a fresh FastAPI TestClient via the app factory

Why an app factory?
    Using `create_app()` with injected dependencies gives each test fresh
    in-memory state, eliminating cross-test flakiness.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from main import create_app
from linkr.analytics.analytics import VisitLog
from linkr.analytics.stats import StatsAggregator
from linkr.manager.link_resolver import LinkResolver
from linkr.manager.strategies import RandomStrategy
from linkr.storage.storage import Storage


class MutableClock:
    """Callable clock returning a settable UTC instant."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock(datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def visit_log() -> VisitLog:
    """Fresh in-memory visit log."""
    return VisitLog()


@pytest.fixture
def storage(visit_log: VisitLog) -> Storage:
    """Fresh in-memory link store delegating list_visits to the visit_log fixture."""
    return Storage(visit_log=visit_log)


@pytest.fixture
def resolver(storage: Storage, visit_log: VisitLog, clock: MutableClock) -> LinkResolver:
    """LinkResolver wired to the in-memory fixtures and the controllable clock."""
    return LinkResolver(
        storage=storage,
        visit_log=visit_log,
        code_strategy=RandomStrategy(),
        clock=clock,
    )


@pytest.fixture
def stats(storage: Storage, visit_log: VisitLog) -> StatsAggregator:
    return StatsAggregator(storage=storage, visit_log=visit_log)


@pytest.fixture
def client(storage: Storage, visit_log: VisitLog, clock: MutableClock) -> TestClient:
    """
    Provide a fresh TestClient with a new app instance.

    The app shares the storage/visit_log/clock fixtures so tests can both
    drive HTTP and inspect state directly.
    """
    app = create_app(storage=storage, visit_log=visit_log, clock=clock)
    return TestClient(app)
