import itertools
import os
import pytest

from profitplate.core.service import ProfitPlate
from profitplate.db.database import MemoryStorage


@pytest.fixture(scope="session", autouse=True)
def set_test_env(tmp_path_factory):
    db_file = tmp_path_factory.mktemp("data") / "test.db"
    os.environ["DB_PATH"] = str(db_file)
    os.environ.pop("PROFITPLATE_SEED_DEMO", None)


@pytest.fixture(scope="session")
def client(set_test_env):
    from fastapi.testclient import TestClient
    from app.main import app
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


class FakeClock:
    """Returns a new, strictly increasing timestamp on every call."""

    def __init__(self):
        self.ticks = itertools.count(1)
        self.last = None

    def __call__(self) -> str:
        n = next(self.ticks)
        self.last = f"2025-03-01T10:{n // 60:02d}:{n % 60:02d}Z"
        return self.last


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def service(storage, clock):
    counter = itertools.count(1)
    return ProfitPlate(storage, clock=clock, id_factory=lambda: f"id_{next(counter)}")
