from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from backend.app import create_app
from backend.config import Settings
from questforge.storage import Storage


class FixedRandom:
    """Random source that replays the given values, then keeps returning the last one."""

    def __init__(self, *values: float) -> None:
        self._values = list(values) or [0.99]
        self.calls = 0

    def __call__(self) -> float:
        value = self._values[min(self.calls, len(self._values) - 1)]
        self.calls += 1
        return value


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """A fresh, empty data directory for every test."""
    return tmp_path / "data"


@pytest.fixture
def storage(data_dir: Path) -> Storage:
    return Storage(data_dir)


@pytest.fixture
def settings(data_dir: Path) -> Settings:
    return Settings(
        data_dir=data_dir,
        host="127.0.0.1",
        port=13013,
        log_level="INFO",
        user_header="X-User-Id",
        dev_user="",
    )


@pytest.fixture
def app(settings: Settings):
    app = create_app(settings=settings)
    app.state.rng = FixedRandom(0.99)  # no loot unless a test says otherwise
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app, headers={"X-User-Id": "hero"})
