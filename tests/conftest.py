import pytest

from storefront.config import reset_settings
from storefront.storage.database import DatabaseManager
from tests.factories import FakeClock, make_cache


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Keep tests independent of the developer's environment and .env file."""
    for name in (
        "MCP_AUTH_TOKEN",
        "CACHE_DEBUG",
        "CACHE_SIZE_LIMIT",
        "POPULAR_RESOURCE_MULTIPLIER",
        "PRODUCTS_CACHE_DURATION",
        "CACHE_DURATION",
        "ORDERS_CACHE_DURATION",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def tmp_data_dir(tmp_path):
    """Provide a temporary data directory for tests that touch the filesystem."""
    return tmp_path / "data"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return make_cache(clock)


@pytest.fixture
async def db():
    """In-memory SQLite database with schema applied."""
    manager = DatabaseManager(":memory:")
    await manager.initialize()
    yield manager
    await manager.close()
