import httpx
import pytest
from fastmcp import FastMCP

from storefront.routes.cache import register_cache_routes
from storefront.routes.orders import register_order_routes
from storefront.routes.products import register_product_routes
from storefront.routes.users import register_user_routes
from tests.factories import ADMIN_TOKEN


@pytest.fixture
async def client(db, cache, monkeypatch: pytest.MonkeyPatch):
    """HTTP client against a fresh app wired to the test db and cache."""
    monkeypatch.setattr("storefront.server._db", db)
    monkeypatch.setattr("storefront.server._cache", cache)
    test_mcp = FastMCP("test")
    register_product_routes(test_mcp)
    register_order_routes(test_mcp)
    register_user_routes(test_mcp)
    register_cache_routes(test_mcp)
    transport = httpx.ASGITransport(app=test_mcp.http_app())
    async with httpx.AsyncClient(transport=transport, base_url="http://shop.test") as http:
        yield http


@pytest.fixture
def admin_token(monkeypatch: pytest.MonkeyPatch) -> str:
    """Configure an admin token and return it."""
    from storefront.config import reset_settings

    monkeypatch.setenv("MCP_AUTH_TOKEN", ADMIN_TOKEN)
    reset_settings()
    return ADMIN_TOKEN
