from unittest.mock import patch

import aiosqlite
import pytest
from fastmcp import Client, FastMCP

from storefront.storage.database import DatabaseManager
from storefront.tools.catalog import register_catalog_tools
from tests.factories import make_product_create


@pytest.fixture
def catalog_mcp(db, cache, monkeypatch: pytest.MonkeyPatch) -> FastMCP:
    monkeypatch.setattr("storefront.server._db", db)
    monkeypatch.setattr("storefront.server._cache", cache)
    test_mcp = FastMCP("test")
    register_catalog_tools(test_mcp)
    return test_mcp


class TestBrowseProducts:
    async def test_empty_catalog(self, catalog_mcp):
        async with Client(catalog_mcp) as client:
            result = await client.call_tool("browse_products", {})
        assert "The catalog is empty." in str(result)

    async def test_lists_products_and_caches(self, catalog_mcp, db: DatabaseManager, cache):
        await db.create_product(make_product_create(name="Lamp", price=25))
        async with Client(catalog_mcp) as client:
            result = await client.call_tool("browse_products", {})
        assert "Lamp - $25.00 (in stock)" in str(result)
        assert "GET:/api/products" in cache.store

    async def test_single_product(self, catalog_mcp, db: DatabaseManager):
        product = await db.create_product(
            make_product_create(name="Desk", price=99.5, in_stock=False, description="Oak")
        )
        async with Client(catalog_mcp) as client:
            result = await client.call_tool("browse_products", {"product_id": product.id})
        text = str(result)
        assert "Desk - $99.50 (out of stock)" in text
        assert "Oak" in text

    async def test_missing_product(self, catalog_mcp, cache):
        async with Client(catalog_mcp) as client:
            result = await client.call_tool("browse_products", {"product_id": 77})
        assert "No product with ID 77." in str(result)
        assert cache.get_stats().entries == 0

    async def test_served_from_http_warmed_entry(self, catalog_mcp, cache):
        cache.store.put(
            "GET:/api/products",
            [{"id": 1, "name": "Cached", "price": 1.0, "in_stock": True}],
            ttl_seconds=300,
            size_bytes=60,
        )
        async with Client(catalog_mcp) as client:
            result = await client.call_tool("browse_products", {})
        assert "Cached" in str(result)
        assert cache.get_stats().hits == 1


class TestBrowseProductsFailures:
    async def test_server_not_started(self, cache, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr("storefront.server._db", None)
        monkeypatch.setattr("storefront.server._cache", cache)
        test_mcp = FastMCP("test")
        register_catalog_tools(test_mcp)
        async with Client(test_mcp) as client:
            result = await client.call_tool("browse_products", {})
        assert "still starting up" in str(result)

    async def test_database_error_returns_message(self, catalog_mcp, db: DatabaseManager):
        with patch.object(db, "list_products", side_effect=aiosqlite.OperationalError("locked")):
            async with Client(catalog_mcp) as client:
                result = await client.call_tool("browse_products", {})
        assert "database is unavailable" in str(result)
