"""MCP tools for browsing the product catalog.

Reads go through the same response cache as ``GET /api/products`` and
share its keys, so a tool call can be served from a response an HTTP
client warmed (and the other way round).
"""

import logging

from fastmcp import FastMCP

from storefront.cache.gate import CacheRequest
from storefront.config import get_settings
from storefront.server import get_cache, get_db
from storefront.tools.error_messages import safe_tool_wrapper

logger = logging.getLogger(__name__)


def _format_product(product: dict) -> str:
    stock = "in stock" if product.get("in_stock") else "out of stock"
    line = f"#{product['id']} {product['name']} - ${product['price']:.2f} ({stock})"
    if product.get("description"):
        line += f"\n    {product['description']}"
    return line


async def _browse(product_id: int | None) -> str:
    settings = get_settings()
    db = get_db()

    if product_id is None:
        request = CacheRequest("GET", "/api/products")
        duration = settings.products_cache_duration

        async def produce() -> tuple[int, object]:
            return 200, [p.model_dump(mode="json") for p in await db.list_products()]

    else:
        request = CacheRequest("GET", f"/api/products/{product_id}")
        duration = settings.cache_duration

        async def produce() -> tuple[int, object]:
            product = await db.get_product(product_id)
            if product is None:
                return 404, {"error": "Product not found"}
            return 200, product.model_dump(mode="json")

    result = await get_cache().handle(request, duration, produce)
    logger.debug("browse_products %s -> %s", request.cache_key, result.status)

    if result.status_code == 404:
        return f"No product with ID {product_id}."
    body = result.body
    if isinstance(body, dict):
        return _format_product(body)
    if not body:
        return "The catalog is empty."
    assert isinstance(body, list)
    return "\n".join(_format_product(p) for p in body)


def register_catalog_tools(mcp: FastMCP) -> None:
    """Register catalog browsing tools on the MCP server."""

    @mcp.tool
    async def browse_products(product_id: int | None = None) -> str:
        """List all products, or show one product by ID.

        Args:
            product_id: Show only this product.

        Returns:
            Formatted product listing.
        """
        return await safe_tool_wrapper(_browse, product_id)
