"""MCP tools for inspecting and clearing the response cache."""

import logging

from fastmcp import FastMCP

from storefront.models.cache import CacheStatsReport
from storefront.server import get_cache
from storefront.tools.error_messages import safe_tool_wrapper

logger = logging.getLogger(__name__)


async def _format_stats(top: int) -> str:
    report = CacheStatsReport.from_stats(get_cache().get_stats(), top=top)
    lines = [
        "Response cache:",
        f"  Hits: {report.hits}  Misses: {report.misses}  "
        f"Hit ratio: {report.hit_ratio * 100:.1f}%",
        f"  Entries: {report.entries}  Size: {report.size_in_mb:.2f} MB",
    ]
    if report.popular_resources:
        lines.append("\nMost requested:")
        for key, count in report.popular_resources.items():
            lines.append(f"  {key}: {count}")
    return "\n".join(lines)


async def _clear(route: str | None, item_id: str | None) -> str:
    cache = get_cache()
    if route is None:
        if item_id is not None:
            return "item_id needs a route, e.g. route='products'."
        cache.clear_all()
        logger.info("Cache cleared via MCP tool")
        return "Cache cleared successfully."

    removed = cache.invalidate_route(route, item_id)
    target = f"{route}/{item_id}" if item_id is not None else route
    return f"Invalidated '{target}' ({removed} cached entries removed)."


def register_cache_tools(mcp: FastMCP) -> None:
    """Register response cache admin tools on the MCP server."""

    @mcp.tool
    async def cache_stats(top: int = 10) -> str:
        """Show response cache statistics: hit ratio, entries, memory use
        and the most requested resources.

        Args:
            top: How many popular resources to list (default 10).

        Returns:
            Formatted cache report.
        """
        return await safe_tool_wrapper(_format_stats, top)

    @mcp.tool
    async def clear_cache(route: str | None = None, item_id: str | None = None) -> str:
        """Clear cached responses, either everything or one API route.

        Args:
            route: Route name such as "products" or "orders". Omit to
                clear the whole cache.
            item_id: With *route*, also clear that single item.

        Returns:
            Confirmation of what was cleared.
        """
        return await safe_tool_wrapper(_clear, route, item_id)
