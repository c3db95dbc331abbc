from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import Response

from storefront.models.cache import CacheStatsReport
from storefront.routes.common import admin_response
from storefront.server import get_cache


def register_cache_routes(mcp: FastMCP) -> None:
    """Register the admin-only cache statistics and clear routes."""

    @mcp.custom_route("/cache/stats", methods=["GET"])
    async def cache_statistics(request: Request) -> Response:
        async def produce() -> tuple[int, object]:
            report = CacheStatsReport.from_stats(get_cache().get_stats())
            return 200, report.model_dump(by_alias=True)

        return await admin_response(request, produce)

    @mcp.custom_route("/cache", methods=["DELETE"])
    async def clear_entire_cache(request: Request) -> Response:
        async def produce() -> tuple[int, object]:
            get_cache().clear_all()
            return 200, {"message": "Cache cleared successfully"}

        return await admin_response(request, produce)
