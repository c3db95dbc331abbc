import logging

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import Response

from storefront.cache.response_cache import route_key
from storefront.config import get_settings
from storefront.errors import NotFoundError, ValidationFailedError
from storefront.models.order import OrderCreate, OrderUpdate
from storefront.routes.common import admin_response, cached_response, parse_body
from storefront.server import get_cache, get_db

logger = logging.getLogger(__name__)


async def _ensure_products_exist(product_ids: list[int] | None) -> None:
    if not product_ids:
        return
    missing = await get_db().missing_product_ids(product_ids)
    if missing:
        raise ValidationFailedError(
            "Unknown products",
            [{"message": f"Product {pid} does not exist", "path": ["product_ids"]} for pid in missing],
        )


def register_order_routes(mcp: FastMCP) -> None:
    """Register the /api/orders HTTP routes on the MCP server.

    Every order route needs the admin token. Reads are cached
    (``ORDERS_CACHE_DURATION`` for the list, ``CACHE_DURATION`` per order);
    writes invalidate them.
    """
    settings = get_settings()
    list_duration = settings.orders_cache_duration
    item_duration = settings.cache_duration

    @mcp.custom_route("/api/orders", methods=["GET"])
    async def list_orders(request: Request) -> Response:
        async def produce() -> tuple[int, object]:
            orders = await get_db().list_orders()
            return 200, [o.model_dump(mode="json") for o in orders]

        return await cached_response(request, list_duration, produce, admin=True)

    @mcp.custom_route("/api/orders/{order_id:int}", methods=["GET"])
    async def get_order(request: Request) -> Response:
        order_id = request.path_params["order_id"]

        async def produce() -> tuple[int, object]:
            order = await get_db().get_order(order_id)
            if order is None:
                raise NotFoundError("Order not found")
            return 200, order.model_dump(mode="json")

        return await cached_response(
            request,
            item_duration,
            produce,
            admin=True,
            key_fn=lambda _: route_key("orders", order_id),
        )

    @mcp.custom_route("/api/orders", methods=["POST"])
    async def create_order(request: Request) -> Response:
        async def produce() -> tuple[int, object]:
            data = await parse_body(request, OrderCreate)
            await _ensure_products_exist(data.product_ids)
            order = await get_db().create_order(data)
            get_cache().invalidate_route("orders")
            logger.info("Created order %d", order.id)
            return 201, order.model_dump(mode="json")

        return await admin_response(request, produce)

    @mcp.custom_route("/api/orders/{order_id:int}", methods=["PUT", "PATCH"])
    async def update_order(request: Request) -> Response:
        order_id = request.path_params["order_id"]

        async def produce() -> tuple[int, object]:
            db = get_db()
            if request.method == "PUT":
                data = await parse_body(request, OrderCreate)
                await _ensure_products_exist(data.product_ids)
                order = await db.replace_order(order_id, data)
            else:
                patch = await parse_body(request, OrderUpdate)
                await _ensure_products_exist(patch.product_ids)
                order = await db.update_order(order_id, patch)
            if order is None:
                raise NotFoundError("Order not found")
            get_cache().invalidate_route("orders", order_id)
            return 200, order.model_dump(mode="json")

        return await admin_response(request, produce)

    @mcp.custom_route("/api/orders/{order_id:int}", methods=["DELETE"])
    async def delete_order(request: Request) -> Response:
        order_id = request.path_params["order_id"]

        async def produce() -> tuple[int, object]:
            if not await get_db().delete_order(order_id):
                raise NotFoundError("Order not found")
            get_cache().invalidate_route("orders", order_id)
            return 200, {"message": "Order deleted successfully"}

        return await admin_response(request, produce)
