import logging

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import Response

from storefront.cache.response_cache import route_key
from storefront.config import get_settings
from storefront.errors import NotFoundError
from storefront.models.product import ProductCreate, ProductUpdate
from storefront.routes.common import (
    admin_response,
    cached_response,
    parse_body,
)
from storefront.server import get_cache, get_db

logger = logging.getLogger(__name__)


def register_product_routes(mcp: FastMCP) -> None:
    """Register the /api/products HTTP routes on the MCP server.

    Reads are public and cached; list responses use
    ``PRODUCTS_CACHE_DURATION`` and single items ``CACHE_DURATION``.
    Writes need the admin token and invalidate the cached list and item.
    """
    settings = get_settings()
    list_duration = settings.products_cache_duration
    item_duration = settings.cache_duration

    @mcp.custom_route("/api/products", methods=["GET"])
    async def list_products(request: Request) -> Response:
        async def produce() -> tuple[int, object]:
            products = await get_db().list_products()
            return 200, [p.model_dump(mode="json") for p in products]

        return await cached_response(request, list_duration, produce)

    @mcp.custom_route("/api/products/{product_id:int}", methods=["GET"])
    async def get_product(request: Request) -> Response:
        product_id = request.path_params["product_id"]

        async def produce() -> tuple[int, object]:
            product = await get_db().get_product(product_id)
            if product is None:
                raise NotFoundError("Product not found")
            return 200, product.model_dump(mode="json")

        return await cached_response(
            request, item_duration, produce, key_fn=lambda _: route_key("products", product_id)
        )

    @mcp.custom_route("/api/products", methods=["POST"])
    async def create_product(request: Request) -> Response:
        async def produce() -> tuple[int, object]:
            data = await parse_body(request, ProductCreate)
            product = await get_db().create_product(data)
            get_cache().invalidate_route("products")
            logger.info("Created product %d", product.id)
            return 201, product.model_dump(mode="json")

        return await admin_response(request, produce)

    @mcp.custom_route("/api/products/{product_id:int}", methods=["PUT", "PATCH"])
    async def update_product(request: Request) -> Response:
        product_id = request.path_params["product_id"]

        async def produce() -> tuple[int, object]:
            db = get_db()
            if request.method == "PUT":
                product = await db.replace_product(product_id, await parse_body(request, ProductCreate))
            else:
                product = await db.update_product(product_id, await parse_body(request, ProductUpdate))
            if product is None:
                raise NotFoundError("Product not found")
            get_cache().invalidate_route("products", product_id)
            return 200, product.model_dump(mode="json")

        return await admin_response(request, produce)

    @mcp.custom_route("/api/products/{product_id:int}", methods=["DELETE"])
    async def delete_product(request: Request) -> Response:
        product_id = request.path_params["product_id"]

        async def produce() -> tuple[int, object]:
            if not await get_db().delete_product(product_id):
                raise NotFoundError("Product not found")
            get_cache().invalidate_route("products", product_id)
            return 200, {"message": "Product deleted successfully"}

        return await admin_response(request, produce)
