import logging

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import Response

from storefront.auth import hash_password
from storefront.cache.response_cache import route_key
from storefront.config import get_settings
from storefront.errors import ConflictError, NotFoundError
from storefront.models.user import UserCreate, UserUpdate
from storefront.routes.common import (
    admin_response,
    cached_response,
    parse_body,
    run_handler,
    to_response,
)
from storefront.server import get_cache, get_db

logger = logging.getLogger(__name__)


async def _ensure_email_free(email: str | None, user_id: int | None = None) -> None:
    if email is None:
        return
    existing = await get_db().get_user_by_email(email)
    if existing is not None and existing.id != user_id:
        raise ConflictError("User already exists")


def register_user_routes(mcp: FastMCP) -> None:
    """Register the /api/users HTTP routes on the MCP server.

    Registration (``POST``) is open. Reading, changing and deleting
    accounts needs the admin token; reads are cached for ``CACHE_DURATION``.
    """
    duration = get_settings().cache_duration

    @mcp.custom_route("/api/users", methods=["GET"])
    async def list_users(request: Request) -> Response:
        async def produce() -> tuple[int, object]:
            users = await get_db().list_users()
            return 200, [u.model_dump(mode="json") for u in users]

        return await cached_response(request, duration, produce, admin=True)

    @mcp.custom_route("/api/users/{user_id:int}", methods=["GET"])
    async def get_user(request: Request) -> Response:
        user_id = request.path_params["user_id"]

        async def produce() -> tuple[int, object]:
            user = await get_db().get_user(user_id)
            if user is None:
                raise NotFoundError("User not found")
            return 200, user.model_dump(mode="json")

        return await cached_response(
            request, duration, produce, admin=True, key_fn=lambda _: route_key("users", user_id)
        )

    @mcp.custom_route("/api/users", methods=["POST"])
    async def create_user(request: Request) -> Response:
        async def produce() -> tuple[int, object]:
            data = await parse_body(request, UserCreate)
            await _ensure_email_free(data.email)
            user = await get_db().create_user(data, hash_password(data.password))
            get_cache().invalidate_route("users")
            logger.info("Registered user %d", user.id)
            return 201, user.model_dump(mode="json")

        status_code, body = await run_handler(produce)
        return to_response(status_code, body)

    @mcp.custom_route("/api/users/{user_id:int}", methods=["PUT", "PATCH"])
    async def update_user(request: Request) -> Response:
        user_id = request.path_params["user_id"]

        async def produce() -> tuple[int, object]:
            db = get_db()
            if request.method == "PUT":
                data = await parse_body(request, UserCreate)
                await _ensure_email_free(data.email, user_id)
                user = await db.replace_user(user_id, data, hash_password(data.password))
            else:
                patch = await parse_body(request, UserUpdate)
                await _ensure_email_free(patch.email, user_id)
                password_hash = hash_password(patch.password) if patch.password else None
                user = await db.update_user(user_id, patch, password_hash)
            if user is None:
                raise NotFoundError("User not found")
            get_cache().invalidate_route("users", user_id)
            return 200, user.model_dump(mode="json")

        return await admin_response(request, produce)

    @mcp.custom_route("/api/users/{user_id:int}", methods=["DELETE"])
    async def delete_user(request: Request) -> Response:
        user_id = request.path_params["user_id"]

        async def produce() -> tuple[int, object]:
            if not await get_db().delete_user(user_id):
                raise NotFoundError("User not found")
            get_cache().invalidate_route("users", user_id)
            return 200, {"message": "User deleted successfully"}

        return await admin_response(request, produce)
