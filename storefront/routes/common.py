"""Glue between Starlette routes and the response cache."""

import json
import logging
from typing import TypeVar

from pydantic import BaseModel, ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from storefront.auth import require_admin
from storefront.cache.gate import CacheRequest, CacheResult, KeyFunction, Producer
from storefront.config import get_settings
from storefront.errors import StorefrontError, ValidationFailedError, error_body
from storefront.server import get_cache

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


async def run_handler(handler: Producer) -> tuple[int, object]:
    """Await *handler*, turning storefront errors into ``(status, body)``."""
    try:
        return await handler()
    except StorefrontError as exc:
        return exc.status_code, error_body(exc)


def to_response(status_code: int, body: object, headers: dict[str, str] | None = None) -> Response:
    if isinstance(body, bytes | bytearray):
        return Response(bytes(body), status_code=status_code, headers=headers)
    return JSONResponse(body, status_code=status_code, headers=headers)


def result_response(result: CacheResult) -> Response:
    return to_response(result.status_code, result.body, result.headers)


def check_admin(request: Request) -> None:
    require_admin(request.headers.get("authorization"), get_settings().mcp_auth_token)


async def cached_response(
    request: Request,
    base_duration: int,
    handler: Producer,
    admin: bool = False,
    key_fn: KeyFunction | None = None,
) -> Response:
    """Serve a GET route through the response cache.

    With ``admin=True`` the token is checked before the cache is consulted,
    so rejected callers never see cached bodies or move popularity.
    Item routes pass *key_fn* so every spelling of an id (``7``, ``07``)
    shares the entry that ``invalidate_route`` clears.
    """
    if admin:
        try:
            check_admin(request)
        except StorefrontError as exc:
            return to_response(exc.status_code, error_body(exc))
    result = await get_cache().handle(
        CacheRequest.from_starlette(request),
        base_duration,
        lambda: run_handler(handler),
        key_fn=key_fn,
    )
    return result_response(result)


async def admin_response(request: Request, handler: Producer) -> Response:
    """Run a privileged handler after checking the admin token."""

    async def guarded() -> tuple[int, object]:
        check_admin(request)
        return await handler()

    status_code, body = await run_handler(guarded)
    return to_response(status_code, body)


async def parse_body(request: Request, model: type[M]) -> M:
    """Decode and validate a JSON request body.

    Raises:
        ValidationFailedError: On malformed JSON or a schema mismatch.
    """
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationFailedError("Request body must be valid JSON") from exc
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        details = [
            {"message": err["msg"], "path": [str(p) for p in err["loc"]]}
            for err in exc.errors()
        ]
        raise ValidationFailedError("Validation failed", details) from exc
