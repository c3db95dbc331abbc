import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from storefront.cache.response_cache import ResponseCache
from storefront.storage.database import DatabaseManager

logger = logging.getLogger(__name__)

_db: DatabaseManager | None = None
_cache: ResponseCache | None = None


def get_db() -> DatabaseManager:
    """Get the current DatabaseManager instance. Raises if not initialized."""
    if _db is None:
        raise RuntimeError("Database not initialized. Server lifespan has not started.")
    return _db


def get_cache() -> ResponseCache:
    """Get the process-wide ResponseCache. Raises if not initialized."""
    if _cache is None:
        raise RuntimeError("Response cache not initialized. Server lifespan has not started.")
    return _cache


def _reset_db() -> None:
    """Clear the module-level DB reference. Used in tests."""
    global _db  # noqa: PLW0603
    _db = None


def _reset_cache() -> None:
    """Clear the module-level cache reference. Used in tests."""
    global _cache  # noqa: PLW0603
    _cache = None


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[dict]:
    """Manage the database and response cache for the server lifecycle."""
    global _db, _cache  # noqa: PLW0603
    from storefront.config import get_settings

    settings = get_settings()
    _db = DatabaseManager(settings.db_path)
    await _db.initialize()
    logger.info("Database initialized")

    _cache = ResponseCache.from_settings(settings)
    logger.info(
        "Response cache ready (limit %d MB, popular multiplier %.1f)",
        settings.cache_size_limit,
        settings.popular_resource_multiplier,
    )

    try:
        yield {"db": _db, "cache": _cache}
    finally:
        _cache.shutdown()
        _cache = None
        await _db.close()
        _db = None
        logger.info("Database closed")


mcp = FastMCP("storefront", lifespan=app_lifespan)


@mcp.custom_route("/health", methods=["GET"])
async def health_check(request: Request | None) -> JSONResponse:
    """Liveness probe for remote hosting."""
    return JSONResponse({"status": "ok"})


def setup_logging(log_level: str, data_dir: Path) -> None:
    """Configure logging with file rotation and console output.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
        data_dir: Base data directory; logs go to data_dir/logs/server.log.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Exact type check so FileHandler subclasses do not count as console
    if not any(type(h) is logging.StreamHandler for h in root_logger.handlers):
        console = logging.StreamHandler()
        console.setLevel(level)
        console.setFormatter(formatter)
        root_logger.addHandler(console)

    log_dir = data_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "server.log"

    if not any(isinstance(h, RotatingFileHandler) for h in root_logger.handlers):
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=3,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def initialize() -> FastMCP:
    """Set up directories, logging, auth, tools and HTTP routes. Returns the MCP server."""
    from storefront.config import get_settings

    settings = get_settings()

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    (settings.data_dir / "logs").mkdir(exist_ok=True)

    setup_logging(settings.log_level, settings.data_dir)

    if settings.mcp_auth_token:
        from storefront.auth import BearerTokenVerifier

        mcp.auth = BearerTokenVerifier(settings.mcp_auth_token)

    from storefront.routes.cache import register_cache_routes
    from storefront.routes.orders import register_order_routes
    from storefront.routes.products import register_product_routes
    from storefront.routes.users import register_user_routes
    from storefront.tools.cache_admin import register_cache_tools
    from storefront.tools.catalog import register_catalog_tools

    register_product_routes(mcp)
    register_order_routes(mcp)
    register_user_routes(mcp)
    register_cache_routes(mcp)
    register_cache_tools(mcp)
    register_catalog_tools(mcp)

    logger.info("Storefront server initialized")
    return mcp
