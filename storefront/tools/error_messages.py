"""User-friendly error messages and safe tool wrapper."""

import logging

import aiosqlite

from storefront.errors import NotFoundError, UnauthorizedError, ValidationFailedError

logger = logging.getLogger(__name__)


def get_user_message(error: Exception, context: dict | None = None) -> str:
    """Map an exception to a user-friendly message.

    Args:
        error: The exception to translate.
        context: Optional dict with extra info (e.g. {"resource": "product 7"}).

    Returns:
        A human-readable error message.
    """
    resource = (context or {}).get("resource", "the requested item")

    if isinstance(error, NotFoundError):
        return f"Could not find {resource}."
    if isinstance(error, ValidationFailedError):
        return f"The request was rejected: {error}."
    if isinstance(error, UnauthorizedError):
        return "This action needs the admin token."
    if isinstance(error, aiosqlite.Error):
        return "The store database is unavailable right now. Please try again shortly."
    if isinstance(error, RuntimeError) and "not initialized" in str(error):
        return "The storefront server is still starting up. Please try again in a moment."
    return "Something went wrong. Please try again or contact support."


async def safe_tool_wrapper(
    func,  # type: ignore[no-untyped-def]
    *args: object,
    context: dict | None = None,
    **kwargs: object,
) -> str:
    """Call an async function, catching errors and returning friendly messages.

    Args:
        func: Async callable to invoke.
        *args: Positional arguments for *func*.
        context: Optional context dict for error messages.
        **kwargs: Keyword arguments for *func*.

    Returns:
        The function's return value on success, or a user-friendly error string.
    """
    try:
        return await func(*args, **kwargs)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Tool error in %s", func.__name__)
        return get_user_message(exc, context)
