"""Bearer token authentication for MCP access and the admin HTTP routes.

``BearerTokenVerifier`` plugs into FastMCP's ``auth=`` so the MCP endpoint
is protected. Custom HTTP routes are not covered by that, so write and
cache-admin routes call :func:`require_admin` with the same pre-shared token.
User passwords are stored as salted PBKDF2 hashes.
"""

import hashlib
import hmac
import os

from fastmcp.server.auth import AccessToken, TokenVerifier

from storefront.errors import UnauthorizedError

_MIN_TOKEN_LENGTH = 32

_PBKDF2_ITERATIONS = 100_000
_PASSWORD_SCHEME = "pbkdf2_sha256"


class BearerTokenVerifier(TokenVerifier):
    """Verify incoming bearer tokens against a pre-shared secret.

    Args:
        token: The expected bearer token (must be >= 32 characters).

    Raises:
        ValueError: If *token* is empty or shorter than 32 characters.
    """

    def __init__(self, token: str) -> None:
        if not token or len(token) < _MIN_TOKEN_LENGTH:
            raise ValueError(
                f"MCP auth token must be at least {_MIN_TOKEN_LENGTH} characters, "
                f"got {len(token) if token else 0}"
            )
        super().__init__()
        self._token = token

    async def verify_token(self, token: str) -> AccessToken | None:
        """Return an ``AccessToken`` when *token* matches, ``None`` otherwise."""
        if hmac.compare_digest(token, self._token):
            return AccessToken(token=token, client_id="admin", scopes=["admin"])
        return None


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_admin(authorization: str | None, expected_token: str | None) -> None:
    """Reject the request unless it carries the admin token.

    When no token is configured (local stdio use) every caller is admin.

    Raises:
        UnauthorizedError: If a token is configured and not presented.
    """
    if not expected_token:
        return
    token = bearer_token(authorization)
    if token is None or not hmac.compare_digest(token, expected_token):
        raise UnauthorizedError("Unauthorized.")


def hash_password(password: str, iterations: int = _PBKDF2_ITERATIONS) -> str:
    """Hash *password* with a random salt via PBKDF2-SHA256.

    Returns:
        ``pbkdf2_sha256$<iterations>$<salt hex>$<digest hex>``
    """
    salt = os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, iterations)
    return f"{_PASSWORD_SCHEME}${iterations}${salt.hex()}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    """Check *password* against a value produced by :func:`hash_password`."""
    try:
        scheme, iterations, salt_hex, digest_hex = stored.split("$")
        salt = bytes.fromhex(salt_hex)
        rounds = int(iterations)
    except ValueError:
        return False
    if scheme != _PASSWORD_SCHEME:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, rounds)
    return hmac.compare_digest(digest.hex(), digest_hex)
