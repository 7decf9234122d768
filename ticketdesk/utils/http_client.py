"""
HTTP Client Wrapper for the Support API

Provides a configured httpx client with sensible defaults for timeouts and
connection pooling, bearer-token injection from the credential provider,
and translation of error responses into desk exceptions.

Features:
- Configurable timeouts (connect, read, write, pool)
- Connection pooling
- Authorization header on every request
- 401/403 responses trigger the session-invalidation hook, then raise AuthError
- No automatic retry; failures surface to the caller
"""
import httpx
from typing import Any, Callable, Dict, Optional
import logging

from ticketdesk.auth.credentials import CredentialProvider
from ticketdesk.config import settings
from ticketdesk.security.errors import (
    AuthError,
    NetworkError,
    ServerError,
    error_for_status,
)

logger = logging.getLogger(__name__)


# Default timeout configuration (in seconds)
DEFAULT_TIMEOUT = httpx.Timeout(
    connect=settings.http_connect_timeout,   # Time to establish connection
    read=settings.http_read_timeout,         # Time to read response
    write=settings.http_write_timeout,       # Time to send request
    pool=settings.http_pool_timeout          # Time to acquire connection from pool
)


class HTTPClient:
    """
    Support API client with auth and error translation.

    Usage:
        async with HTTPClient(base_url, credentials) as client:
            tickets = await client.get("/support/tickets")
    """

    def __init__(
        self,
        base_url: str,
        credentials: CredentialProvider,
        on_unauthorized: Optional[Callable[[], None]] = None,
        timeout: Optional[httpx.Timeout] = None,
        limits: Optional[httpx.Limits] = None,
        **kwargs
    ):
        """
        Initialize HTTP client.

        Args:
            base_url: Root of the support API (e.g. http://host/api)
            credentials: Source of the bearer token
            on_unauthorized: Called once for every 401/403 response
            timeout: Timeout configuration (defaults to DEFAULT_TIMEOUT)
            limits: Connection pool limits
            **kwargs: Additional httpx.AsyncClient parameters (e.g. transport)
        """
        if timeout is None:
            timeout = DEFAULT_TIMEOUT

        if limits is None:
            limits = httpx.Limits(
                max_keepalive_connections=10,
                max_connections=20,
                keepalive_expiry=30.0
            )

        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            limits=limits,
            follow_redirects=True,
            headers={"Content-Type": "application/json"},
            **kwargs
        )

        self.credentials = credentials
        self.on_unauthorized = on_unauthorized
        self._timeout = timeout
        logger.debug(f"HTTPClient initialized for {base_url} with timeout={timeout}")

    def _auth_headers(self) -> Dict[str, str]:
        token = self.credentials.token
        if not token:
            logger.warning("No auth token available for request")
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def request(self, method: str, url: str, **kwargs) -> Any:
        """
        Send a request and return the decoded JSON body (None when empty).

        Raises:
            AuthError: On 401/403, after the unauthorized hook ran
            NotFoundError: On 404
            ServerError: On 5xx or a body that is not JSON
            NetworkError: On timeouts and transport failures
            RequestRejectedError: On other 4xx responses
        """
        headers = {**self._auth_headers(), **kwargs.pop("headers", {})}
        try:
            response = await self.client.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            raise NetworkError(
                "E011",
                internal_message=f"{method} {url} timed out: {e}",
                context={"method": method, "url": url},
            ) from e
        except httpx.TransportError as e:
            raise NetworkError(
                internal_message=f"{method} {url} failed: {e}",
                context={"method": method, "url": url},
            ) from e

        return self._handle_response(method, url, response)

    def _handle_response(self, method: str, url: str, response: httpx.Response) -> Any:
        status = response.status_code
        if status >= 400:
            error = error_for_status(
                status,
                internal_message=f"{method} {url} -> {status}: {response.text[:200]}",
                context={"method": method, "url": url},
            )
            if isinstance(error, AuthError) and self.on_unauthorized is not None:
                self.on_unauthorized()
            raise error

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ServerError(
                internal_message=f"{method} {url} returned a body that is not JSON",
                context={"method": method, "url": url},
            ) from e

    async def get(self, url: str, **kwargs) -> Any:
        """GET request"""
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> Any:
        """POST request"""
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs) -> Any:
        """PUT request"""
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs) -> Any:
        """PATCH request"""
        return await self.request("PATCH", url, **kwargs)

    async def close(self):
        """Close the client and cleanup connections"""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()

