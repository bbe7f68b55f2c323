"""Authenticated HTTP request context for Garmin Connect.

This module provides the layer every Garmin Connect call goes through. It
handles:
- Attaching the cookie, bearer token and backend routing headers
- Lazily obtaining a token, and forcing a new one after a 401/403
- Retrying rejected requests a fixed number of times with a fixed delay
- Mapping status codes to typed exceptions

Status classification is a pure function returning a ``ResponseOutcome``;
the retry loops dispatch on that outcome instead of catching exceptions.

This is an internal module. Import from ``garmin_connect`` instead.
"""

import asyncio
import inspect
import logging
import time
from enum import Enum
from typing import Any, Literal, TypeVar

import httpx
from pydantic import BaseModel

from garmin_connect._auth import (
    AsyncRefresherLike,
    AuthParameters,
    OAuth2Token,
    RefresherLike,
    TokenState,
)
from garmin_connect._json import decode_body
from garmin_connect.exceptions import (
    AuthenticationError,
    RateLimitedError,
    RequestError,
    TransportError,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

HttpMethod = Literal["GET", "PUT"]

# Total sends per logical request, including the first one
DEFAULT_ATTEMPTS = 3

# Seconds to wait after a 401/403 before forcing a new token
DEFAULT_RETRY_DELAY = 0.3

# Routes web requests to the Connect API backend
DI_BACKEND = "connectapi.garmin.com"

SUCCESS_STATUS_CODES = {200, 204}
AUTH_REJECTED_STATUS_CODES = {401, 403}
RATE_LIMITED_STATUS_CODE = 429


class ResponseOutcome(str, Enum):
    """How the retry loop should treat a response."""

    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    AUTH_REJECTED = "auth_rejected"
    FAILED = "failed"


def _classify_response(response: httpx.Response) -> ResponseOutcome:
    """Map a response status code to a ``ResponseOutcome``.

    Only 200 and 204 count as success; other 2xx codes are failures for
    Garmin Connect purposes.
    """
    status_code = response.status_code
    if status_code in SUCCESS_STATUS_CODES:
        return ResponseOutcome.SUCCESS
    if status_code == RATE_LIMITED_STATUS_CODE:
        return ResponseOutcome.RATE_LIMITED
    if status_code in AUTH_REJECTED_STATUS_CODES:
        return ResponseOutcome.AUTH_REJECTED
    return ResponseOutcome.FAILED


def _error_for(outcome: ResponseOutcome, status_code: int, method: str, url: str) -> RequestError:
    """Build the exception describing a non-success outcome."""
    message = f"{method}: {url}"
    if outcome is ResponseOutcome.RATE_LIMITED:
        return RateLimitedError(message=message, method=method, url=url)
    return RequestError(message=message, status_code=status_code, method=method, url=url)


def _encode_body(body: Any) -> Any:
    """Convert a request body into something ``httpx`` can serialise."""
    if isinstance(body, BaseModel):
        return body.model_dump(mode="json", by_alias=True)
    return body


def _transport_error(exc: httpx.TransportError, url: str, timeout: float) -> TransportError:
    if isinstance(exc, httpx.TimeoutException):
        return TransportError(f"Request timed out after {timeout}s", url=url, cause=exc)
    return TransportError(f"Failed to reach Garmin Connect: {exc}", url=url, cause=exc)


def _refresh_callable(refresher: Any) -> Any:
    """Accept either a refresher object or a bare callable."""
    refresh = getattr(refresher, "refresh", None)
    if callable(refresh):
        return refresh
    if callable(refresher):
        return refresher
    raise TypeError(f"{refresher!r} is neither callable nor has a refresh() method")


def _refresh_failed(exc: Exception) -> AuthenticationError:
    return AuthenticationError(f"Token refresh failed: {exc}", last_error=exc)


class _RequestContextBase:
    """State and header building shared by the sync and async contexts."""

    def __init__(
        self,
        auth_parameters: AuthParameters,
        token_state: TokenState | None,
        attempts: int,
        retry_delay: float,
        timeout: float,
    ) -> None:
        if attempts < 1:
            raise ValueError(f"attempts must be at least 1, got {attempts}")
        if retry_delay < 0:
            raise ValueError(f"retry_delay must not be negative, got {retry_delay}")

        self.auth_parameters = auth_parameters
        self.base_url = auth_parameters.base_url.rstrip("/")
        self.attempts = attempts
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.token_state = token_state if token_state is not None else TokenState()

    @property
    def token(self) -> OAuth2Token | None:
        """The currently cached token, if any."""
        return self.token_state.token

    def _needs_refresh(self, force: bool) -> bool:
        return force or self.token_state.is_stale()

    def _store_token(self, token: OAuth2Token | None) -> None:
        if token is None:
            raise AuthenticationError("Token refresher returned no token")
        self.token_state.replace(token)
        logger.debug("Stored new Garmin Connect token (expires_at=%s)", token.expires_at)

    def _build_headers(self) -> dict[str, str]:
        token = self.token_state.token
        if token is None:
            raise AuthenticationError("No token available for request")
        headers = {
            "authorization": f"Bearer {token.access_token}",
            "di-backend": DI_BACKEND,
        }
        if self.auth_parameters.cookies:
            headers["cookie"] = self.auth_parameters.cookies
        if self.auth_parameters.user_agent:
            headers["user-agent"] = self.auth_parameters.user_agent
        return headers

    def _exhausted(self, last_error: RequestError | None) -> AuthenticationError:
        return AuthenticationError(
            f"Authentication failed after {self.attempts} attempts",
            attempts=self.attempts,
            last_error=last_error,
        )


class AuthenticatedClient(_RequestContextBase):
    """Synchronous request context for Garmin Connect.

    Wraps ``httpx.Client``. Each request makes sure a token is cached,
    sends the call with Garmin's headers and, on a 401/403, waits
    ``retry_delay`` seconds, forces a new token and tries again, up to
    ``attempts`` sends in total.

    Attributes:
        auth_parameters: Connection settings (base URL, cookies, account).
        base_url: ``auth_parameters.base_url`` without a trailing slash.
        attempts: Maximum number of sends per logical request.
        retry_delay: Seconds to wait after a rejected request.
        timeout: Transport timeout in seconds.
        token_state: Holder of the cached token.

    Example:
        Fetching a model::

            with AuthenticatedClient(AuthParameters.from_env(), login.refresh) as client:
                profile = client.get_and_deserialize(
                    "/userprofile-service/socialProfile", SocialProfile
                )
    """

    def __init__(
        self,
        auth_parameters: AuthParameters,
        refresher: RefresherLike,
        token_state: TokenState | None = None,
        attempts: int = DEFAULT_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the request context.

        Args:
            auth_parameters: Connection settings shared with the refresher.
            refresher: Object with a ``refresh()`` method, or a callable,
                returning a new ``OAuth2Token``.
            token_state: Existing token holder to reuse (default: empty).
            attempts: Maximum sends per logical request (default: 3).
            retry_delay: Seconds to wait after a 401/403 (default: 0.3).
            timeout: Transport timeout in seconds (default: 30.0).
            transport: Custom transport (e.g., MockTransport for testing).
        """
        super().__init__(auth_parameters, token_state, attempts, retry_delay, timeout)
        self._refresh = _refresh_callable(refresher)
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def close(self) -> None:
        """Close the HTTP client and release resources."""
        self._client.close()

    def __enter__(self) -> "AuthenticatedClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def ensure_token(self, force: bool = False) -> None:
        """Make sure a usable token is cached.

        Calls the refresher when no token is cached, when the cached one is
        known to be expired, or when ``force`` is set. Otherwise does nothing.

        Args:
            force: Replace the token even if the cached one looks valid.

        Raises:
            AuthenticationError: If the refresher fails or returns nothing.
        """
        if not self._needs_refresh(force):
            return

        logger.debug("Refreshing Garmin Connect token (forced=%s)", force)
        try:
            token = self._refresh()
        except AuthenticationError:
            raise
        except Exception as e:
            raise _refresh_failed(e) from e
        self._store_token(token)

    def request(self, method: HttpMethod, path: str, json: Any = None) -> httpx.Response:
        """Send an authenticated request, re-authenticating on 401/403.

        Args:
            method: The HTTP method.
            path: URL path appended to ``base_url``.
            json: Optional JSON body; pydantic models are dumped by alias.

        Returns:
            The successful (200 or 204) response.

        Raises:
            RateLimitedError: On HTTP 429. Not retried.
            RequestError: On any other non-success status. Not retried.
            AuthenticationError: If every attempt was rejected, or the token
                could not be refreshed.
            TransportError: If the request could not be sent.
        """
        url = f"{self.base_url}{path}"
        body = _encode_body(json)
        force = False
        last_error: RequestError | None = None

        for attempt in range(1, self.attempts + 1):
            self.ensure_token(force)

            try:
                response = self._client.request(
                    method,
                    url,
                    headers=self._build_headers(),
                    json=body,
                )
            except httpx.TransportError as e:
                raise _transport_error(e, url, self.timeout) from e

            outcome = _classify_response(response)
            if outcome is ResponseOutcome.SUCCESS:
                return response

            error = _error_for(outcome, response.status_code, method, url)
            if outcome is not ResponseOutcome.AUTH_REJECTED:
                logger.debug("Garmin Connect request failed: %s", error)
                raise error

            last_error = error
            logger.warning(
                "Garmin Connect rejected credentials (attempt %d/%d): %s",
                attempt,
                self.attempts,
                error,
            )
            if attempt < self.attempts:
                time.sleep(self.retry_delay)
            force = True

        raise self._exhausted(last_error) from last_error

    def get(self, path: str) -> httpx.Response:
        """Make an authenticated GET request."""
        return self.request("GET", path)

    def put(self, path: str, body: Any) -> httpx.Response:
        """Make an authenticated PUT request with a JSON body."""
        return self.request("PUT", path, json=body)

    def get_and_deserialize(self, path: str, type_: type[T]) -> T:
        """GET ``path`` and decode the body into ``type_``.

        Args:
            path: URL path appended to ``base_url``.
            type_: Model, TypedDict or builtin type to decode into.

        Returns:
            The decoded body, or the empty value of ``type_`` (``None`` for
            models) when the body is empty.

        Raises:
            pydantic.ValidationError: If the body does not fit ``type_``.
        """
        response = self.get(path)
        return decode_body(response.content, type_)


class AsyncAuthenticatedClient(_RequestContextBase):
    """Asynchronous request context for Garmin Connect.

    Same behaviour as ``AuthenticatedClient`` on top of ``httpx.AsyncClient``.
    The delay between attempts is an ``asyncio.sleep``, so cancelling the
    calling task also interrupts a pending retry.

    Attributes:
        auth_parameters: Connection settings (base URL, cookies, account).
        base_url: ``auth_parameters.base_url`` without a trailing slash.
        attempts: Maximum number of sends per logical request.
        retry_delay: Seconds to wait after a rejected request.
        timeout: Transport timeout in seconds.
        token_state: Holder of the cached token.
    """

    def __init__(
        self,
        auth_parameters: AuthParameters,
        refresher: AsyncRefresherLike,
        token_state: TokenState | None = None,
        attempts: int = DEFAULT_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the async request context.

        Args:
            auth_parameters: Connection settings shared with the refresher.
            refresher: Object with a ``refresh()`` method, or a callable,
                returning (or resolving to) a new ``OAuth2Token``.
            token_state: Existing token holder to reuse (default: empty).
            attempts: Maximum sends per logical request (default: 3).
            retry_delay: Seconds to wait after a 401/403 (default: 0.3).
            timeout: Transport timeout in seconds (default: 30.0).
            transport: Custom transport (e.g., MockTransport for testing).
        """
        super().__init__(auth_parameters, token_state, attempts, retry_delay, timeout)
        self._refresh = _refresh_callable(refresher)
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncAuthenticatedClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def ensure_token(self, force: bool = False) -> None:
        """Make sure a usable token is cached.

        See ``AuthenticatedClient.ensure_token``. Synchronous refreshers are
        accepted too; their result is used directly.
        """
        if not self._needs_refresh(force):
            return

        logger.debug("Refreshing Garmin Connect token (forced=%s)", force)
        try:
            token = self._refresh()
            if inspect.isawaitable(token):
                token = await token
        except AuthenticationError:
            raise
        except Exception as e:
            raise _refresh_failed(e) from e
        self._store_token(token)

    async def request(self, method: HttpMethod, path: str, json: Any = None) -> httpx.Response:
        """Send an authenticated request, re-authenticating on 401/403.

        See ``AuthenticatedClient.request``.
        """
        url = f"{self.base_url}{path}"
        body = _encode_body(json)
        force = False
        last_error: RequestError | None = None

        for attempt in range(1, self.attempts + 1):
            await self.ensure_token(force)

            try:
                response = await self._client.request(
                    method,
                    url,
                    headers=self._build_headers(),
                    json=body,
                )
            except httpx.TransportError as e:
                raise _transport_error(e, url, self.timeout) from e

            outcome = _classify_response(response)
            if outcome is ResponseOutcome.SUCCESS:
                return response

            error = _error_for(outcome, response.status_code, method, url)
            if outcome is not ResponseOutcome.AUTH_REJECTED:
                logger.debug("Garmin Connect request failed: %s", error)
                raise error

            last_error = error
            logger.warning(
                "Garmin Connect rejected credentials (attempt %d/%d): %s",
                attempt,
                self.attempts,
                error,
            )
            if attempt < self.attempts:
                await asyncio.sleep(self.retry_delay)
            force = True

        raise self._exhausted(last_error) from last_error

    async def get(self, path: str) -> httpx.Response:
        """Make an authenticated async GET request."""
        return await self.request("GET", path)

    async def put(self, path: str, body: Any) -> httpx.Response:
        """Make an authenticated async PUT request with a JSON body."""
        return await self.request("PUT", path, json=body)

    async def get_and_deserialize(self, path: str, type_: type[T]) -> T:
        """GET ``path`` and decode the body into ``type_``.

        See ``AuthenticatedClient.get_and_deserialize``.
        """
        response = await self.get(path)
        return decode_body(response.content, type_)
