"""Garmin Connect authenticated request context.

This package provides the layer that sits between Garmin Connect endpoint
code and the network: it keeps an OAuth2 bearer token, re-authenticates when
Garmin rejects a request, and turns status codes into typed exceptions. It
supports both synchronous and asynchronous usage patterns.

Example:
    Synchronous usage::

        from garmin_connect import AuthenticatedClient, AuthParameters

        with AuthenticatedClient(AuthParameters.from_env(), login.refresh) as client:
            settings = client.get_and_deserialize(
                "/userprofile-service/userprofile/user-settings", dict
            )

    Asynchronous usage::

        from garmin_connect import AsyncAuthenticatedClient

        async with AsyncAuthenticatedClient(params, login.refresh) as client:
            response = await client.get("/userprofile-service/socialProfile")

Exports:
    AuthenticatedClient: Synchronous request context.
    AsyncAuthenticatedClient: Asynchronous request context.
    AuthParameters, OAuth2Token, TokenState: Authentication state.
    TokenRefresher, AsyncTokenRefresher: Login protocol interfaces.
    extract_embedded_json: Read ``window.<key>`` data out of an HTML page.

    Exceptions:
        GarminConnectError: Base exception for all client errors.
        TransportError: The request could not be sent.
        RequestError: Non-success HTTP status.
        RateLimitedError: HTTP 429.
        AuthenticationError: Credentials could not be established.
        UnexpectedResponseError: Embedded page data missing.
"""

from garmin_connect._auth import (
    DEFAULT_BASE_URL,
    AsyncTokenRefresher,
    AuthParameters,
    OAuth2Token,
    TokenRefresher,
    TokenState,
)
from garmin_connect._http import (
    DEFAULT_ATTEMPTS,
    DEFAULT_RETRY_DELAY,
    DI_BACKEND,
    AsyncAuthenticatedClient,
    AuthenticatedClient,
    ResponseOutcome,
)
from garmin_connect._json import extract_embedded_json
from garmin_connect.exceptions import (
    AuthenticationError,
    GarminConnectError,
    RateLimitedError,
    RequestError,
    TransportError,
    UnexpectedResponseError,
)

__all__ = [
    # Request contexts
    "AuthenticatedClient",
    "AsyncAuthenticatedClient",
    "ResponseOutcome",
    # Authentication state
    "AuthParameters",
    "OAuth2Token",
    "TokenState",
    "TokenRefresher",
    "AsyncTokenRefresher",
    # Helpers
    "extract_embedded_json",
    # Policy constants
    "DEFAULT_ATTEMPTS",
    "DEFAULT_RETRY_DELAY",
    "DEFAULT_BASE_URL",
    "DI_BACKEND",
    # Exceptions
    "GarminConnectError",
    "TransportError",
    "RequestError",
    "RateLimitedError",
    "AuthenticationError",
    "UnexpectedResponseError",
]
