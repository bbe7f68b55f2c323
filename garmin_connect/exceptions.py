"""Exception hierarchy for the Garmin Connect client.

This module defines all exceptions that can be raised by the request context.
The hierarchy is designed to allow catching specific error types or broader
categories as needed.

Exception Hierarchy:
    GarminConnectError (base)
    ├── TransportError - Network/connection failures and timeouts
    ├── RequestError - Server returned a non-success status
    │   └── RateLimitedError (HTTP 429)
    ├── AuthenticationError - Credentials could not be (re)established
    └── UnexpectedResponseError - Embedded page data missing

Example:
    Catching specific errors::

        try:
            client.get("/userprofile-service/socialProfile")
        except RateLimitedError:
            # Back off before talking to Garmin again
            pass
        except AuthenticationError as e:
            print(f"Login failed: {e.message} (last error: {e.last_error})")

    Catching all client errors::

        try:
            client.put("/userprofile-service/userprofile/user-settings", body)
        except GarminConnectError as e:
            print(f"Client error: {e}")
"""


class GarminConnectError(Exception):
    """Base exception for all Garmin Connect client errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class TransportError(GarminConnectError):
    """The request never produced an HTTP response.

    Raised when httpx fails to connect or times out. Transport failures
    are not retried by the request context.

    Attributes:
        message: Human-readable error description.
        url: The URL that was being requested.
        cause: The underlying httpx exception.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.url = url
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        if self.url:
            return f"{self.message} (url: {self.url})"
        return self.message


class RequestError(GarminConnectError):
    """Garmin Connect answered with a non-success status code.

    The message is ``"<METHOD>: <URL>"`` so the failing call can be
    identified from logs alone. A 401 or 403 instance is what the retry
    loop records as the last error before giving up with an
    ``AuthenticationError``.

    Attributes:
        message: ``"<METHOD>: <URL>"`` of the failing request.
        status_code: HTTP status code returned by the server.
        method: HTTP method of the failing request.
        url: Full URL of the failing request.
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        method: str | None = None,
        url: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.method = method
        self.url = url
        super().__init__(message)

    def __str__(self) -> str:
        return f"[HTTP {self.status_code}] {self.message}"


class RateLimitedError(RequestError):
    """Too many requests (HTTP 429).

    Never retried by the request context; the caller decides how long to
    back off.
    """

    def __init__(
        self,
        message: str = "Too many requests",
        method: str | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message, status_code=429, method=method, url=url)


class AuthenticationError(GarminConnectError):
    """A valid token could not be obtained or was never accepted.

    Raised either when the token refresher fails or after every attempt
    of a request was rejected with 401/403.

    Attributes:
        message: Human-readable error description.
        attempts: Number of attempts made before giving up, if known.
        last_error: The error recorded on the final attempt, if any.
    """

    def __init__(
        self,
        message: str,
        attempts: int | None = None,
        last_error: Exception | None = None,
    ) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(message)


class UnexpectedResponseError(GarminConnectError):
    """A page did not contain the embedded data it was expected to carry.

    Attributes:
        key: Name of the ``window.<key>`` assignment that was looked up.
    """

    def __init__(self, key: str, message: str | None = None) -> None:
        self.key = key
        super().__init__(message or f"Unexpected response: window.{key} not found")
