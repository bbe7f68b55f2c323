"""Unit tests for the Garmin Connect exception hierarchy.

The hierarchy being tested:
    GarminConnectError (base)
    ├── TransportError
    ├── RequestError
    │   └── RateLimitedError (HTTP 429)
    ├── AuthenticationError
    └── UnexpectedResponseError
"""

import pytest

from garmin_connect.exceptions import (
    AuthenticationError,
    GarminConnectError,
    RateLimitedError,
    RequestError,
    TransportError,
    UnexpectedResponseError,
)


class TestGarminConnectError:
    """Tests for the base exception."""

    def test_str_returns_message(self) -> None:
        error = GarminConnectError("Something went wrong")
        assert error.message == "Something went wrong"
        assert str(error) == "Something went wrong"

    @pytest.mark.parametrize(
        "error",
        [
            TransportError("down"),
            RequestError("GET: /x", status_code=500),
            RateLimitedError(),
            AuthenticationError("nope"),
            UnexpectedResponseError("DATA"),
        ],
    )
    def test_all_errors_share_base(self, error: GarminConnectError) -> None:
        """A single except clause catches every client error."""
        with pytest.raises(GarminConnectError):
            raise error


class TestTransportError:
    def test_str_includes_url(self) -> None:
        error = TransportError("Failed to connect", url="https://connect.example.com/x")
        assert str(error) == "Failed to connect (url: https://connect.example.com/x)"

    def test_str_without_url(self) -> None:
        assert str(TransportError("Failed to connect")) == "Failed to connect"


class TestRequestError:
    def test_attributes(self) -> None:
        error = RequestError(
            "PUT: https://connect.example.com/x",
            status_code=400,
            method="PUT",
            url="https://connect.example.com/x",
        )

        assert error.status_code == 400
        assert error.method == "PUT"
        assert error.url == "https://connect.example.com/x"
        assert str(error) == "[HTTP 400] PUT: https://connect.example.com/x"


class TestRateLimitedError:
    def test_is_request_error_with_429(self) -> None:
        error = RateLimitedError()

        assert isinstance(error, RequestError)
        assert error.status_code == 429
        assert error.message == "Too many requests"


class TestAuthenticationError:
    def test_wraps_last_error(self) -> None:
        last = RequestError("GET: /x", status_code=401)
        error = AuthenticationError("Authentication failed after 3 attempts", attempts=3, last_error=last)

        assert error.attempts == 3
        assert error.last_error is last
        assert not isinstance(error, RequestError)

    def test_defaults(self) -> None:
        error = AuthenticationError("Bad credentials")

        assert error.attempts is None
        assert error.last_error is None


class TestUnexpectedResponseError:
    def test_default_message_names_key(self) -> None:
        error = UnexpectedResponseError("VIEWER_USERPREFERENCES")

        assert error.key == "VIEWER_USERPREFERENCES"
        assert "window.VIEWER_USERPREFERENCES" in str(error)

    def test_custom_message(self) -> None:
        assert str(UnexpectedResponseError("DATA", "empty page")) == "empty page"
