"""Authentication state for the Garmin Connect request context.

This module holds the pieces the request context needs to authenticate a
call, without performing the login protocol itself:

- ``OAuth2Token``: the bearer credential returned by a login
- ``TokenState``: holder for the single active token (or none)
- ``AuthParameters``: base URL, cookies and account credentials
- ``TokenRefresher`` / ``AsyncTokenRefresher``: what a login implementation
  must provide

This is an internal module. Import from ``garmin_connect`` instead.
"""

import os
from datetime import datetime, timezone
from typing import Awaitable, Callable, Protocol, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, SecretStr


DEFAULT_BASE_URL = "https://connect.garmin.com"


class OAuth2Token(BaseModel):
    """OAuth2 bearer token issued by Garmin's SSO exchange.

    Tokens are immutable. A refresh produces a new instance which replaces
    the old one in ``TokenState``.

    Attributes:
        access_token: The bearer credential sent with every request.
        token_type: Token type reported by the issuer.
        refresh_token: Refresh credential, if the issuer returned one.
        scope: Space separated scopes, if reported.
        expires_in: Lifetime of the access token in seconds.
        refresh_token_expires_in: Lifetime of the refresh token in seconds.
        expires_at: Absolute expiry of the access token, when known.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str = "Bearer"
    refresh_token: str | None = None
    scope: str | None = None
    expires_in: int | None = None
    refresh_token_expires_in: int | None = None
    expires_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        """Return True only when the expiry is known and has passed."""
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return now >= expires_at


class TokenState:
    """Holder for the one active token of a request context.

    The state starts empty unless seeded, and is only ever changed by
    swapping in a whole new token or clearing it.
    """

    def __init__(self, token: OAuth2Token | None = None) -> None:
        self._token = token

    @property
    def token(self) -> OAuth2Token | None:
        return self._token

    @property
    def has_token(self) -> bool:
        return self._token is not None

    def is_stale(self) -> bool:
        """True if there is no token or the current one has expired."""
        return self._token is None or self._token.is_expired()

    def replace(self, token: OAuth2Token) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None

    def __repr__(self) -> str:
        # Never expose the credential itself.
        return f"TokenState(has_token={self.has_token})"


class AuthParameters(BaseModel):
    """Read-only connection settings shared with the token refresher.

    Attributes:
        base_url: Root URL every request path is appended to.
        cookies: Raw ``cookie`` header value sent with each request.
        username: Garmin account e-mail, used by the refresher.
        password: Garmin account password, used by the refresher.
        user_agent: Optional User-Agent header override.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(default=DEFAULT_BASE_URL, description="Garmin Connect root URL")
    cookies: str | None = Field(default=None, description="Raw cookie header value")
    username: str | None = None
    password: SecretStr | None = None
    user_agent: str | None = None

    @classmethod
    def from_env(cls, env_file: str | os.PathLike[str] | None = None) -> "AuthParameters":
        """Build parameters from ``GARMIN_*`` environment variables.

        A ``.env`` file is loaded first (without overriding variables that
        are already set), so local development needs no exported shell
        variables.

        Args:
            env_file: Explicit path to a dotenv file. When omitted the usual
                ``.env`` lookup of python-dotenv applies.

        Returns:
            The populated parameters.
        """
        load_dotenv(dotenv_path=env_file)
        password = os.getenv("GARMIN_PASSWORD")
        return cls(
            base_url=os.getenv("GARMIN_BASE_URL", DEFAULT_BASE_URL),
            cookies=os.getenv("GARMIN_COOKIES") or None,
            username=os.getenv("GARMIN_USERNAME") or None,
            password=SecretStr(password) if password else None,
            user_agent=os.getenv("GARMIN_USER_AGENT") or None,
        )


class TokenRefresher(Protocol):
    """Performs the Garmin login protocol and returns a fresh token."""

    def refresh(self) -> OAuth2Token: ...


class AsyncTokenRefresher(Protocol):
    """Async counterpart of ``TokenRefresher``."""

    async def refresh(self) -> OAuth2Token: ...


RefresherLike = Union[TokenRefresher, Callable[[], OAuth2Token]]
AsyncRefresherLike = Union[AsyncTokenRefresher, Callable[[], Awaitable[OAuth2Token]]]
