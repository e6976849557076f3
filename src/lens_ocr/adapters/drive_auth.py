"""Access-token session for the Google Drive API."""

from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta
from typing import Callable, Optional

import structlog
from pydantic import BaseModel, Field

from lens_ocr.errors import AuthError

logger = structlog.get_logger(__name__)

DRIVE_READONLY_SCOPE = "https://www.googleapis.com/auth/drive.readonly"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AccessToken(BaseModel):
    """Opaque bearer token and its expiry."""

    value: str = Field(..., repr=False)
    expires_at: Optional[datetime] = None
    scope: str = DRIVE_READONLY_SCOPE

    def is_expired(self, now: datetime, skew: timedelta = timedelta(0)) -> bool:
        if self.expires_at is None:
            return False
        return now + skew >= self.expires_at


class TokenProvider(ABC):
    """External auth flow that yields read-only Drive credentials."""

    @abstractmethod
    async def acquire(self) -> AccessToken:
        """
        Obtain an access token.

        Raises:
            AuthError: If the credential cannot be obtained.
        """


class StaticTokenProvider(TokenProvider):
    """Token handed over by a browser-side OAuth flow."""

    def __init__(
        self,
        token: str,
        expires_in: Optional[int] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """
        Initialize the provider.

        Args:
            token: Bearer token string.
            expires_in: Lifetime in seconds from now, if known.
            clock: Time source.
        """
        self._token = token
        self._expires_at = (
            clock() + timedelta(seconds=expires_in) if expires_in is not None else None
        )

    async def acquire(self) -> AccessToken:
        if not self._token:
            raise AuthError("No Drive access token was provided")
        return AccessToken(value=self._token, expires_at=self._expires_at)


class DriveAuthSession:
    """Caches a Drive access token and re-acquires it on expiry or rejection."""

    def __init__(
        self,
        provider: TokenProvider,
        skew_seconds: int = 60,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """
        Initialize the session.

        Args:
            provider: Source of access tokens.
            skew_seconds: Margin before expiry at which a token is renewed.
            clock: Time source.
        """
        self.provider = provider
        self.skew = timedelta(seconds=skew_seconds)
        self._clock = clock
        self._token: Optional[AccessToken] = None

    @property
    def has_token(self) -> bool:
        return self._token is not None and not self._token.is_expired(
            self._clock(), self.skew
        )

    def invalidate(self) -> None:
        """Forget the cached token."""
        self._token = None

    async def get_token(self) -> str:
        """
        Return a valid token, acquiring a new one when needed.

        Raises:
            AuthError: If no valid credential can be obtained.
        """
        if self.has_token:
            return self._token.value  # type: ignore[union-attr]

        logger.info("acquiring_drive_token", provider=type(self.provider).__name__)

        try:
            token = await self.provider.acquire()
        except AuthError:
            raise
        except Exception as e:
            logger.error("drive_token_acquisition_failed", error=str(e))
            raise AuthError(f"Drive authorization failed: {str(e)}", original_error=e)

        if not token.value:
            raise AuthError("Drive authorization returned an empty token")
        if token.is_expired(self._clock(), self.skew):
            raise AuthError("Drive access token has expired")

        self._token = token
        logger.info("drive_token_acquired", expires_at=token.expires_at)
        return token.value

    async def refresh(self) -> str:
        """Drop the cached token and acquire a fresh one."""
        self.invalidate()
        return await self.get_token()

    async def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {await self.get_token()}"}
