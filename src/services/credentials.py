"""Access token cache for the tedee cloud API.

Tokens come from a password grant against the tedee B2C token endpoint and
are reused until two minutes before they expire.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable

import httpx

from config import TEDEE_CLIENT_ID
from utils.errors import AuthenticationError
from utils.retry import retry_async

logger = logging.getLogger(__name__)

# Tokens are dropped this many seconds before their nominal expiry
TOKEN_EXPIRY_MARGIN = 120.0


@dataclass
class Credential:
    """An access token and the clock reading at which it expires."""

    token: str
    expires_at: float


class CredentialCache:
    """Owns the current bearer token and refreshes it on demand."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token_uri: str,
        username: str,
        password: str,
        client_id: str = TEDEE_CLIENT_ID,
        max_attempts: int = 3,
        retry_interval: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = http_client
        self._token_uri = token_uri
        self._username = username
        self._password = password
        self._client_id = client_id
        self.max_attempts = max_attempts
        self.retry_interval = retry_interval
        self._clock = clock
        self._credential: Credential | None = None

    @property
    def token_valid(self) -> bool:
        """Whether the cached token can still be used."""
        if self._credential is None:
            return False
        return self._clock() < self._credential.expires_at - TOKEN_EXPIRY_MARGIN

    def invalidate(self) -> None:
        """Forget the cached token so the next call authenticates again."""
        self._credential = None

    async def get_token(self) -> str:
        """Return a valid access token, authenticating if needed.

        Raises:
            AuthenticationError: If every authentication attempt failed
        """
        if self.token_valid:
            logger.debug("Access token cached.")
            return self._credential.token  # type: ignore[union-attr]

        self._credential = None
        try:
            credential = await retry_async(
                self._authenticate,
                max_attempts=self.max_attempts,
                delay=self.retry_interval,
                retryable_exceptions=(httpx.HTTPError, KeyError, ValueError),
                description="Access token request",
            )
        except (httpx.HTTPError, KeyError, ValueError) as e:
            raise AuthenticationError(self.max_attempts, e) from e

        self._credential = credential
        return credential.token

    async def _authenticate(self) -> Credential:
        """Run a single password grant request."""
        logger.debug("Requesting access token from server...")
        response = await self._client.post(
            self._token_uri,
            data={
                "grant_type": "password",
                "username": self._username,
                "password": self._password,
                "scope": f"openid {self._client_id}",
                "client_id": self._client_id,
                "response_type": "token id_token",
            },
        )
        response.raise_for_status()
        payload = response.json()

        credential = Credential(
            token=payload["access_token"],
            expires_at=self._clock() + float(payload["expires_in"]),
        )
        logger.debug("Access token received from server.")
        return credential
