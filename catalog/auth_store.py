"""Login state and token storage."""
from __future__ import annotations

import logging
from typing import Protocol

from .api_client import AuthError
from .models import LoginResponse
from .preferences import TOKEN_KEY, InMemoryPreferences, PreferenceBackend

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error"


class Authenticator(Protocol):
    async def login(self, username: str, password: str) -> LoginResponse: ...


class AuthStore:
    """Holds the access token that gates the product routes.

    A remembered token goes to durable storage and survives restarts; otherwise
    it lives in ``session`` storage for the lifetime of the process.
    """

    def __init__(
        self,
        client: Authenticator,
        durable: PreferenceBackend,
        session: PreferenceBackend | None = None,
    ) -> None:
        self.client = client
        self.durable = durable
        self.session = session if session is not None else InMemoryPreferences()
        self.token: str | None = durable.get(TOKEN_KEY) or self.session.get(TOKEN_KEY)
        self.user: LoginResponse | None = None
        self.is_loading = False
        self.error: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    async def login(self, username: str, password: str, remember: bool = False) -> None:
        self.is_loading = True
        self.error = None
        try:
            data = await self.client.login(username, password)
        except AuthError as exc:
            self.error = str(exc) or UNKNOWN_ERROR
            self.is_loading = False
            return
        except Exception:
            logger.exception("Unexpected failure during login")
            self.error = UNKNOWN_ERROR
            self.is_loading = False
            return
        storage = self.durable if remember else self.session
        storage.set(TOKEN_KEY, data.access_token)
        self.token = data.access_token
        self.user = data
        self.is_loading = False
        logger.info("Signed in as %r (remember=%s)", data.username or username, remember)

    def logout(self) -> None:
        self.durable.delete(TOKEN_KEY)
        self.session.delete(TOKEN_KEY)
        self.token = None
        self.user = None

    def clear_error(self) -> None:
        self.error = None
