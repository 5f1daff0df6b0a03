"""Credential holder shared by the API client and the auth service."""
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class TokenSession:
    """
    Holds the current access and refresh tokens.

    One instance is created by the application and passed to whatever needs
    it. ``on_change`` is awaited after every update or clear, which is where
    an app persists tokens to secure storage.
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
        on_change: Optional[Callable[['TokenSession'], Awaitable[None]]] = None,
    ):
        self.access_token = access_token
        self.refresh_token = refresh_token
        self._on_change = on_change

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    async def set_tokens(self, tokens: dict) -> None:
        """Store a ``{"accessToken", "refreshToken"}`` pair from the API."""
        self.access_token = tokens['accessToken']
        self.refresh_token = tokens.get('refreshToken', self.refresh_token)
        await self._notify()

    async def clear(self) -> None:
        self.access_token = None
        self.refresh_token = None
        logger.debug('Session cleared')
        await self._notify()

    async def _notify(self) -> None:
        if self._on_change is not None:
            await self._on_change(self)
