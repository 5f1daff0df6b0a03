"""
HTTP plumbing for the TripShare API on top of ``httpx.AsyncClient``.

Every request carries the session's access token. A 401 answer triggers a
refresh-token exchange, shared by all requests that fail during the same
burst, after which each of them is retried once with the new token.
"""
import logging
from typing import Any, Optional

import httpx

from tripshare_client.errors import ApiError, NetworkError, SessionExpired
from tripshare_client.session import TokenSession
from tripshare_client.singleflight import SingleFlight

logger = logging.getLogger(__name__)

REFRESH_PATH = '/auth/refresh'

# A 401 from these means bad credentials, not a stale access token
NO_REFRESH_PATHS = frozenset({'/auth/login', '/auth/register', REFRESH_PATH})


class ApiClient:

    def __init__(
        self,
        base_url: str,
        session: TokenSession,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={'Accept': 'application/json'},
        )
        self._refresh = SingleFlight()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------

    async def get(self, url: str, params: Optional[dict] = None) -> Any:
        return await self.request('GET', url, params=params)

    async def post(self, url: str, json: Any = None) -> Any:
        return await self.request('POST', url, json=json)

    async def put(self, url: str, json: Any = None) -> Any:
        return await self.request('PUT', url, json=json)

    async def patch(self, url: str, json: Any = None) -> Any:
        return await self.request('PATCH', url, json=json)

    async def delete(self, url: str) -> Any:
        return await self.request('DELETE', url)

    async def upload(self, url: str, files: dict, data: Optional[dict] = None) -> Any:
        """POST a multipart form; ``files`` maps field names to httpx file tuples."""
        return await self.request('POST', url, files=files, data=data)

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    async def request(self, method: str, url: str, **kwargs) -> Any:
        sent_token = self.session.access_token
        response = await self._send(method, url, sent_token, **kwargs)

        if response.status_code == 401 and url not in NO_REFRESH_PATHS:
            if self.session.access_token and self.session.access_token != sent_token:
                # Someone refreshed while this request was in flight
                token = self.session.access_token
            else:
                original = ApiError.from_response(response)
                token = await self._refresh.run(lambda: self._refresh_access_token(original))
            response = await self._send(method, url, token, **kwargs)

        return self._parse(response)

    async def _send(self, method: str, url: str, token: Optional[str], **kwargs) -> httpx.Response:
        headers = {'Authorization': f'Bearer {token}'} if token else {}
        try:
            return await self._client.request(method, url, headers=headers, **kwargs)
        except httpx.RequestError as exc:
            logger.warning('%s %s failed: %s', method, url, exc)
            raise NetworkError() from exc

    @staticmethod
    def _parse(response: httpx.Response) -> Any:
        if response.is_success:
            if not response.content:
                return None
            return response.json()
        raise ApiError.from_response(response)

    async def _refresh_access_token(self, original: ApiError) -> str:
        """
        Exchange the stored refresh token for a new pair.

        Any failure clears the session. Without a stored refresh token the
        request's own 401 error is raised.
        """
        refresh_token = self.session.refresh_token
        if not refresh_token:
            await self.session.clear()
            raise original

        try:
            response = await self._client.post(REFRESH_PATH, json={'refreshToken': refresh_token})
        except httpx.RequestError as exc:
            await self.session.clear()
            raise NetworkError() from exc

        if not response.is_success:
            await self.session.clear()
            error = ApiError.from_response(response)
            logger.info('Token refresh rejected: %s', error.message)
            raise SessionExpired(error.message, error.status_code, error.payload)

        body = response.json()
        tokens = body.get('tokens') or body.get('data')
        await self.session.set_tokens(tokens)
        return tokens['accessToken']
