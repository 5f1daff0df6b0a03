"""Thin wrappers over the TripShare endpoints."""
from typing import Any, List, Optional

from tripshare_client.api import ApiClient


class AuthApi:

    def __init__(self, client: ApiClient):
        self.client = client

    @property
    def session(self):
        return self.client.session

    async def register(self, *, email: str, username: str, password: str, first_name: str, last_name: str) -> dict:
        body = await self.client.post('/auth/register', json={
            'email': email,
            'username': username,
            'password': password,
            'firstName': first_name,
            'lastName': last_name,
        })
        await self.session.set_tokens(body['tokens'])
        return body['user']

    async def login(self, email_or_username: str, password: str) -> dict:
        body = await self.client.post('/auth/login', json={
            'emailOrUsername': email_or_username,
            'password': password,
        })
        await self.session.set_tokens(body['tokens'])
        return body['user']

    async def logout(self) -> None:
        """Revoke the stored refresh token; local credentials are dropped either way."""
        try:
            if self.session.refresh_token:
                await self.client.post('/auth/logout', json={'refreshToken': self.session.refresh_token})
        finally:
            await self.session.clear()

    async def logout_all(self) -> None:
        try:
            await self.client.post('/auth/logout-all')
        finally:
            await self.session.clear()

    async def me(self) -> dict:
        body = await self.client.get('/auth/me')
        return body['user']

    async def activity(self, limit: int = 10) -> List[dict]:
        body = await self.client.get('/auth/activity', params={'limit': limit})
        return body['data']


class GroupsApi:

    def __init__(self, client: ApiClient):
        self.client = client

    async def _data(self, coro) -> Any:
        body = await coro
        return body.get('data') if body else None

    async def create(self, name: str, **fields) -> dict:
        return await self._data(self.client.post('/groups', json={'name': name, **fields}))

    async def list(self) -> List[dict]:
        return await self._data(self.client.get('/groups'))

    async def get(self, group_id: str) -> dict:
        return await self._data(self.client.get(f'/groups/{group_id}'))

    async def update(self, group_id: str, **fields) -> dict:
        return await self._data(self.client.patch(f'/groups/{group_id}', json=fields))

    async def delete(self, group_id: str) -> None:
        await self.client.delete(f'/groups/{group_id}')

    async def regenerate_code(self, group_id: str) -> str:
        body = await self.client.post(f'/groups/{group_id}/regenerate-code')
        return body['inviteCode']

    async def members(self, group_id: str) -> List[dict]:
        return await self._data(self.client.get(f'/groups/{group_id}/members'))

    async def invite(
        self,
        group_id: str,
        *,
        user_id: Optional[str] = None,
        email: Optional[str] = None,
        username: Optional[str] = None,
    ) -> dict:
        payload = {'userId': user_id, 'email': email, 'username': username}
        payload = {key: value for key, value in payload.items() if value}
        return await self._data(self.client.post(f'/groups/{group_id}/members/invite', json=payload))

    async def leave(self, group_id: str) -> None:
        await self.client.post(f'/groups/{group_id}/leave')

    async def remove_member(self, group_id: str, user_id: str) -> None:
        await self.client.delete(f'/groups/{group_id}/members/{user_id}')

    async def change_role(self, group_id: str, user_id: str, role: str) -> dict:
        return await self._data(
            self.client.patch(f'/groups/{group_id}/members/{user_id}/role', json={'role': role})
        )

    async def join_with_code(self, code: str) -> dict:
        """Returns the full response: ``data`` is a group, or a join request when approval is needed."""
        return await self.client.post(f'/groups/join/{code}')

    async def request_to_join(self, group_id: str, message: str = '') -> dict:
        return await self._data(self.client.post(f'/groups/{group_id}/join-requests', json={'message': message}))

    async def join_requests(self, group_id: str) -> List[dict]:
        return await self._data(self.client.get(f'/groups/{group_id}/join-requests'))

    async def approve_request(self, request_id: str) -> dict:
        return await self._data(self.client.post(f'/groups/join-requests/{request_id}/approve'))

    async def reject_request(self, request_id: str) -> dict:
        return await self._data(self.client.post(f'/groups/join-requests/{request_id}/reject'))

    async def accept_invite(self, token: str) -> dict:
        return await self._data(self.client.post(f'/groups/invites/{token}/accept'))

    async def decline_invite(self, token: str) -> None:
        await self.client.post(f'/groups/invites/{token}/decline')


class MediaApi:

    def __init__(self, client: ApiClient):
        self.client = client

    async def upload(
        self,
        group_id: str,
        file_name: str,
        content: bytes,
        content_type: str,
        media_type: str,
        caption: Optional[str] = None,
    ) -> dict:
        data = {'mediaType': media_type}
        if caption:
            data['caption'] = caption
        body = await self.client.upload(
            f'/groups/{group_id}/media',
            files={'file': (file_name, content, content_type)},
            data=data,
        )
        return body['data']

    async def list(self, group_id: str, page: int = 1, limit: int = 20, **filters) -> dict:
        params = {'page': page, 'limit': limit}
        params.update({key: value for key, value in filters.items() if value is not None})
        body = await self.client.get(f'/groups/{group_id}/media', params=params)
        return body['data']

    async def count(self, group_id: str) -> int:
        body = await self.client.get(f'/groups/{group_id}/media/count')
        return body['data']['count']

    async def get(self, media_id: str) -> dict:
        body = await self.client.get(f'/media/{media_id}')
        return body['data']

    async def update_caption(self, media_id: str, caption: str) -> dict:
        body = await self.client.put(f'/media/{media_id}/caption', json={'caption': caption})
        return body['data']

    async def delete(self, media_id: str) -> None:
        await self.client.delete(f'/media/{media_id}')

    async def download_url(self, media_id: str) -> str:
        body = await self.client.get(f'/media/{media_id}/download')
        return body['data']['url']
