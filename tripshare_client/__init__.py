"""
Async HTTP client for the TripShare API.

    session = TokenSession()
    async with ApiClient('https://api.example.com/api/v1', session) as client:
        auth = AuthApi(client)
        await auth.login('alice', 'S3cret!pw')
        groups = await GroupsApi(client).list()
"""
from tripshare_client.api import ApiClient
from tripshare_client.errors import ApiError, ClientError, NetworkError, SessionExpired
from tripshare_client.services import AuthApi, GroupsApi, MediaApi
from tripshare_client.session import TokenSession
from tripshare_client.singleflight import SingleFlight

__all__ = [
    'ApiClient',
    'ApiError',
    'AuthApi',
    'ClientError',
    'GroupsApi',
    'MediaApi',
    'NetworkError',
    'SessionExpired',
    'SingleFlight',
    'TokenSession',
]
