"""Pytest fixtures and helpers shared by the API and service tests."""
import pytest
from rest_framework.test import APIClient

from apps.groups.models import GroupMember
from apps.groups.services.directory import GroupDirectory
from apps.media.services.storage import InMemoryStorageProvider
from apps.users.models import User
from apps.users.services.tokens import TokenService

PASSWORD = 'Str0ng!Pass'


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def create_user(username='alice', email=None, password=PASSWORD, **extra):
    """Create a user directly in the database."""
    user = User(
        username=username,
        email=email or f'{username}@example.com',
        first_name=username.title(),
        last_name='Tester',
        **extra,
    )
    user.set_password(password)
    user.save()
    return user


def auth_client(user):
    """APIClient carrying a real bearer access token for ``user``."""
    tokens = TokenService().issue_pair(user)
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {tokens["accessToken"]}')
    return client


def create_group(owner, **fields):
    """Create a group owned by ``owner``; extra fields use model names."""
    return GroupDirectory().create(owner, {'name': 'Lisbon Trip', **fields})


def add_member(group, user, role=GroupMember.Role.MEMBER):
    return GroupMember.objects.create(group=group, user=user, role=role)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def owner(db):
    return create_user('olivia')


@pytest.fixture
def member(db):
    return create_user('max')


@pytest.fixture
def outsider(db):
    return create_user('nora')


@pytest.fixture
def storage():
    return InMemoryStorageProvider()
