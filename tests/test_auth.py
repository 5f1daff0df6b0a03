"""Registration, login lockout, token rotation and logout."""
from datetime import timedelta
from unittest import mock

import pytest
from django.utils import timezone

from apps.users.models import AuditLog, RefreshToken, User
from apps.users.rules import ACCOUNT_INACTIVE, ACCOUNT_LOCKED, INVALID_CREDENTIALS
from tests.conftest import PASSWORD, auth_client, create_user

REGISTER_URL = '/api/v1/auth/register'
LOGIN_URL = '/api/v1/auth/login'
REFRESH_URL = '/api/v1/auth/refresh'


def _register(client, **overrides):
    payload = {
        'email': 'alice@example.com',
        'username': 'alice',
        'password': PASSWORD,
        'firstName': 'Alice',
        'lastName': 'Smith',
        **overrides,
    }
    return client.post(REGISTER_URL, payload, format='json')


def _login(client, identifier='alice', password=PASSWORD):
    return client.post(LOGIN_URL, {'emailOrUsername': identifier, 'password': password}, format='json')


@pytest.mark.django_db
class TestRegister:

    def test_register_returns_user_and_tokens(self, api_client):
        resp = _register(api_client)
        assert resp.status_code == 201, resp.data
        body = resp.json()
        assert body['message'] == 'User registered successfully'
        assert body['user']['email'] == 'alice@example.com'
        assert body['user']['firstName'] == 'Alice'
        assert 'password' not in body['user']
        assert set(body['tokens']) == {'accessToken', 'refreshToken', 'expiresIn'}
        assert RefreshToken.objects.filter(user__username='alice').count() == 1
        assert AuditLog.objects.filter(action=AuditLog.Action.REGISTER).exists()

    def test_password_is_hashed(self, api_client):
        _register(api_client)
        user = User.objects.get(username='alice')
        assert user.password != PASSWORD
        assert user.check_password(PASSWORD)

    def test_duplicate_email_conflicts(self, api_client):
        create_user('someone', email='alice@example.com')
        resp = _register(api_client)
        assert resp.status_code == 409
        assert resp.json()['message'] == 'User with this email already exists'
        assert resp.json()['statusCode'] == 409

    def test_duplicate_username_conflicts(self, api_client):
        create_user('alice', email='other@example.com')
        resp = _register(api_client)
        assert resp.status_code == 409
        assert resp.json()['message'] == 'User with this username already exists'

    def test_weak_password_rejected(self, api_client):
        resp = _register(api_client, password='password123')
        assert resp.status_code == 400
        assert 'password' in resp.json()['errors']

    def test_invalid_username_rejected(self, api_client):
        resp = _register(api_client, username='bad name!')
        assert resp.status_code == 400
        assert 'username' in resp.json()['errors']


@pytest.mark.django_db
class TestLogin:

    def test_login_by_username_and_email(self, api_client):
        create_user('alice')
        assert _login(api_client, 'alice').status_code == 200
        resp = _login(api_client, 'ALICE@example.com')
        assert resp.status_code == 200
        assert resp.json()['message'] == 'Login successful'
        assert resp.json()['user']['lastLoginAt'] is not None

    def test_unknown_user(self, api_client):
        resp = _login(api_client, 'ghost')
        assert resp.status_code == 401
        assert resp.json()['message'] == INVALID_CREDENTIALS

    def test_wrong_password_counts_attempts(self, api_client):
        user = create_user('alice')
        resp = _login(api_client, password='Wrong!Pass1')
        assert resp.status_code == 401
        assert resp.json()['message'] == INVALID_CREDENTIALS
        user.refresh_from_db()
        assert user.failed_login_attempts == 1

    def test_sixth_attempt_locked_even_with_correct_password(self, api_client):
        user = create_user('alice')
        for _ in range(5):
            assert _login(api_client, password='Wrong!Pass1').status_code == 401

        user.refresh_from_db()
        assert user.locked_until is not None
        assert user.locked_until > timezone.now()
        assert AuditLog.objects.filter(user=user, action=AuditLog.Action.ACCOUNT_LOCKED).exists()

        resp = _login(api_client)
        assert resp.status_code == 401
        assert resp.json()['message'] == ACCOUNT_LOCKED

    def test_login_allowed_once_lockout_elapsed(self, api_client):
        user = create_user('alice')
        user.failed_login_attempts = 5
        user.locked_until = timezone.now() - timedelta(seconds=1)
        user.save()

        resp = _login(api_client)
        assert resp.status_code == 200
        user.refresh_from_db()
        assert user.failed_login_attempts == 0
        assert user.locked_until is None

    def test_inactive_account(self, api_client):
        create_user('alice', is_active=False)
        resp = _login(api_client)
        assert resp.status_code == 401
        assert resp.json()['message'] == ACCOUNT_INACTIVE

    def test_audit_failure_does_not_block_login(self, api_client):
        create_user('alice')
        with mock.patch.object(AuditLog.objects, 'create', side_effect=RuntimeError('db down')):
            resp = _login(api_client)
        assert resp.status_code == 200


@pytest.mark.django_db
class TestRefreshAndLogout:

    def _tokens(self, api_client):
        create_user('alice')
        return _login(api_client).json()['tokens']

    def test_refresh_rotates_token(self, api_client):
        tokens = self._tokens(api_client)
        resp = api_client.post(REFRESH_URL, {'refreshToken': tokens['refreshToken']}, format='json')
        assert resp.status_code == 200
        new_tokens = resp.json()['tokens']
        assert new_tokens['refreshToken'] != tokens['refreshToken']
        assert RefreshToken.objects.get(token=tokens['refreshToken']).is_revoked

    def test_exchanged_token_cannot_be_reused(self, api_client):
        tokens = self._tokens(api_client)
        api_client.post(REFRESH_URL, {'refreshToken': tokens['refreshToken']}, format='json')

        resp = api_client.post(REFRESH_URL, {'refreshToken': tokens['refreshToken']}, format='json')
        assert resp.status_code == 401
        assert resp.json()['message'] == 'Invalid refresh token'
        assert AuditLog.objects.filter(action=AuditLog.Action.SUSPICIOUS_ACTIVITY).exists()

    def test_expired_stored_token_rejected(self, api_client):
        tokens = self._tokens(api_client)
        RefreshToken.objects.filter(token=tokens['refreshToken']).update(
            expires_at=timezone.now() - timedelta(seconds=1),
        )
        resp = api_client.post(REFRESH_URL, {'refreshToken': tokens['refreshToken']}, format='json')
        assert resp.status_code == 401

    def test_garbage_token_rejected(self, api_client):
        resp = api_client.post(REFRESH_URL, {'refreshToken': 'not-a-jwt'}, format='json')
        assert resp.status_code == 401
        assert resp.json()['message'] == 'Invalid refresh token'
        assert resp['WWW-Authenticate'] == 'Bearer'

    def test_refresh_ignores_stale_bearer_header(self, api_client):
        tokens = self._tokens(api_client)
        api_client.credentials(HTTP_AUTHORIZATION='Bearer stale')
        resp = api_client.post(REFRESH_URL, {'refreshToken': tokens['refreshToken']}, format='json')
        assert resp.status_code == 200

    def test_missing_token_is_validation_error(self, api_client):
        resp = api_client.post(REFRESH_URL, {}, format='json')
        assert resp.status_code == 400
        assert resp.json()['message'] == 'Refresh token is required'

    def test_logout_revokes_token(self, api_client):
        tokens = self._tokens(api_client)
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {tokens["accessToken"]}')
        resp = api_client.post('/api/v1/auth/logout', {'refreshToken': tokens['refreshToken']}, format='json')
        assert resp.status_code == 200

        api_client.credentials()
        resp = api_client.post(REFRESH_URL, {'refreshToken': tokens['refreshToken']}, format='json')
        assert resp.status_code == 401

    def test_logout_all_revokes_every_token(self, api_client):
        user = create_user('alice')
        first = _login(api_client).json()['tokens']
        _login(api_client)
        client = auth_client(user)

        resp = client.post('/api/v1/auth/logout-all')
        assert resp.status_code == 200
        assert not RefreshToken.objects.filter(user=user, is_revoked=False).exists()
        resp = api_client.post(REFRESH_URL, {'refreshToken': first['refreshToken']}, format='json')
        assert resp.status_code == 401


@pytest.mark.django_db
class TestCurrentUser:

    def test_me_requires_token(self, api_client):
        resp = api_client.get('/api/v1/auth/me')
        assert resp.status_code == 401

    def test_me_returns_profile(self):
        user = create_user('alice')
        resp = auth_client(user).get('/api/v1/auth/me')
        assert resp.status_code == 200
        assert resp.json()['user']['username'] == 'alice'

    def test_locked_user_access_token_rejected(self):
        user = create_user('alice')
        client = auth_client(user)
        User.objects.filter(pk=user.pk).update(locked_until=timezone.now() + timedelta(minutes=5))
        resp = client.get('/api/v1/auth/me')
        assert resp.status_code == 401
        assert resp.json()['message'] == ACCOUNT_LOCKED

    def test_activity_lists_recent_entries(self, api_client):
        user = create_user('alice')
        _login(api_client, password='Wrong!Pass1')
        _login(api_client)
        resp = auth_client(user).get('/api/v1/auth/activity')
        assert resp.status_code == 200
        actions = [entry['action'] for entry in resp.json()['data']]
        assert 'login_success' in actions
        assert 'login_failed' in actions
