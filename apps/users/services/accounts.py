"""
Registration, login with lockout, token refresh and logout.
"""
import logging

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import AuthenticationFailed

from apps.users import rules
from apps.users.models import User
from apps.users.rules import ACCOUNT_INACTIVE, ACCOUNT_LOCKED, INVALID_CREDENTIALS
from apps.users.services.audit import AuditService
from apps.users.services.tokens import TokenService
from common.exceptions import Conflict

logger = logging.getLogger(__name__)


class AccountService:
    """
    Credential checks and session lifecycle for user accounts.

    ``context`` arguments are :class:`~apps.users.services.context.RequestContext`
    instances; they only feed the audit trail and stored token metadata.
    """

    def __init__(self, tokens=None, audit=None):
        self.audit = audit or AuditService()
        self.tokens = tokens or TokenService(audit=self.audit)

    @property
    def max_failed_attempts(self):
        return settings.TRIPSHARE['MAX_FAILED_LOGIN_ATTEMPTS']

    @property
    def lockout(self):
        return rules.lockout_duration(settings.TRIPSHARE['LOCKOUT_MINUTES'])

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, *, email, username, password, first_name, last_name, context=None):
        """Create an account and return ``(user, tokens)``."""
        email = email.strip().lower()
        existing = User.objects.filter(Q(email__iexact=email) | Q(username__iexact=username)).first()
        if existing is not None:
            field = 'email' if existing.email.lower() == email else 'username'
            raise Conflict(f'User with this {field} already exists')

        try:
            with transaction.atomic():
                user = User(
                    email=email,
                    username=username,
                    first_name=first_name,
                    last_name=last_name,
                )
                user.set_password(password)
                user.save()
                tokens = self.tokens.issue_pair(user, context)
        except IntegrityError:
            # Lost a race against a concurrent registration
            raise Conflict('User with this email or username already exists')

        self.audit.log_register(user, context)
        return user, tokens

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, identifier, password, context=None):
        """
        Authenticate by email or username and return ``(user, tokens)``.

        Raises ``AuthenticationFailed`` for unknown users, wrong passwords,
        locked and inactive accounts.
        """
        identifier = identifier.strip()
        user = User.objects.filter(Q(email__iexact=identifier) | Q(username=identifier)).first()

        if user is None:
            self.audit.log_login_failure(
                context=context,
                details=f'Login attempt with invalid identifier: {identifier}',
                error_message='User not found',
            )
            raise AuthenticationFailed(INVALID_CREDENTIALS)

        now = timezone.now()
        if rules.is_locked(user.locked_until, now):
            self.audit.log_login_failure(
                user,
                context=context,
                details='Login attempt on locked account',
                error_message='Account locked',
            )
            raise AuthenticationFailed(ACCOUNT_LOCKED)

        if user.locked_until is not None:
            # Lockout elapsed: start counting from zero again
            user.failed_login_attempts = 0
            user.locked_until = None
            user.save(update_fields=['failed_login_attempts', 'locked_until', 'updated_at'])
            self.audit.log_account_unlocked(user, context)

        if not user.is_active:
            self.audit.log_login_failure(
                user,
                context=context,
                details='Login attempt on inactive account',
                error_message='Account inactive',
            )
            raise AuthenticationFailed(ACCOUNT_INACTIVE)

        if not user.check_password(password):
            self._handle_failed_login(user, now, context)
            raise AuthenticationFailed(INVALID_CREDENTIALS)

        user.failed_login_attempts = 0
        user.locked_until = None
        user.last_login = now
        user.save(update_fields=['failed_login_attempts', 'locked_until', 'last_login', 'updated_at'])

        tokens = self.tokens.issue_pair(user, context)
        self.audit.log_login_success(user, context)
        logger.info('User %s logged in', user.id)
        return user, tokens

    def _handle_failed_login(self, user, now, context):
        attempts, locked_until = rules.register_failed_attempt(
            user.failed_login_attempts,
            self.max_failed_attempts,
            self.lockout,
            now,
        )
        user.failed_login_attempts = attempts
        update_fields = ['failed_login_attempts', 'updated_at']

        if locked_until is not None:
            user.locked_until = locked_until
            update_fields.append('locked_until')
            logger.warning('Account %s locked until %s after %d failed attempts', user.id, locked_until, attempts)
            self.audit.log_account_locked(
                user,
                context,
                details=f'Account locked after {self.max_failed_attempts} failed attempts',
            )

        user.save(update_fields=update_fields)
        self.audit.log_login_failure(
            user,
            context=context,
            details=f'Failed login attempt {attempts}/{self.max_failed_attempts}',
            error_message='Invalid password',
        )

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def refresh_tokens(self, raw_token, context=None):
        return self.tokens.refresh(raw_token, context)

    def logout(self, raw_token, user, context=None):
        revoked = self.tokens.revoke(raw_token, user)
        logger.info('User %s logged out (%d token revoked)', user.id, revoked)
        self.audit.log_logout(user, context)

    def logout_all_devices(self, user, context=None):
        revoked = self.tokens.revoke_all(user)
        logger.info('User %s logged out from all devices (%d tokens revoked)', user.id, revoked)
        self.audit.log_logout(user, context, details='Logout from all devices')
