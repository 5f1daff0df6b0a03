"""
Models for the Users app: accounts, stored refresh tokens and the audit trail.
"""
import uuid

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone

from apps.users import rules
from common.models import TimestampedModel, UUIDModel


class User(AbstractUser):
    """
    Extended User model with lockout bookkeeping.

    Uses email as the primary login identifier; the username is also
    accepted at login.
    """
    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )
    email = models.EmailField(
        unique=True,
        db_index=True,
        error_messages={
            'unique': 'A user with that email already exists.',
        },
    )
    email_verified = models.BooleanField(default=False)
    failed_login_attempts = models.PositiveIntegerField(default=0)
    locked_until = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username', 'first_name']

    class Meta:
        db_table = 'users'
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.first_name} {self.last_name} ({self.email})'

    @property
    def full_name(self):
        return f'{self.first_name} {self.last_name}'.strip()

    @property
    def is_locked(self):
        return rules.is_locked(self.locked_until, timezone.now())


class RefreshToken(TimestampedModel):
    """
    A refresh token handed out at login, registration or rotation.

    Rows are revoked, never deleted, so a replayed token can be told apart
    from an unknown one.
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='refresh_tokens',
    )
    token = models.TextField(unique=True)
    jti = models.CharField(max_length=64, db_index=True)
    expires_at = models.DateTimeField()
    is_revoked = models.BooleanField(default=False)
    device_info = models.TextField(blank=True, default='')
    ip_address = models.GenericIPAddressField(null=True, blank=True)

    class Meta:
        db_table = 'refresh_tokens'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'is_revoked']),
        ]

    def __str__(self):
        state = 'revoked' if self.is_revoked else 'active'
        return f'Refresh token {self.jti} for {self.user_id} ({state})'

    @property
    def is_valid(self):
        return rules.token_is_usable(self.is_revoked, self.expires_at, timezone.now())


class AuditLog(UUIDModel):
    """
    Append-only record of an authentication-relevant event.
    """
    class Action(models.TextChoices):
        LOGIN_SUCCESS = 'login_success', 'Login success'
        LOGIN_FAILED = 'login_failed', 'Login failed'
        LOGOUT = 'logout', 'Logout'
        REGISTER = 'register', 'Register'
        ACCOUNT_LOCKED = 'account_locked', 'Account locked'
        ACCOUNT_UNLOCKED = 'account_unlocked', 'Account unlocked'
        REFRESH_TOKEN_USED = 'refresh_token_used', 'Refresh token used'
        SUSPICIOUS_ACTIVITY = 'suspicious_activity', 'Suspicious activity'
        PASSWORD_CHANGED = 'password_changed', 'Password changed'
        PROFILE_UPDATED = 'profile_updated', 'Profile updated'

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs',
    )
    action = models.CharField(max_length=32, choices=Action.choices, db_index=True)
    details = models.TextField(blank=True, default='')
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True, default='')
    success = models.BooleanField(default=True)
    error_message = models.TextField(blank=True, default='')

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']

    def __str__(self):
        return f'{self.action} ({self.user_id or "anonymous"})'
