"""
Best-effort audit trail for authentication events.

A failed audit write is logged and dropped; it never aborts the operation
that produced the event.
"""
import logging

from django.db import transaction

from apps.users.models import AuditLog

logger = logging.getLogger(__name__)


class AuditService:
    """Appends :class:`AuditLog` rows."""

    def log(
        self,
        action,
        user=None,
        *,
        context=None,
        details='',
        success=True,
        error_message='',
    ):
        try:
            # Savepoint so a failed insert leaves an enclosing transaction usable
            with transaction.atomic():
                AuditLog.objects.create(
                    action=action,
                    user=user,
                    ip_address=context.ip_address if context else None,
                    user_agent=context.user_agent if context else '',
                    details=details,
                    success=success,
                    error_message=error_message,
                )
        except Exception:
            logger.exception('Failed to create audit log entry for %s', action)

    def log_login_success(self, user, context=None):
        self.log(AuditLog.Action.LOGIN_SUCCESS, user, context=context, details='Successful login')

    def log_login_failure(self, user=None, *, context=None, details='', error_message=''):
        self.log(
            AuditLog.Action.LOGIN_FAILED,
            user,
            context=context,
            details=details,
            success=False,
            error_message=error_message,
        )

    def log_register(self, user, context=None):
        self.log(
            AuditLog.Action.REGISTER,
            user,
            context=context,
            details=f'User registered with email: {user.email}',
        )

    def log_logout(self, user, context=None, details='User logout'):
        self.log(AuditLog.Action.LOGOUT, user, context=context, details=details)

    def log_account_locked(self, user, context=None, details=''):
        self.log(AuditLog.Action.ACCOUNT_LOCKED, user, context=context, details=details)

    def log_account_unlocked(self, user, context=None):
        self.log(
            AuditLog.Action.ACCOUNT_UNLOCKED,
            user,
            context=context,
            details='Lockout period elapsed',
        )

    def log_refresh_token_used(self, user, context=None):
        self.log(AuditLog.Action.REFRESH_TOKEN_USED, user, context=context)

    def log_suspicious_activity(self, user=None, *, context=None, details=''):
        self.log(
            AuditLog.Action.SUSPICIOUS_ACTIVITY,
            user,
            context=context,
            details=details,
            success=False,
        )

    def recent_activity(self, user, limit=10):
        return list(AuditLog.objects.filter(user=user).order_by('-created_at')[:limit])
