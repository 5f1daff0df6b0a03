"""
Issue, rotate and revoke JWT token pairs.

Access and refresh tokens are minted by ``rest_framework_simplejwt``; every
refresh token is also stored as a :class:`~apps.users.models.RefreshToken`
row, which is what makes rotation and logout enforceable.

Refresh token lifecycle::

    issued --> consumed (rotated by refresh)
           --> revoked  (logout / logout-all)
           --> expired  (time)

All three end states are terminal.
"""
import logging

from django.conf import settings
from django.db import transaction
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken as JWTRefreshToken
from rest_framework_simplejwt.utils import datetime_from_epoch

from apps.users.models import RefreshToken
from apps.users.services.audit import AuditService

logger = logging.getLogger(__name__)


class TokenService:

    def __init__(self, audit=None):
        self.audit = audit or AuditService()

    def issue_pair(self, user, context=None):
        """
        Mint a new access/refresh pair for ``user`` and store the refresh token.

        Returns ``{"accessToken", "refreshToken", "expiresIn"}``.
        """
        refresh = JWTRefreshToken.for_user(user)
        refresh['email'] = user.email
        refresh['username'] = user.username
        access = refresh.access_token

        RefreshToken.objects.create(
            user=user,
            token=str(refresh),
            jti=refresh['jti'],
            expires_at=datetime_from_epoch(refresh['exp']),
            device_info=context.user_agent if context else '',
            ip_address=context.ip_address if context else None,
        )

        return {
            'accessToken': str(access),
            'refreshToken': str(refresh),
            'expiresIn': int(settings.SIMPLE_JWT['ACCESS_TOKEN_LIFETIME'].total_seconds()),
        }

    def refresh(self, raw_token, context=None):
        """
        Exchange a refresh token for a new pair, revoking the one presented.

        A missing, expired or already revoked token is rejected. A revoked
        token that is presented again is recorded as suspicious activity,
        since it may be a replay.
        """
        try:
            payload = JWTRefreshToken(raw_token).payload
        except TokenError as exc:
            logger.info('Refresh token rejected: %s', exc)
            raise AuthenticationFailed('Invalid refresh token')

        user_id = payload.get(settings.SIMPLE_JWT['USER_ID_CLAIM'])

        with transaction.atomic():
            stored = (
                RefreshToken.objects.select_for_update()
                .select_related('user')
                .filter(token=raw_token, user_id=user_id)
                .first()
            )
            usable = (
                stored is not None
                and stored.is_valid
                and stored.user.is_active
                and not stored.user.is_locked
            )
            if usable:
                stored.is_revoked = True
                stored.save(update_fields=['is_revoked', 'updated_at'])
                tokens = self.issue_pair(stored.user, context)

        if not usable:
            if stored is not None and stored.is_revoked:
                logger.warning('Revoked refresh token %s presented for user %s', stored.jti, user_id)
                self.audit.log_suspicious_activity(
                    stored.user,
                    context=context,
                    details='Revoked refresh token presented',
                )
            raise AuthenticationFailed('Invalid refresh token')

        self.audit.log_refresh_token_used(stored.user, context)
        return tokens

    def revoke(self, raw_token, user):
        """Revoke one refresh token belonging to ``user``. Returns the row count."""
        return RefreshToken.objects.filter(
            token=raw_token,
            user=user,
            is_revoked=False,
        ).update(is_revoked=True)

    def revoke_all(self, user):
        """Revoke every outstanding refresh token of ``user``."""
        return RefreshToken.objects.filter(user=user, is_revoked=False).update(is_revoked=True)
