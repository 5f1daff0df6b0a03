"""
Bearer authentication for the API.
"""
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication

from apps.users.rules import ACCOUNT_LOCKED


class ActiveUserJWTAuthentication(JWTAuthentication):
    """
    simplejwt's access-token authentication, additionally refusing accounts
    that are currently locked out. Inactive accounts are already refused by
    the parent class.
    """

    def get_user(self, validated_token):
        user = super().get_user(validated_token)
        if user.is_locked:
            raise AuthenticationFailed(ACCOUNT_LOCKED, code='account_locked')
        return user
