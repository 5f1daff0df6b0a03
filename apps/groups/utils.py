"""
Utility functions for the Groups app.
"""
import secrets
import string

from django.conf import settings

from apps.users.services.crypto import generate_secure_token


def generate_invite_code(length=None):
    """
    Generate a unique, uppercase alphanumeric invite code.

    Args:
        length: Length of the code (defaults to ``TRIPSHARE['INVITE_CODE_LENGTH']``).

    Returns:
        A random uppercase alphanumeric string not used by any group.
    """
    from apps.groups.models import Group

    length = length or settings.TRIPSHARE['INVITE_CODE_LENGTH']
    alphabet = string.ascii_uppercase + string.digits
    while True:
        code = ''.join(secrets.choice(alphabet) for _ in range(length))
        if not Group.objects.filter(invite_code=code).exists():
            return code


def generate_invite_token():
    """32 random bytes, hex encoded."""
    return generate_secure_token(32)
