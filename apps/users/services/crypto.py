"""
Random token generation and password strength rules.
"""
import re
import secrets

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128
PASSWORD_PATTERN = re.compile(r'^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])')
PASSWORD_MESSAGE = (
    'Password must contain at least one lowercase letter, one uppercase letter, '
    'one number, and one special character'
)


def generate_secure_token(nbytes=32):
    """Return ``nbytes`` of randomness as a hex string."""
    return secrets.token_hex(nbytes)


def is_strong_password(password):
    return (
        PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH
        and PASSWORD_PATTERN.match(password) is not None
    )
