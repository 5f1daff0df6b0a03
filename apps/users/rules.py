"""
Pure predicates over account and token state.

Kept free of the ORM so they can be checked without a database.
"""
from datetime import timedelta

INVALID_CREDENTIALS = 'Invalid credentials'
ACCOUNT_LOCKED = 'Account is temporarily locked due to too many failed attempts'
ACCOUNT_INACTIVE = 'Account is not active'


def is_locked(locked_until, now):
    """A lockout only applies while its deadline is in the future."""
    return locked_until is not None and locked_until > now


def token_is_usable(is_revoked, expires_at, now):
    return not is_revoked and expires_at > now


def register_failed_attempt(failed_attempts, max_attempts, lockout, now):
    """
    Return ``(new_count, locked_until)`` after one more wrong password.

    ``locked_until`` is ``None`` until the threshold is reached.
    """
    new_count = failed_attempts + 1
    if new_count >= max_attempts:
        return new_count, now + lockout
    return new_count, None


def lockout_duration(minutes):
    return timedelta(minutes=minutes)
