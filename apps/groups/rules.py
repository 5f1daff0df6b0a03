"""
Pure role, capacity and invite predicates for group membership.

Roles and statuses are passed as their stored string values so these
functions can be exercised without touching the database.
"""
OWNER = 'owner'
ADMIN = 'admin'
MEMBER = 'member'

ACTIVE = 'active'

INVITE_PENDING = 'pending'

ROLE_RANK = {
    OWNER: 3,
    ADMIN: 2,
    MEMBER: 1,
}

ASSIGNABLE_ROLES = (ADMIN, MEMBER)


def role_rank(role):
    """OWNER > ADMIN > MEMBER; anything else ranks below MEMBER."""
    return ROLE_RANK.get(role, 0)


def is_owner_role(role):
    return role == OWNER


def is_admin_role(role):
    """ADMIN or OWNER: may invite, review join requests and edit settings."""
    return role_rank(role) >= ROLE_RANK[ADMIN]


def is_active_status(status):
    return status == ACTIVE


def is_at_capacity(member_count, max_members):
    return member_count >= max_members


def can_remove(actor_role, target_role):
    """
    Whether ``actor_role`` may remove somebody holding ``target_role``.

    Nobody removes the owner. Removal otherwise requires an admin role that
    strictly outranks the target, so an ADMIN removes MEMBERs and only the
    OWNER removes ADMINs.
    """
    if is_owner_role(target_role):
        return False
    return is_admin_role(actor_role) and role_rank(actor_role) > role_rank(target_role)


def can_change_role(actor_role, target_role, new_role):
    """Only the owner moves other members between ADMIN and MEMBER."""
    return (
        is_owner_role(actor_role)
        and not is_owner_role(target_role)
        and new_role in ASSIGNABLE_ROLES
    )


def invite_is_expired(expires_at, now):
    return expires_at <= now


def invite_is_valid(status, expires_at, now):
    return status == INVITE_PENDING and not invite_is_expired(expires_at, now)


def invite_targets_user(invited_user_id, invited_email, user_id, user_email):
    """
    Whether an invite may be redeemed by the given user.

    Untargeted invites may be redeemed by anyone holding the token. Email
    matching is case-insensitive.
    """
    if invited_user_id is not None:
        return str(invited_user_id) == str(user_id)
    if invited_email:
        return invited_email.strip().lower() == (user_email or '').strip().lower()
    return True
