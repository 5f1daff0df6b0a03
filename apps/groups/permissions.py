"""
Group access checks shared by the group and media services.

Each helper returns the caller's ACTIVE membership or raises the DRF
exception the views should surface.
"""
from rest_framework.exceptions import NotFound, PermissionDenied

from apps.groups.models import Group, GroupMember

NOT_A_MEMBER = 'You are not a member of this group'
ADMIN_REQUIRED = 'Only group admins can perform this action'
OWNER_REQUIRED = 'Only the group owner can perform this action'


def get_group_or_404(group_id, *, lock=False):
    queryset = Group.objects.select_for_update() if lock else Group.objects.all()
    group = queryset.filter(pk=group_id).first()
    if group is None:
        raise NotFound('Group not found')
    return group


def get_active_membership(group, user):
    return GroupMember.objects.filter(
        group=group,
        user=user,
        status=GroupMember.Status.ACTIVE,
    ).first()


def require_active_member(group, user, message=NOT_A_MEMBER):
    membership = get_active_membership(group, user)
    if membership is None:
        raise PermissionDenied(message)
    return membership


def require_group_admin(group, user, message=ADMIN_REQUIRED):
    membership = require_active_member(group, user)
    if not membership.is_admin:
        raise PermissionDenied(message)
    return membership


def require_group_owner(group, user, message=OWNER_REQUIRED):
    membership = require_active_member(group, user)
    if not membership.is_owner:
        raise PermissionDenied(message)
    return membership
