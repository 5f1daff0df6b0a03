"""
Create, read, update and delete groups.
"""
import logging

from django.db import transaction
from rest_framework.exceptions import ValidationError

from apps.groups.models import Group, GroupMember
from apps.groups.permissions import (
    get_group_or_404,
    require_active_member,
    require_group_admin,
    require_group_owner,
)
from apps.groups.utils import generate_invite_code
from apps.media.services.media_store import MediaStore

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    'name',
    'description',
    'cover_image',
    'max_members',
    'is_public',
    'requires_approval',
)


class GroupDirectory:

    def __init__(self, media_store=None):
        self._media_store = media_store

    @property
    def media_store(self):
        if self._media_store is None:
            self._media_store = MediaStore()
        return self._media_store

    def create(self, owner, data):
        """Create a group; the creator becomes its ACTIVE OWNER."""
        with transaction.atomic():
            group = Group.objects.create(
                created_by=owner,
                invite_code=generate_invite_code(),
                **{field: data[field] for field in UPDATABLE_FIELDS if field in data},
            )
            GroupMember.objects.create(
                group=group,
                user=owner,
                role=GroupMember.Role.OWNER,
                status=GroupMember.Status.ACTIVE,
            )

        logger.info('Group %s created by %s', group.id, owner.id)
        return group

    def list_for_user(self, user):
        return (
            Group.objects.filter(
                members__user=user,
                members__status=GroupMember.Status.ACTIVE,
            )
            .select_related('created_by')
            .distinct()
        )

    def get(self, group_id, user):
        group = get_group_or_404(group_id)
        require_active_member(group, user)
        return group

    def update(self, group_id, user, data):
        with transaction.atomic():
            group = get_group_or_404(group_id, lock=True)
            require_group_admin(group, user, 'Only group admins can update the group')

            max_members = data.get('max_members')
            if max_members is not None and max_members < group.member_count:
                raise ValidationError('Maximum members cannot be less than the current member count')

            changed = []
            for field in UPDATABLE_FIELDS:
                if field in data:
                    setattr(group, field, data[field])
                    changed.append(field)
            if changed:
                group.save(update_fields=changed + ['updated_at'])

        logger.info('Group %s updated by %s (%s)', group.id, user.id, ', '.join(changed) or 'no changes')
        return group

    def delete(self, group_id, user):
        """
        Delete a group with its memberships, invites, requests and media.

        Stored media files are removed first, best-effort.
        """
        group = get_group_or_404(group_id)
        require_group_owner(group, user, 'Only the group owner can delete the group')

        with transaction.atomic():
            self.media_store.delete_all_for_group(group)
            group.delete()

        logger.info('Group %s deleted by %s', group_id, user.id)

    def regenerate_invite_code(self, group_id, user):
        with transaction.atomic():
            group = get_group_or_404(group_id, lock=True)
            require_group_admin(group, user, 'Only group admins can regenerate the invite code')
            group.invite_code = generate_invite_code()
            group.save(update_fields=['invite_code', 'updated_at'])

        logger.info('Invite code of group %s regenerated by %s', group.id, user.id)
        return group
