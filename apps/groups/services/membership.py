"""
Who belongs to a group, how they got in and what they may do there.

Every mutation runs in one transaction and locks the group row first, so the
capacity and "already a member" checks are re-read at the moment of the
write. ``select_for_update`` is a no-op on SQLite; on PostgreSQL it
serialises concurrent joins to the same group.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from apps.groups import rules
from apps.groups.models import Group, GroupInvite, GroupJoinRequest, GroupMember
from apps.groups.permissions import (
    get_active_membership,
    get_group_or_404,
    require_active_member,
    require_group_admin,
)
from apps.groups.utils import generate_invite_token
from common.exceptions import Conflict

logger = logging.getLogger(__name__)
User = get_user_model()

AT_CAPACITY = 'Group is at maximum capacity'
ALREADY_MEMBER = 'User is already a member of this group'
YOU_ARE_ALREADY_MEMBER = 'You are already a member of this group'
PENDING_REQUEST_EXISTS = 'You already have a pending join request for this group'
INVITE_INVALID = 'Invite is invalid or expired'


@dataclass
class JoinOutcome:
    """Result of joining by code: either a membership or a pending request."""
    membership: GroupMember | None = None
    join_request: GroupJoinRequest | None = None

    @property
    def pending(self):
        return self.join_request is not None


class MembershipService:

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _ensure_capacity(self, group):
        if group.is_at_capacity:
            raise ValidationError(AT_CAPACITY)

    def _activate_membership(self, group, user, invited_by=None):
        """
        Make ``user`` an ACTIVE MEMBER of ``group``.

        A LEFT or REMOVED row is reactivated in place with its role reset.
        """
        membership = GroupMember.objects.filter(group=group, user=user).first()
        if membership is None:
            membership = GroupMember.objects.create(
                group=group,
                user=user,
                role=GroupMember.Role.MEMBER,
                status=GroupMember.Status.ACTIVE,
                invited_by=invited_by,
            )
        else:
            if membership.is_active:
                raise Conflict(ALREADY_MEMBER)
            membership.role = GroupMember.Role.MEMBER
            membership.status = GroupMember.Status.ACTIVE
            membership.joined_at = timezone.now()
            membership.invited_by = invited_by
            membership.save(update_fields=['role', 'status', 'joined_at', 'invited_by', 'updated_at'])

        logger.info('User %s joined group %s', user.id, group.id)
        return membership

    def _has_pending_request(self, group, user):
        return GroupJoinRequest.objects.filter(
            group=group,
            user=user,
            status=GroupJoinRequest.Status.PENDING,
        ).exists()

    def _create_join_request(self, group, user, message=''):
        try:
            with transaction.atomic():
                join_request = GroupJoinRequest.objects.create(
                    group=group,
                    user=user,
                    message=message or '',
                )
        except IntegrityError:
            raise Conflict(PENDING_REQUEST_EXISTS)
        logger.info('User %s requested to join group %s', user.id, group.id)
        return join_request

    # ------------------------------------------------------------------
    # Invites
    # ------------------------------------------------------------------

    def invite_user(self, group_id, inviter, *, user_id=None, email=None, username=None):
        """
        Create a PENDING invite for a user (by id or username) or an email
        address, which need not belong to a registered user yet.
        """
        with transaction.atomic():
            group = get_group_or_404(group_id, lock=True)
            require_group_admin(group, inviter, 'Only group admins can invite members')
            self._ensure_capacity(group)

            target = None
            if user_id:
                target = User.objects.filter(pk=user_id).first()
                if target is None:
                    raise NotFound('User not found')
            elif username:
                target = User.objects.filter(username=username).first()
                if target is None:
                    raise NotFound('User not found')
            elif email:
                email = email.strip().lower()
                target = User.objects.filter(email__iexact=email).first()
            else:
                raise ValidationError('Provide a userId, email or username to invite')

            pending = GroupInvite.objects.filter(
                group=group,
                status=GroupInvite.Status.PENDING,
                expires_at__gt=timezone.now(),
            )
            if target is not None:
                if get_active_membership(group, target) is not None:
                    raise Conflict(ALREADY_MEMBER)
                duplicate = pending.filter(invited_user=target).exists() or pending.filter(
                    email__iexact=target.email,
                ).exists()
            else:
                duplicate = pending.filter(email__iexact=email).exists()
            if duplicate:
                raise Conflict('An invite is already pending for this user')

            invite = GroupInvite.objects.create(
                group=group,
                invited_by=inviter,
                invited_user=target,
                email=email or None,
                token=generate_invite_token(),
                expires_at=timezone.now() + timedelta(days=settings.TRIPSHARE['INVITE_TTL_DAYS']),
            )

        logger.info('User %s invited %s to group %s', inviter.id, target.id if target else email, group.id)
        return invite

    def _load_redeemable_invite(self, token, user):
        """
        Look up an invite the caller may act on.

        A lapsed invite is persisted as EXPIRED before being rejected.
        """
        invite = GroupInvite.objects.select_related('group').filter(token=token).first()
        if invite is None:
            raise NotFound('Invite not found')
        invite.mark_expired_if_needed()
        if not invite.is_valid:
            raise ValidationError(INVITE_INVALID)
        if not rules.invite_targets_user(invite.invited_user_id, invite.email, user.id, user.email):
            raise PermissionDenied('This invite is not for you')
        return invite

    def _lock_pending_invite(self, invite):
        invite = GroupInvite.objects.select_for_update().get(pk=invite.pk)
        if not invite.is_valid:
            raise ValidationError(INVITE_INVALID)
        return invite

    def accept_invite(self, token, user):
        invite = self._load_redeemable_invite(token, user)

        with transaction.atomic():
            group = get_group_or_404(invite.group_id, lock=True)
            invite = self._lock_pending_invite(invite)
            if get_active_membership(group, user) is not None:
                raise Conflict(YOU_ARE_ALREADY_MEMBER)
            self._ensure_capacity(group)

            membership = self._activate_membership(group, user, invited_by=invite.invited_by)
            invite.status = GroupInvite.Status.ACCEPTED
            invite.save(update_fields=['status', 'updated_at'])

        return membership

    def decline_invite(self, token, user):
        invite = self._load_redeemable_invite(token, user)

        with transaction.atomic():
            invite = self._lock_pending_invite(invite)
            invite.status = GroupInvite.Status.DECLINED
            invite.save(update_fields=['status', 'updated_at'])

        logger.info('User %s declined invite to group %s', user.id, invite.group_id)
        return invite

    # ------------------------------------------------------------------
    # Joining
    # ------------------------------------------------------------------

    def join_with_code(self, code, user):
        code = (code or '').strip().upper()

        with transaction.atomic():
            group = Group.objects.select_for_update().filter(invite_code=code).first()
            if group is None:
                raise NotFound('Invalid invite code')
            if get_active_membership(group, user) is not None:
                raise Conflict(YOU_ARE_ALREADY_MEMBER)
            self._ensure_capacity(group)

            if group.requires_approval:
                if self._has_pending_request(group, user):
                    raise Conflict(PENDING_REQUEST_EXISTS)
                return JoinOutcome(join_request=self._create_join_request(group, user))

            return JoinOutcome(membership=self._activate_membership(group, user))

    def request_to_join(self, group_id, user, message=''):
        with transaction.atomic():
            group = get_group_or_404(group_id, lock=True)
            if not group.is_public:
                raise PermissionDenied('This group is not public')
            if get_active_membership(group, user) is not None:
                raise Conflict(YOU_ARE_ALREADY_MEMBER)
            if self._has_pending_request(group, user):
                raise Conflict(PENDING_REQUEST_EXISTS)
            return self._create_join_request(group, user, message)

    # ------------------------------------------------------------------
    # Join requests
    # ------------------------------------------------------------------

    def list_join_requests(self, group_id, user, status=GroupJoinRequest.Status.PENDING):
        group = get_group_or_404(group_id)
        require_group_admin(group, user, 'Only group admins can view join requests')
        queryset = group.join_requests.select_related('user', 'reviewed_by')
        if status:
            queryset = queryset.filter(status=status)
        return queryset.order_by('created_at')

    def _lock_pending_request(self, request_id, reviewer):
        join_request = (
            GroupJoinRequest.objects.select_for_update()
            .select_related('user')
            .filter(pk=request_id)
            .first()
        )
        if join_request is None:
            raise NotFound('Join request not found')
        if join_request.status != GroupJoinRequest.Status.PENDING:
            raise ValidationError('Join request is not pending')
        group = get_group_or_404(join_request.group_id, lock=True)
        require_group_admin(group, reviewer, 'Only group admins can review join requests')
        return join_request, group

    def _close_request(self, join_request, status, reviewer):
        join_request.status = status
        join_request.reviewed_by = reviewer
        join_request.reviewed_at = timezone.now()
        join_request.save(update_fields=['status', 'reviewed_by', 'reviewed_at', 'updated_at'])

    def approve_join_request(self, request_id, reviewer):
        with transaction.atomic():
            join_request, group = self._lock_pending_request(request_id, reviewer)
            self._ensure_capacity(group)
            membership = self._activate_membership(group, join_request.user)
            self._close_request(join_request, GroupJoinRequest.Status.APPROVED, reviewer)

        logger.info('Join request %s approved by %s', join_request.id, reviewer.id)
        return membership

    def reject_join_request(self, request_id, reviewer):
        with transaction.atomic():
            join_request, _group = self._lock_pending_request(request_id, reviewer)
            self._close_request(join_request, GroupJoinRequest.Status.REJECTED, reviewer)

        logger.info('Join request %s rejected by %s', join_request.id, reviewer.id)
        return join_request

    # ------------------------------------------------------------------
    # Roles and departures
    # ------------------------------------------------------------------

    def change_member_role(self, group_id, target_user_id, role, actor):
        with transaction.atomic():
            group = get_group_or_404(group_id, lock=True)
            actor_membership = require_active_member(group, actor)
            if not actor_membership.is_owner:
                raise PermissionDenied('Only the group owner can change member roles')
            if rules.is_owner_role(role):
                raise ValidationError('Ownership cannot be assigned')
            if role not in rules.ASSIGNABLE_ROLES:
                raise ValidationError('Invalid role')
            if str(target_user_id) == str(actor.id):
                raise ValidationError('You cannot change your own role')

            target = get_active_membership(group, target_user_id)
            if target is None:
                raise NotFound('Member not found')
            if not rules.can_change_role(actor_membership.role, target.role, role):
                raise ValidationError('Cannot change the role of the group owner')

            target.role = role
            target.save(update_fields=['role', 'updated_at'])

        logger.info('User %s set role of %s in group %s to %s', actor.id, target_user_id, group.id, role)
        return target

    def remove_member(self, group_id, target_user_id, actor):
        if str(target_user_id) == str(actor.id):
            return self.leave_group(group_id, actor)

        with transaction.atomic():
            group = get_group_or_404(group_id, lock=True)
            actor_membership = require_active_member(group, actor)
            target = get_active_membership(group, target_user_id)
            if target is None:
                raise NotFound('Member not found')
            if target.is_owner:
                raise ValidationError('Cannot remove the group owner')
            if not actor_membership.is_admin:
                raise PermissionDenied('You do not have permission to remove members')
            if not rules.can_remove(actor_membership.role, target.role):
                raise PermissionDenied('Only the group owner can remove admins')

            target.status = GroupMember.Status.REMOVED
            target.save(update_fields=['status', 'updated_at'])

        logger.info('User %s removed %s from group %s', actor.id, target_user_id, group.id)
        return target

    def leave_group(self, group_id, user):
        with transaction.atomic():
            group = get_group_or_404(group_id, lock=True)
            membership = get_active_membership(group, user)
            if membership is None:
                raise NotFound('You are not a member of this group')
            if membership.is_owner:
                raise ValidationError('The group owner cannot leave the group')

            membership.status = GroupMember.Status.LEFT
            membership.save(update_fields=['status', 'updated_at'])

        logger.info('User %s left group %s', user.id, group.id)
        return membership

    def list_members(self, group_id, user):
        group = get_group_or_404(group_id)
        require_active_member(group, user)
        return (
            group.members.filter(status=GroupMember.Status.ACTIVE)
            .select_related('user')
            .order_by('joined_at')
        )
