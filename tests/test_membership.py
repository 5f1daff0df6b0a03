"""Membership workflow: joining, invites, join requests, roles and removal."""
from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from apps.groups.models import GroupInvite, GroupJoinRequest, GroupMember
from apps.groups.services.membership import AT_CAPACITY, INVITE_INVALID, MembershipService
from common.exceptions import Conflict
from tests.conftest import add_member, create_group, create_user


def _message(exc_info):
    detail = exc_info.value.detail
    if isinstance(detail, list):
        detail = detail[0]
    return str(detail)


def _owner_count(group):
    return group.members.filter(
        role=GroupMember.Role.OWNER,
        status=GroupMember.Status.ACTIVE,
    ).count()


@pytest.fixture
def service():
    return MembershipService()


@pytest.mark.django_db
class TestJoinWithCode:

    def test_third_member_rejected_at_capacity(self, service, owner, member, outsider):
        """maxMembers=2: owner + one code join fill the group."""
        group = create_group(owner, max_members=2, requires_approval=False)

        outcome = service.join_with_code(group.invite_code, member)
        assert not outcome.pending
        assert outcome.membership.status == GroupMember.Status.ACTIVE
        assert group.member_count == 2

        with pytest.raises(ValidationError) as exc_info:
            service.join_with_code(group.invite_code, outsider)
        assert _message(exc_info) == AT_CAPACITY
        assert group.member_count == 2

    def test_code_is_case_insensitive(self, service, owner, member):
        group = create_group(owner, requires_approval=False)
        outcome = service.join_with_code(group.invite_code.lower(), member)
        assert outcome.membership.user == member

    def test_unknown_code(self, service, member):
        with pytest.raises(NotFound) as exc_info:
            service.join_with_code('NOPE', member)
        assert _message(exc_info) == 'Invalid invite code'

    def test_already_member_conflicts(self, service, owner, member):
        group = create_group(owner, requires_approval=False)
        service.join_with_code(group.invite_code, member)
        with pytest.raises(Conflict):
            service.join_with_code(group.invite_code, member)

    def test_approval_required_creates_pending_request(self, service, owner, member):
        group = create_group(owner, requires_approval=True)

        outcome = service.join_with_code(group.invite_code, member)
        assert outcome.pending
        assert outcome.join_request.status == GroupJoinRequest.Status.PENDING
        assert group.member_count == 1

        with pytest.raises(Conflict):
            service.join_with_code(group.invite_code, member)

    def test_rejoin_reuses_membership_row(self, service, owner, member):
        group = create_group(owner, requires_approval=False)
        first = service.join_with_code(group.invite_code, member).membership
        service.leave_group(group.id, member)

        again = service.join_with_code(group.invite_code, member).membership
        assert again.pk == first.pk
        assert again.status == GroupMember.Status.ACTIVE
        assert again.role == GroupMember.Role.MEMBER
        assert GroupMember.objects.filter(group=group, user=member).count() == 1


@pytest.mark.django_db
class TestInvites:

    def test_expired_invite_rejected_and_marked(self, service, owner, member):
        group = create_group(owner, requires_approval=True)
        invite = service.invite_user(group.id, owner, email=member.email)
        GroupInvite.objects.filter(pk=invite.pk).update(expires_at=timezone.now() - timedelta(minutes=1))

        with pytest.raises(ValidationError) as exc_info:
            service.accept_invite(invite.token, member)
        assert _message(exc_info) == INVITE_INVALID
        invite.refresh_from_db()
        assert invite.status == GroupInvite.Status.EXPIRED

    def test_accept_email_invite(self, service, owner, member):
        group = create_group(owner, requires_approval=True)
        invite = service.invite_user(group.id, owner, email=member.email.upper())
        assert invite.invited_user == member

        membership = service.accept_invite(invite.token, member)
        assert membership.status == GroupMember.Status.ACTIVE
        assert membership.invited_by == owner
        invite.refresh_from_db()
        assert invite.status == GroupInvite.Status.ACCEPTED

        with pytest.raises(ValidationError):
            service.accept_invite(invite.token, member)

    def test_invite_for_unregistered_email(self, service, owner):
        group = create_group(owner)
        invite = service.invite_user(group.id, owner, email='newcomer@example.com')
        assert invite.invited_user is None
        assert invite.email == 'newcomer@example.com'
        assert len(invite.token) == 64

        newcomer = create_user('newcomer')
        service.accept_invite(invite.token, newcomer)
        assert group.member_count == 2

    def test_invite_redeemed_by_someone_else(self, service, owner, member, outsider):
        group = create_group(owner)
        invite = service.invite_user(group.id, owner, user_id=member.id)
        with pytest.raises(PermissionDenied) as exc_info:
            service.accept_invite(invite.token, outsider)
        assert _message(exc_info) == 'This invite is not for you'

    def test_only_admins_invite(self, service, owner, member, outsider):
        group = create_group(owner)
        add_member(group, member)
        with pytest.raises(PermissionDenied):
            service.invite_user(group.id, member, username=outsider.username)

    def test_duplicate_pending_invite_conflicts(self, service, owner, member):
        group = create_group(owner)
        service.invite_user(group.id, owner, username=member.username)
        with pytest.raises(Conflict):
            service.invite_user(group.id, owner, user_id=member.id)

    def test_invite_existing_member_conflicts(self, service, owner, member):
        group = create_group(owner)
        add_member(group, member)
        with pytest.raises(Conflict):
            service.invite_user(group.id, owner, user_id=member.id)

    def test_invite_unknown_username(self, service, owner):
        group = create_group(owner)
        with pytest.raises(NotFound):
            service.invite_user(group.id, owner, username='ghost')

    def test_accept_rechecks_capacity(self, service, owner, member, outsider):
        group = create_group(owner, max_members=2)
        invite = service.invite_user(group.id, owner, user_id=member.id)
        add_member(group, outsider)
        with pytest.raises(ValidationError) as exc_info:
            service.accept_invite(invite.token, member)
        assert _message(exc_info) == AT_CAPACITY

    def test_decline(self, service, owner, member):
        group = create_group(owner)
        invite = service.invite_user(group.id, owner, user_id=member.id)
        service.decline_invite(invite.token, member)
        invite.refresh_from_db()
        assert invite.status == GroupInvite.Status.DECLINED
        assert group.member_count == 1


@pytest.mark.django_db
class TestJoinRequests:

    def test_private_group_refuses_requests(self, service, owner, member):
        group = create_group(owner, is_public=False)
        with pytest.raises(PermissionDenied) as exc_info:
            service.request_to_join(group.id, member)
        assert _message(exc_info) == 'This group is not public'

    def test_public_group_always_creates_request(self, service, owner, member):
        group = create_group(owner, is_public=True, requires_approval=False)
        join_request = service.request_to_join(group.id, member, 'Let me in')
        assert join_request.status == GroupJoinRequest.Status.PENDING
        assert join_request.message == 'Let me in'
        assert group.member_count == 1

    def test_approve_activates_and_is_single_use(self, service, owner, member):
        group = create_group(owner, is_public=True)
        join_request = service.request_to_join(group.id, member)

        membership = service.approve_join_request(join_request.id, owner)
        assert membership.status == GroupMember.Status.ACTIVE
        join_request.refresh_from_db()
        assert join_request.status == GroupJoinRequest.Status.APPROVED
        assert join_request.reviewed_by == owner
        assert join_request.reviewed_at is not None

        with pytest.raises(ValidationError) as exc_info:
            service.approve_join_request(join_request.id, owner)
        assert _message(exc_info) == 'Join request is not pending'

    def test_approve_rechecks_capacity(self, service, owner, member, outsider):
        group = create_group(owner, is_public=True, max_members=2)
        join_request = service.request_to_join(group.id, member)
        add_member(group, outsider)
        with pytest.raises(ValidationError) as exc_info:
            service.approve_join_request(join_request.id, owner)
        assert _message(exc_info) == AT_CAPACITY
        join_request.refresh_from_db()
        assert join_request.status == GroupJoinRequest.Status.PENDING

    def test_member_cannot_review(self, service, owner, member, outsider):
        group = create_group(owner, is_public=True)
        add_member(group, member)
        join_request = service.request_to_join(group.id, outsider)
        with pytest.raises(PermissionDenied):
            service.approve_join_request(join_request.id, member)
        with pytest.raises(PermissionDenied):
            service.list_join_requests(group.id, member)

    def test_reject(self, service, owner, member):
        group = create_group(owner, is_public=True)
        join_request = service.request_to_join(group.id, member)
        service.reject_join_request(join_request.id, owner)
        join_request.refresh_from_db()
        assert join_request.status == GroupJoinRequest.Status.REJECTED
        assert group.member_count == 1

        # A fresh request is allowed once the earlier one is resolved
        assert service.request_to_join(group.id, member).status == GroupJoinRequest.Status.PENDING

    def test_approval_reuses_previous_membership(self, service, owner, member):
        group = create_group(owner, is_public=True)
        old = add_member(group, member)
        service.leave_group(group.id, member)

        join_request = service.request_to_join(group.id, member)
        membership = service.approve_join_request(join_request.id, owner)
        assert membership.pk == old.pk


@pytest.mark.django_db
class TestRolesAndRemoval:

    def test_admin_cannot_remove_admin_but_owner_can(self, service, owner, member, outsider):
        group = create_group(owner)
        add_member(group, member, role=GroupMember.Role.ADMIN)
        target = add_member(group, outsider, role=GroupMember.Role.ADMIN)

        with pytest.raises(PermissionDenied):
            service.remove_member(group.id, outsider.id, member)

        service.remove_member(group.id, outsider.id, owner)
        target.refresh_from_db()
        assert target.status == GroupMember.Status.REMOVED

    def test_admin_removes_member(self, service, owner, member, outsider):
        group = create_group(owner)
        add_member(group, member, role=GroupMember.Role.ADMIN)
        add_member(group, outsider)
        removed = service.remove_member(group.id, outsider.id, member)
        assert removed.status == GroupMember.Status.REMOVED

    def test_member_cannot_remove_member(self, service, owner, member, outsider):
        group = create_group(owner)
        add_member(group, member)
        add_member(group, outsider)
        with pytest.raises(PermissionDenied):
            service.remove_member(group.id, outsider.id, member)

    def test_owner_cannot_be_removed(self, service, owner, member):
        group = create_group(owner)
        add_member(group, member, role=GroupMember.Role.ADMIN)
        with pytest.raises(ValidationError) as exc_info:
            service.remove_member(group.id, owner.id, member)
        assert _message(exc_info) == 'Cannot remove the group owner'
        assert _owner_count(group) == 1

    def test_owner_cannot_leave(self, service, owner):
        group = create_group(owner)
        with pytest.raises(ValidationError) as exc_info:
            service.remove_member(group.id, owner.id, owner)
        assert _message(exc_info) == 'The group owner cannot leave the group'
        assert _owner_count(group) == 1

    def test_self_removal_is_leaving(self, service, owner, member):
        group = create_group(owner)
        add_member(group, member)
        membership = service.remove_member(group.id, member.id, member)
        assert membership.status == GroupMember.Status.LEFT

    def test_owner_promotes_and_demotes(self, service, owner, member):
        group = create_group(owner)
        add_member(group, member)
        assert service.change_member_role(group.id, member.id, 'admin', owner).role == GroupMember.Role.ADMIN
        assert service.change_member_role(group.id, member.id, 'member', owner).role == GroupMember.Role.MEMBER

    def test_ownership_cannot_be_assigned(self, service, owner, member):
        group = create_group(owner)
        add_member(group, member, role=GroupMember.Role.ADMIN)
        with pytest.raises(ValidationError) as exc_info:
            service.change_member_role(group.id, member.id, 'owner', owner)
        assert _message(exc_info) == 'Ownership cannot be assigned'
        assert _owner_count(group) == 1

    def test_only_owner_changes_roles(self, service, owner, member, outsider):
        group = create_group(owner)
        add_member(group, member, role=GroupMember.Role.ADMIN)
        add_member(group, outsider)
        with pytest.raises(PermissionDenied):
            service.change_member_role(group.id, outsider.id, 'admin', member)

    def test_owner_cannot_change_own_role(self, service, owner):
        group = create_group(owner)
        with pytest.raises(ValidationError):
            service.change_member_role(group.id, owner.id, 'member', owner)

    def test_members_listing_shows_active_only(self, service, owner, member, outsider):
        group = create_group(owner)
        add_member(group, member)
        add_member(group, outsider)
        service.leave_group(group.id, outsider)

        users = [m.user for m in service.list_members(group.id, member)]
        assert users == [owner, member]
        with pytest.raises(PermissionDenied):
            service.list_members(group.id, outsider)
