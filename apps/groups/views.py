"""
Views for the Groups app.
"""
import logging

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.groups.serializers import (
    GroupInviteSerializer,
    GroupJoinRequestSerializer,
    GroupMemberSerializer,
    GroupSerializer,
    GroupWriteSerializer,
    InviteCreateSerializer,
    JoinRequestCreateSerializer,
    RoleUpdateSerializer,
)
from apps.groups.services.directory import GroupDirectory
from apps.groups.services.membership import MembershipService

logger = logging.getLogger(__name__)


class GroupViewSet(viewsets.ViewSet):
    """
    Group CRUD plus the per-group membership actions.

    list:            GET    /api/v1/groups
    create:          POST   /api/v1/groups
    read:            GET    /api/v1/groups/{id}
    update:          PATCH  /api/v1/groups/{id}
    delete:          DELETE /api/v1/groups/{id}
    members:         GET    /api/v1/groups/{id}/members
    invite:          POST   /api/v1/groups/{id}/members/invite
    leave:           POST   /api/v1/groups/{id}/leave
    join-requests:   GET    /api/v1/groups/{id}/join-requests
                     POST   /api/v1/groups/{id}/join-requests
    regenerate-code: POST   /api/v1/groups/{id}/regenerate-code
    """
    permission_classes = [IsAuthenticated]
    lookup_value_regex = '[0-9a-fA-F-]{36}'

    def _group_response(self, request, group, http_status=status.HTTP_200_OK, message=None):
        payload = {
            'success': True,
            'data': GroupSerializer(group, context={'request': request}).data,
        }
        if message:
            payload['message'] = message
        return Response(payload, status=http_status)

    def list(self, request):
        groups = GroupDirectory().list_for_user(request.user)
        serializer = GroupSerializer(groups, many=True, context={'request': request})
        return Response({'success': True, 'data': serializer.data})

    def create(self, request):
        serializer = GroupWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        group = GroupDirectory().create(request.user, serializer.validated_data)
        return self._group_response(request, group, status.HTTP_201_CREATED, 'Group created successfully')

    def retrieve(self, request, pk=None):
        group = GroupDirectory().get(pk, request.user)
        return self._group_response(request, group)

    def partial_update(self, request, pk=None):
        serializer = GroupWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        group = GroupDirectory().update(pk, request.user, serializer.validated_data)
        return self._group_response(request, group, message='Group updated successfully')

    def destroy(self, request, pk=None):
        GroupDirectory().delete(pk, request.user)
        return Response({'success': True, 'message': 'Group deleted successfully'})

    @action(detail=True, methods=['get'], url_path='members')
    def members(self, request, pk=None):
        members = MembershipService().list_members(pk, request.user)
        return Response({'success': True, 'data': GroupMemberSerializer(members, many=True).data})

    @action(detail=True, methods=['post'], url_path='members/invite')
    def invite(self, request, pk=None):
        serializer = InviteCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        invite = MembershipService().invite_user(
            pk,
            request.user,
            user_id=data.get('userId'),
            email=data.get('email'),
            username=data.get('username'),
        )
        return Response(
            {
                'success': True,
                'message': 'Invite sent successfully',
                'data': GroupInviteSerializer(invite).data,
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=['post'])
    def leave(self, request, pk=None):
        MembershipService().leave_group(pk, request.user)
        return Response({'success': True, 'message': 'Successfully left the group'})

    @action(detail=True, methods=['get', 'post'], url_path='join-requests')
    def join_requests(self, request, pk=None):
        service = MembershipService()
        if request.method == 'GET':
            requests = service.list_join_requests(pk, request.user)
            return Response({
                'success': True,
                'data': GroupJoinRequestSerializer(requests, many=True).data,
            })

        serializer = JoinRequestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        join_request = service.request_to_join(
            pk,
            request.user,
            serializer.validated_data.get('message', ''),
        )
        return Response(
            {
                'success': True,
                'message': 'Join request submitted',
                'data': GroupJoinRequestSerializer(join_request).data,
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=['post'], url_path='regenerate-code')
    def regenerate_invite_code(self, request, pk=None):
        """Regenerate the invite code for a group."""
        group = GroupDirectory().regenerate_invite_code(pk, request.user)
        return Response({'success': True, 'inviteCode': group.invite_code})


class GroupMemberView(APIView):
    """
    Remove a member (or yourself) from a group.

    DELETE /api/v1/groups/{group_id}/members/{user_id}
    """
    permission_classes = [IsAuthenticated]

    def delete(self, request, group_id, user_id):
        membership = MembershipService().remove_member(group_id, user_id, request.user)
        message = 'Successfully left the group' if membership.user_id == request.user.id else 'Member removed'
        return Response({'success': True, 'message': message})


class GroupMemberRoleView(APIView):
    """
    PATCH /api/v1/groups/{group_id}/members/{user_id}/role
    Body: {"role": "admin" | "member"}
    """
    permission_classes = [IsAuthenticated]

    def patch(self, request, group_id, user_id):
        serializer = RoleUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        membership = MembershipService().change_member_role(
            group_id,
            user_id,
            serializer.validated_data['role'],
            request.user,
        )
        return Response({
            'success': True,
            'message': 'Member role updated',
            'data': GroupMemberSerializer(membership).data,
        })


class JoinWithCodeView(APIView):
    """
    Join a group using its invite code.

    POST /api/v1/groups/join/{code}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, code):
        outcome = MembershipService().join_with_code(code, request.user)
        if outcome.pending:
            return Response(
                {
                    'success': True,
                    'message': 'Join request submitted and awaiting approval',
                    'data': GroupJoinRequestSerializer(outcome.join_request).data,
                },
                status=status.HTTP_202_ACCEPTED,
            )

        group = outcome.membership.group
        return Response(
            {
                'success': True,
                'message': f'Successfully joined {group.name}',
                'data': GroupSerializer(group, context={'request': request}).data,
            },
            status=status.HTTP_201_CREATED,
        )


class JoinRequestReviewView(APIView):
    """
    Approve or reject a pending join request.

    POST /api/v1/groups/join-requests/{request_id}/approve
    POST /api/v1/groups/join-requests/{request_id}/reject
    """
    permission_classes = [IsAuthenticated]
    decision = None

    def post(self, request, request_id):
        service = MembershipService()
        if self.decision == 'approve':
            membership = service.approve_join_request(request_id, request.user)
            return Response({
                'success': True,
                'message': 'Join request approved',
                'data': GroupMemberSerializer(membership).data,
            })

        join_request = service.reject_join_request(request_id, request.user)
        return Response({
            'success': True,
            'message': 'Join request rejected',
            'data': GroupJoinRequestSerializer(join_request).data,
        })


class InviteResponseView(APIView):
    """
    Accept or decline an invite token.

    POST /api/v1/groups/invites/{token}/accept
    POST /api/v1/groups/invites/{token}/decline
    """
    permission_classes = [IsAuthenticated]
    decision = None

    def post(self, request, token):
        service = MembershipService()
        if self.decision == 'accept':
            membership = service.accept_invite(token, request.user)
            return Response({
                'success': True,
                'message': 'Invite accepted',
                'data': GroupSerializer(membership.group, context={'request': request}).data,
            })

        service.decline_invite(token, request.user)
        return Response({'success': True, 'message': 'Invite declined'})
