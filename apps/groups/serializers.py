"""
Serializers for the Groups app.
All output uses camelCase to match the mobile client.
"""
from rest_framework import serializers

from apps.groups.models import Group, GroupInvite, GroupJoinRequest, GroupMember
from apps.groups.permissions import get_active_membership
from apps.users.serializers import UserSummarySerializer


class GroupSerializer(serializers.ModelSerializer):
    coverImage = serializers.CharField(source='cover_image', read_only=True)
    inviteCode = serializers.CharField(source='invite_code', read_only=True)
    maxMembers = serializers.IntegerField(source='max_members', read_only=True)
    isPublic = serializers.BooleanField(source='is_public', read_only=True)
    requiresApproval = serializers.BooleanField(source='requires_approval', read_only=True)
    createdBy = UserSummarySerializer(source='created_by', read_only=True)
    memberCount = serializers.ReadOnlyField(source='member_count')
    isAtCapacity = serializers.ReadOnlyField(source='is_at_capacity')
    myRole = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Group
        fields = [
            'id', 'name', 'description', 'coverImage', 'inviteCode',
            'maxMembers', 'isPublic', 'requiresApproval', 'createdBy',
            'memberCount', 'isAtCapacity', 'myRole', 'createdAt', 'updatedAt',
        ]
        read_only_fields = fields

    def get_myRole(self, obj):
        request = self.context.get('request')
        if request is None:
            return None
        membership = get_active_membership(obj, request.user)
        return membership.role if membership else None


class GroupWriteSerializer(serializers.Serializer):
    """
    Input for creating and updating groups. ``validated_data`` comes out
    with model field names.
    """
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True, max_length=2000)
    coverImage = serializers.URLField(source='cover_image', required=False, allow_blank=True, max_length=500)
    maxMembers = serializers.IntegerField(source='max_members', required=False, min_value=2, max_value=1000)
    isPublic = serializers.BooleanField(source='is_public', required=False)
    requiresApproval = serializers.BooleanField(source='requires_approval', required=False)

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Group name is required')
        return value


class GroupMemberSerializer(serializers.ModelSerializer):
    userId = serializers.CharField(source='user.id', read_only=True)
    groupId = serializers.CharField(source='group_id', read_only=True)
    user = UserSummarySerializer(read_only=True)
    invitedById = serializers.CharField(source='invited_by_id', read_only=True, allow_null=True)
    joinedAt = serializers.DateTimeField(source='joined_at', read_only=True)

    class Meta:
        model = GroupMember
        fields = ['id', 'userId', 'groupId', 'role', 'status', 'user', 'invitedById', 'joinedAt']
        read_only_fields = fields


class InviteCreateSerializer(serializers.Serializer):
    userId = serializers.UUIDField(required=False)
    email = serializers.EmailField(required=False)
    username = serializers.CharField(required=False, max_length=30)

    def validate(self, attrs):
        if not any(attrs.get(key) for key in ('userId', 'email', 'username')):
            raise serializers.ValidationError('Provide a userId, email or username to invite')
        return attrs


class GroupInviteSerializer(serializers.ModelSerializer):
    groupId = serializers.CharField(source='group_id', read_only=True)
    invitedUserId = serializers.CharField(source='invited_user_id', read_only=True, allow_null=True)
    invitedBy = UserSummarySerializer(source='invited_by', read_only=True)
    expiresAt = serializers.DateTimeField(source='expires_at', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = GroupInvite
        fields = [
            'id', 'groupId', 'token', 'email', 'invitedUserId', 'invitedBy',
            'status', 'expiresAt', 'createdAt',
        ]
        read_only_fields = fields


class JoinRequestCreateSerializer(serializers.Serializer):
    message = serializers.CharField(required=False, allow_blank=True, max_length=500)


class GroupJoinRequestSerializer(serializers.ModelSerializer):
    groupId = serializers.CharField(source='group_id', read_only=True)
    user = UserSummarySerializer(read_only=True)
    reviewedById = serializers.CharField(source='reviewed_by_id', read_only=True, allow_null=True)
    reviewedAt = serializers.DateTimeField(source='reviewed_at', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = GroupJoinRequest
        fields = [
            'id', 'groupId', 'user', 'message', 'status',
            'reviewedById', 'reviewedAt', 'createdAt',
        ]
        read_only_fields = fields


class RoleUpdateSerializer(serializers.Serializer):
    role = serializers.CharField(max_length=10)

    def validate_role(self, value):
        return value.strip().lower()
