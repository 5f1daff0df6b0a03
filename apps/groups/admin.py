"""
Admin configuration for the Groups app.
"""
from django.contrib import admin

from apps.groups.models import Group, GroupInvite, GroupJoinRequest, GroupMember


class GroupMemberInline(admin.TabularInline):
    model = GroupMember
    fk_name = 'group'
    extra = 0
    raw_id_fields = ['user', 'invited_by']
    readonly_fields = ['joined_at']


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    list_display = [
        'name',
        'invite_code',
        'created_by',
        'max_members',
        'is_public',
        'requires_approval',
        'created_at',
    ]
    list_filter = ['is_public', 'requires_approval', 'created_at']
    search_fields = ['name', 'invite_code', 'created_by__email']
    readonly_fields = ['invite_code', 'created_at', 'updated_at']
    raw_id_fields = ['created_by']
    inlines = [GroupMemberInline]


@admin.register(GroupMember)
class GroupMemberAdmin(admin.ModelAdmin):
    list_display = ['user', 'group', 'role', 'status', 'joined_at']
    list_filter = ['role', 'status']
    search_fields = ['user__email', 'group__name']
    raw_id_fields = ['user', 'group', 'invited_by']


@admin.register(GroupInvite)
class GroupInviteAdmin(admin.ModelAdmin):
    list_display = ['group', 'invited_user', 'email', 'status', 'expires_at']
    list_filter = ['status']
    search_fields = ['group__name', 'email', 'invited_user__email']
    raw_id_fields = ['group', 'invited_by', 'invited_user']


@admin.register(GroupJoinRequest)
class GroupJoinRequestAdmin(admin.ModelAdmin):
    list_display = ['user', 'group', 'status', 'reviewed_by', 'reviewed_at', 'created_at']
    list_filter = ['status']
    search_fields = ['user__email', 'group__name']
    raw_id_fields = ['group', 'user', 'reviewed_by']
