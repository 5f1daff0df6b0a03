"""
Admin configuration for the Media app.
"""
from django.contrib import admin

from apps.media.models import GroupMedia


@admin.register(GroupMedia)
class GroupMediaAdmin(admin.ModelAdmin):
    list_display = ['file_name', 'group', 'uploaded_by', 'media_type', 'status', 'file_size', 'created_at']
    list_filter = ['media_type', 'status', 'created_at']
    search_fields = ['file_name', 'caption', 'group__name', 'uploaded_by__email']
    raw_id_fields = ['group', 'uploaded_by']
    readonly_fields = ['provider_public_id', 'created_at', 'updated_at']
