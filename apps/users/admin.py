"""
Admin configuration for the Users app.
"""
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from apps.users.models import AuditLog, RefreshToken, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = [
        'email',
        'username',
        'first_name',
        'last_name',
        'is_active',
        'email_verified',
        'failed_login_attempts',
        'locked_until',
        'created_at',
    ]
    list_filter = ['is_active', 'is_staff', 'email_verified', 'created_at']
    search_fields = ['email', 'username', 'first_name', 'last_name']
    ordering = ['-created_at']

    fieldsets = BaseUserAdmin.fieldsets + (
        (
            'Account Security',
            {
                'fields': (
                    'email_verified',
                    'failed_login_attempts',
                    'locked_until',
                ),
            },
        ),
    )

    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        (
            'Profile',
            {
                'fields': (
                    'email',
                    'first_name',
                    'last_name',
                ),
            },
        ),
    )


@admin.register(RefreshToken)
class RefreshTokenAdmin(admin.ModelAdmin):
    list_display = ['user', 'jti', 'expires_at', 'is_revoked', 'ip_address', 'created_at']
    list_filter = ['is_revoked']
    search_fields = ['user__email', 'jti']
    raw_id_fields = ['user']
    exclude = ['token']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['action', 'user', 'success', 'ip_address', 'created_at']
    list_filter = ['action', 'success']
    search_fields = ['user__email', 'details', 'ip_address']
    readonly_fields = [f.name for f in AuditLog._meta.fields]
