"""
Serializers for the Users app.

All serializers use camelCase field names to match the mobile client.
"""
import re

from django.contrib.auth import get_user_model
from rest_framework import serializers

from apps.users.models import AuditLog
from apps.users.services.crypto import (
    PASSWORD_MAX_LENGTH,
    PASSWORD_MESSAGE,
    PASSWORD_MIN_LENGTH,
    is_strong_password,
)

User = get_user_model()

USERNAME_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+$')


class UserSerializer(serializers.ModelSerializer):
    """
    Read-only serializer for User objects.
    Outputs camelCase field names for the mobile client.
    """
    firstName = serializers.CharField(source='first_name', read_only=True)
    lastName = serializers.CharField(source='last_name', read_only=True)
    emailVerified = serializers.BooleanField(source='email_verified', read_only=True)
    isActive = serializers.BooleanField(source='is_active', read_only=True)
    lastLoginAt = serializers.DateTimeField(source='last_login', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'username',
            'firstName',
            'lastName',
            'emailVerified',
            'isActive',
            'lastLoginAt',
            'createdAt',
        ]
        read_only_fields = fields


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact user representation embedded in group and media payloads."""
    firstName = serializers.CharField(source='first_name', read_only=True)
    lastName = serializers.CharField(source='last_name', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'username', 'firstName', 'lastName']
        read_only_fields = fields


class RegisterSerializer(serializers.Serializer):
    """
    Serializer for user registration.
    Accepts camelCase from the mobile client.
    """
    email = serializers.EmailField()
    username = serializers.CharField(min_length=3, max_length=30)
    password = serializers.CharField(
        write_only=True,
        min_length=PASSWORD_MIN_LENGTH,
        max_length=PASSWORD_MAX_LENGTH,
        style={'input_type': 'password'},
    )
    firstName = serializers.CharField(max_length=50)
    lastName = serializers.CharField(max_length=50)

    def validate_username(self, value):
        value = value.strip()
        if not USERNAME_PATTERN.match(value):
            raise serializers.ValidationError(
                'Username can only contain letters, numbers, underscores, and hyphens'
            )
        return value

    def validate_password(self, value):
        if not is_strong_password(value):
            raise serializers.ValidationError(PASSWORD_MESSAGE)
        return value


class LoginSerializer(serializers.Serializer):
    emailOrUsername = serializers.CharField(
        error_messages={
            'required': 'Email or username is required',
            'blank': 'Email or username is required',
        },
    )
    password = serializers.CharField(
        trim_whitespace=False,
        error_messages={
            'required': 'Password is required',
            'blank': 'Password is required',
        },
    )


class RefreshTokenSerializer(serializers.Serializer):
    refreshToken = serializers.CharField(
        error_messages={
            'required': 'Refresh token is required',
            'blank': 'Refresh token is required',
        },
    )


class AuditLogSerializer(serializers.ModelSerializer):
    ipAddress = serializers.CharField(source='ip_address', read_only=True, allow_null=True)
    userAgent = serializers.CharField(source='user_agent', read_only=True)
    errorMessage = serializers.CharField(source='error_message', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'action', 'details', 'ipAddress', 'userAgent', 'success', 'errorMessage', 'createdAt']
        read_only_fields = fields
