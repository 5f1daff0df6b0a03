"""
Serializers for the Media app.
All output uses camelCase to match the mobile client.
"""
from rest_framework import serializers

from apps.media.models import GroupMedia
from apps.users.serializers import UserSummarySerializer


class GroupMediaSerializer(serializers.ModelSerializer):
    groupId = serializers.CharField(source='group_id', read_only=True)
    mediaType = serializers.CharField(source='media_type', read_only=True)
    fileUrl = serializers.CharField(source='file_url', read_only=True)
    thumbnailUrl = serializers.SerializerMethodField()
    fileName = serializers.CharField(source='file_name', read_only=True)
    fileSize = serializers.IntegerField(source='file_size', read_only=True)
    formattedFileSize = serializers.ReadOnlyField(source='formatted_file_size')
    mimeType = serializers.CharField(source='mime_type', read_only=True)
    formattedDuration = serializers.ReadOnlyField(source='formatted_duration')
    uploadedBy = UserSummarySerializer(source='uploaded_by', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = GroupMedia
        fields = [
            'id', 'groupId', 'mediaType', 'status', 'fileUrl', 'thumbnailUrl',
            'fileName', 'fileSize', 'formattedFileSize', 'mimeType', 'width',
            'height', 'duration', 'formattedDuration', 'caption', 'metadata',
            'uploadedBy', 'createdAt', 'updatedAt',
        ]
        read_only_fields = fields

    def get_thumbnailUrl(self, obj):
        return obj.thumbnail_url or None


class MediaUploadSerializer(serializers.Serializer):
    file = serializers.FileField(
        error_messages={'required': 'No file provided'},
    )
    mediaType = serializers.ChoiceField(choices=GroupMedia.MediaType.choices)
    caption = serializers.CharField(required=False, allow_blank=True, max_length=500)
    fileName = serializers.CharField(required=False, allow_blank=True, max_length=255)
    metadata = serializers.JSONField(required=False, binary=True)

    def validate_metadata(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError('Metadata must be a JSON object')
        return value


class MediaListQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(default=1)
    limit = serializers.IntegerField(required=False)


class CaptionSerializer(serializers.Serializer):
    caption = serializers.CharField(allow_blank=True, trim_whitespace=False)
