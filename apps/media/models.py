"""
Models for the Media app.
"""
from django.conf import settings
from django.db import models

from apps.media.utils import format_bytes, format_duration
from common.models import TimestampedModel


class GroupMedia(TimestampedModel):
    """
    A photo or video shared with a group. The bytes live with the storage
    provider; this row keeps the URLs and what we know about the file.
    """
    class MediaType(models.TextChoices):
        IMAGE = 'image', 'Image'
        VIDEO = 'video', 'Video'

    class Status(models.TextChoices):
        UPLOADING = 'uploading', 'Uploading'
        COMPLETED = 'completed', 'Completed'
        FAILED = 'failed', 'Failed'

    group = models.ForeignKey(
        'groups.Group',
        on_delete=models.CASCADE,
        related_name='media',
    )
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='uploaded_media',
    )
    media_type = models.CharField(max_length=10, choices=MediaType.choices)
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.UPLOADING,
        db_index=True,
    )
    file_url = models.URLField(max_length=1000)
    thumbnail_url = models.URLField(max_length=1000, blank=True, default='')
    file_name = models.CharField(max_length=255, blank=True, default='')
    file_size = models.PositiveBigIntegerField(default=0)
    mime_type = models.CharField(max_length=100, blank=True, default='')
    width = models.PositiveIntegerField(null=True, blank=True)
    height = models.PositiveIntegerField(null=True, blank=True)
    duration = models.PositiveIntegerField(null=True, blank=True, help_text='Seconds, videos only.')
    caption = models.CharField(max_length=500, blank=True, default='')
    provider_public_id = models.CharField(max_length=500, blank=True, default='')
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = 'group_media'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['group', 'status', '-created_at']),
        ]

    def __str__(self):
        return f'{self.media_type} {self.file_name or self.id} in {self.group_id}'

    @property
    def formatted_file_size(self):
        return format_bytes(self.file_size) if self.file_size else ''

    @property
    def formatted_duration(self):
        return format_duration(self.duration)
