"""
Common abstract base models for the TripShare project.
"""
import uuid

from django.db import models


class UUIDModel(models.Model):
    """
    Abstract base model with a UUID primary key and a creation timestamp.
    Used directly by append-only records.
    """
    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        abstract = True
        ordering = ['-created_at']


class TimestampedModel(UUIDModel):
    """
    Abstract base model that adds a self-updating ``updated_at`` field.
    """
    updated_at = models.DateTimeField(auto_now=True)

    class Meta(UUIDModel.Meta):
        abstract = True
