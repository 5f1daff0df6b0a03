"""
Storage providers for group media.

The media store only talks to :class:`StorageProvider`; which implementation
is used comes from ``settings.TRIPSHARE['STORAGE_PROVIDER']``.
"""
import logging
import os
import uuid
from dataclasses import dataclass, field

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.utils.module_loading import import_string
from PIL import Image, UnidentifiedImageError

from apps.media.imaging import get_image_dimensions, make_thumbnail

logger = logging.getLogger(__name__)

IMAGE_MIME_TYPES = frozenset({
    'image/jpeg',
    'image/jpg',
    'image/png',
    'image/gif',
    'image/webp',
    'image/heic',
})

VIDEO_MIME_TYPES = frozenset({
    'video/mp4',
    'video/mpeg',
    'video/quicktime',
    'video/avi',
    'video/webm',
})


@dataclass
class UploadResult:
    url: str
    secure_url: str
    public_id: str
    format: str
    resource_type: str
    width: int | None = None
    height: int | None = None
    bytes: int = 0
    duration: float | None = None
    thumbnail_url: str | None = None
    metadata: dict = field(default_factory=dict)


class StorageProvider:
    """Interface every storage backend implements."""

    def upload(self, data, file_name, *, folder, resource_type='image', content_type=None):
        """Store ``data`` (a file-like object) and return an :class:`UploadResult`."""
        raise NotImplementedError

    def delete(self, public_id, resource_type='image'):
        raise NotImplementedError

    def signed_url(self, public_id, expires_in=None):
        """A time-limited URL to download ``public_id``."""
        raise NotImplementedError

    def is_valid_file_type(self, mime_type):
        return mime_type in IMAGE_MIME_TYPES or mime_type in VIDEO_MIME_TYPES

    def max_file_size(self, media_type):
        if media_type == 'video':
            return settings.TRIPSHARE['MAX_VIDEO_BYTES']
        return settings.TRIPSHARE['MAX_IMAGE_BYTES']


def _extension(file_name):
    return os.path.splitext(file_name or '')[1].lower()


def _thumbnail_name(public_id):
    folder, name = os.path.split(public_id)
    stem = os.path.splitext(name)[0]
    return f'{folder}/thumbnails/{stem}.jpg'


class DjangoStorageProvider(StorageProvider):
    """
    Stores files through a Django storage backend: S3 via django-storages
    when a bucket is configured, the local filesystem otherwise.

    Images get their dimensions read and a 300x300 JPEG thumbnail written
    next to them.
    """

    def __init__(self, storage=None):
        self.storage = storage or default_storage

    def upload(self, data, file_name, *, folder, resource_type='image', content_type=None):
        ext = _extension(file_name)
        name = f'{folder}/{uuid.uuid4().hex}{ext}'

        width = height = None
        thumbnail_url = None
        if resource_type == 'image':
            try:
                width, height = get_image_dimensions(data)
                thumb_name = self.storage.save(_thumbnail_name(name), ContentFile(make_thumbnail(data)))
                thumbnail_url = self.storage.url(thumb_name)
            except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
                logger.warning('Could not read image %s for thumbnail: %s', file_name, exc)

        if hasattr(data, 'seek'):
            data.seek(0)
        saved_name = self.storage.save(name, data)
        url = self.storage.url(saved_name)
        size = self.storage.size(saved_name)

        logger.info('Stored %s (%d bytes) as %s', file_name, size, saved_name)
        return UploadResult(
            url=url,
            secure_url=url,
            public_id=saved_name,
            format=ext.lstrip('.'),
            resource_type=resource_type,
            width=width,
            height=height,
            bytes=size,
            thumbnail_url=thumbnail_url,
            metadata={'originalName': file_name, 'contentType': content_type or ''},
        )

    def delete(self, public_id, resource_type='image'):
        self.storage.delete(public_id)
        if resource_type == 'image':
            self.storage.delete(_thumbnail_name(public_id))

    def signed_url(self, public_id, expires_in=None):
        expires_in = expires_in or settings.TRIPSHARE['SIGNED_URL_TTL_SECONDS']
        if getattr(self.storage, 'querystring_auth', False):
            # S3Storage signs URLs itself
            return self.storage.url(public_id, expire=expires_in)
        return self.storage.url(public_id)


class InMemoryStorageProvider(StorageProvider):
    """Keeps uploaded bytes in a dict. Used by the test settings."""

    base_url = 'https://storage.invalid/tripshare/'

    def __init__(self):
        self.objects = {}
        self.deleted = []

    def upload(self, data, file_name, *, folder, resource_type='image', content_type=None):
        if hasattr(data, 'seek'):
            data.seek(0)
        content = data.read() if hasattr(data, 'read') else bytes(data)
        ext = _extension(file_name)
        public_id = f'{folder}/{uuid.uuid4().hex}{ext}'
        self.objects[public_id] = content

        url = f'{self.base_url}{public_id}'
        return UploadResult(
            url=url,
            secure_url=url,
            public_id=public_id,
            format=ext.lstrip('.'),
            resource_type=resource_type,
            bytes=len(content),
            metadata={'originalName': file_name, 'contentType': content_type or ''},
        )

    def delete(self, public_id, resource_type='image'):
        self.objects.pop(public_id, None)
        self.deleted.append(public_id)

    def signed_url(self, public_id, expires_in=None):
        expires_in = expires_in or settings.TRIPSHARE['SIGNED_URL_TTL_SECONDS']
        return f'{self.base_url}{public_id}?expires_in={expires_in}'


def get_storage_provider():
    """Instantiate the provider named by ``TRIPSHARE['STORAGE_PROVIDER']``."""
    return import_string(settings.TRIPSHARE['STORAGE_PROVIDER'])()
