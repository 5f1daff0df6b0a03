"""
Group media records: upload, listing, captions, deletion and download links.

File bytes are handed to the configured :class:`StorageProvider`; this module
only owns the ``GroupMedia`` rows and who may touch them.
"""
import logging
import math

from django.conf import settings
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from apps.groups.permissions import get_group_or_404, require_active_member
from apps.media.filters import GroupMediaFilter
from apps.media.models import GroupMedia
from apps.media.services.storage import get_storage_provider
from apps.media.utils import format_bytes

logger = logging.getLogger(__name__)

CAPTION_MAX_LENGTH = 500


class MediaStore:

    def __init__(self, storage=None):
        self.storage = storage or get_storage_provider()

    def _get_media_or_404(self, media_id):
        media = GroupMedia.objects.select_related('uploaded_by', 'group').filter(pk=media_id).first()
        if media is None:
            raise NotFound('Media not found')
        return media

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def upload_media(self, group_id, user, file, media_type, *, caption='', file_name=None, metadata=None):
        """
        Validate and store one file for ``group_id``.

        Type and size are checked before any call to the storage provider.
        Provider errors propagate unchanged.
        """
        group = get_group_or_404(group_id)
        require_active_member(group, user)

        mime_type = getattr(file, 'content_type', '') or ''
        if not self.storage.is_valid_file_type(mime_type) or not mime_type.startswith(f'{media_type}/'):
            raise ValidationError('Invalid file type')

        max_size = self.storage.max_file_size(media_type)
        if file.size > max_size:
            raise ValidationError(f'File too large. Maximum size is {format_bytes(max_size)}')

        try:
            result = self.storage.upload(
                file,
                file.name,
                folder=f'groups/{group.id}/media',
                resource_type=media_type,
                content_type=mime_type,
            )
        except Exception:
            logger.exception(
                'Media upload failed: type=%s name=%s size=%s mime=%s',
                media_type,
                file.name,
                file.size,
                mime_type,
            )
            raise

        media = GroupMedia.objects.create(
            group=group,
            uploaded_by=user,
            media_type=media_type,
            status=GroupMedia.Status.COMPLETED,
            file_url=result.secure_url,
            thumbnail_url=result.thumbnail_url or '',
            file_name=file_name or file.name,
            file_size=file.size,
            mime_type=mime_type,
            width=result.width,
            height=result.height,
            duration=round(result.duration) if result.duration else None,
            caption=(caption or '').strip(),
            provider_public_id=result.public_id,
            metadata={**result.metadata, **(metadata or {})},
        )
        logger.info('User %s uploaded %s %s to group %s', user.id, media_type, media.id, group.id)
        return media

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def list_media(self, group_id, user, filters=None, page=1, limit=None):
        """
        Newest-first page of completed media.

        Returns ``{"media", "total", "page", "limit", "totalPages"}``.
        """
        limit = settings.TRIPSHARE['MEDIA_PAGE_SIZE'] if limit is None else limit
        if page < 1 or limit < 1 or limit > settings.TRIPSHARE['MEDIA_MAX_PAGE_SIZE']:
            raise ValidationError('Invalid pagination parameters')

        group = get_group_or_404(group_id)
        require_active_member(group, user)

        queryset = (
            group.media.filter(status=GroupMedia.Status.COMPLETED)
            .select_related('uploaded_by')
            .order_by('-created_at')
        )
        filterset = GroupMediaFilter(filters or {}, queryset=queryset)
        if not filterset.is_valid():
            raise ValidationError(filterset.errors)
        queryset = filterset.qs

        total = queryset.count()
        offset = (page - 1) * limit
        return {
            'media': list(queryset[offset:offset + limit]),
            'total': total,
            'page': page,
            'limit': limit,
            'totalPages': math.ceil(total / limit),
        }

    def count_media(self, group_id, user):
        group = get_group_or_404(group_id)
        require_active_member(group, user)
        return group.media.filter(status=GroupMedia.Status.COMPLETED).count()

    def get_media(self, media_id, user):
        media = self._get_media_or_404(media_id)
        require_active_member(media.group, user)
        return media

    def download_url(self, media_id, user):
        media = self.get_media(media_id, user)
        expires_in = settings.TRIPSHARE['SIGNED_URL_TTL_SECONDS']
        if media.provider_public_id:
            url = self.storage.signed_url(media.provider_public_id, expires_in)
        else:
            url = media.file_url
        return {'url': url, 'fileName': media.file_name, 'expiresIn': expires_in}

    # ------------------------------------------------------------------
    # Changes
    # ------------------------------------------------------------------

    def update_caption(self, media_id, user, caption):
        media = self._get_media_or_404(media_id)
        if media.uploaded_by_id != user.id:
            raise PermissionDenied('You can only edit your own media')

        caption = (caption or '').strip()
        if not caption:
            raise ValidationError('Caption cannot be empty')
        if len(caption) > CAPTION_MAX_LENGTH:
            raise ValidationError(f'Caption cannot exceed {CAPTION_MAX_LENGTH} characters')

        media.caption = caption
        media.save(update_fields=['caption', 'updated_at'])
        return media

    def _delete_stored_file(self, media):
        if not media.provider_public_id:
            return
        try:
            self.storage.delete(media.provider_public_id, media.media_type)
        except Exception:
            logger.exception('Failed to delete %s from storage', media.provider_public_id)

    def delete_media(self, media_id, user):
        """Uploader or a group admin may delete; the stored file goes best-effort."""
        media = self._get_media_or_404(media_id)
        # Uploaders keep delete rights on their own media after leaving.
        membership = media.group.members.filter(user=user).first()
        if membership is None:
            raise PermissionDenied('You are not a member of this group')
        if media.uploaded_by_id != user.id and not (membership.is_active and membership.is_admin):
            raise PermissionDenied('You can only delete your own media or you must be a group admin')

        self._delete_stored_file(media)
        media.delete()
        logger.info('Media %s deleted by %s', media_id, user.id)

    def delete_all_for_group(self, group):
        media = list(group.media.all())
        for item in media:
            self._delete_stored_file(item)
        group.media.all().delete()
        return len(media)
