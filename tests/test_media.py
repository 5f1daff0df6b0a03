"""Media uploads, listing, captions, deletion and the storage providers."""
from datetime import timedelta
from io import BytesIO
from unittest import mock

import pytest
from django.core.files.storage import FileSystemStorage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone
from PIL import Image
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from apps.groups.models import GroupMember
from apps.groups.services.directory import GroupDirectory
from apps.groups.services.membership import MembershipService
from apps.media.imaging import get_image_dimensions, make_thumbnail
from apps.media.models import GroupMedia
from apps.media.services.media_store import MediaStore
from apps.media.services.storage import DjangoStorageProvider
from tests.conftest import add_member, auth_client, create_group

MB = 1024 * 1024


def _png_bytes(size=(600, 400), color='red'):
    out = BytesIO()
    Image.new('RGB', size, color).save(out, 'PNG')
    return out.getvalue()


def _file(name='beach.jpg', content=b'fake-bytes', content_type='image/jpeg', size=None):
    upload = SimpleUploadedFile(name, content, content_type=content_type)
    if size is not None:
        upload.size = size
    return upload


def _message(exc_info):
    detail = exc_info.value.detail
    if isinstance(detail, list):
        detail = detail[0]
    return str(detail)


@pytest.fixture
def store(storage):
    return MediaStore(storage=storage)


@pytest.fixture
def group(owner, member):
    group = create_group(owner)
    add_member(group, member)
    return group


@pytest.mark.django_db
class TestUpload:

    def test_oversized_video_rejected_before_storage(self, store, storage, group, member):
        video = _file('trip.mp4', content_type='video/mp4', size=150 * MB)
        with mock.patch.object(storage, 'upload', wraps=storage.upload) as upload:
            with pytest.raises(ValidationError) as exc_info:
                store.upload_media(group.id, member, video, 'video')

        assert _message(exc_info) == 'File too large. Maximum size is 100 MB'
        upload.assert_not_called()
        assert not GroupMedia.objects.exists()

    def test_video_within_limit_completes(self, store, storage, group, member):
        video = _file('trip.mp4', content=b'0' * 64, content_type='video/mp4', size=5 * MB)
        media = store.upload_media(group.id, member, video, 'video', caption='  Sunset  ')

        assert media.status == GroupMedia.Status.COMPLETED
        assert media.media_type == GroupMedia.MediaType.VIDEO
        assert media.file_size == 5 * MB
        assert media.formatted_file_size == '5 MB'
        assert media.caption == 'Sunset'
        assert media.file_name == 'trip.mp4'
        assert media.provider_public_id in storage.objects
        assert media.provider_public_id.startswith(f'groups/{group.id}/media/')

    def test_image_limit_is_ten_megabytes(self, store, group, member):
        photo = _file(size=10 * MB + 1)
        with pytest.raises(ValidationError) as exc_info:
            store.upload_media(group.id, member, photo, 'image')
        assert _message(exc_info) == 'File too large. Maximum size is 10 MB'

    def test_unsupported_mime_type(self, store, group, member):
        with pytest.raises(ValidationError) as exc_info:
            store.upload_media(group.id, member, _file('notes.pdf', content_type='application/pdf'), 'image')
        assert _message(exc_info) == 'Invalid file type'

    def test_mime_type_must_match_media_type(self, store, group, member):
        with pytest.raises(ValidationError):
            store.upload_media(group.id, member, _file('clip.mp4', content_type='video/mp4'), 'image')

    def test_non_member_cannot_upload(self, store, group, outsider):
        with pytest.raises(PermissionDenied):
            store.upload_media(group.id, outsider, _file(), 'image')

    def test_provider_failure_propagates(self, store, storage, group, member):
        with mock.patch.object(storage, 'upload', side_effect=RuntimeError('bucket unavailable')):
            with pytest.raises(RuntimeError):
                store.upload_media(group.id, member, _file(), 'image')
        assert not GroupMedia.objects.exists()

    def test_client_metadata_is_kept(self, store, group, member):
        media = store.upload_media(
            group.id, member, _file(), 'image',
            file_name='renamed.jpg',
            metadata={'location': 'Porto'},
        )
        assert media.file_name == 'renamed.jpg'
        assert media.metadata['location'] == 'Porto'
        assert media.metadata['originalName'] == 'beach.jpg'


@pytest.mark.django_db
class TestListing:

    def _seed(self, store, group, owner, member):
        now = timezone.now()
        items = [
            store.upload_media(group.id, owner, _file('a.jpg'), 'image'),
            store.upload_media(group.id, member, _file('b.mp4', content_type='video/mp4'), 'video'),
            store.upload_media(group.id, member, _file('c.png', content_type='image/png'), 'image'),
        ]
        for age, media in zip((3, 2, 1), items):
            GroupMedia.objects.filter(pk=media.pk).update(created_at=now - timedelta(days=age))
        return items

    def test_pages_newest_first(self, store, group, owner, member):
        a, b, c = self._seed(store, group, owner, member)

        first = store.list_media(group.id, member, page=1, limit=2)
        assert [m.id for m in first['media']] == [c.id, b.id]
        assert first['total'] == 3
        assert first['totalPages'] == 2

        second = store.list_media(group.id, member, page=2, limit=2)
        assert [m.id for m in second['media']] == [a.id]

    def test_filters(self, store, group, owner, member):
        a, b, c = self._seed(store, group, owner, member)

        images = store.list_media(group.id, member, filters={'mediaType': 'image'})
        assert {m.id for m in images['media']} == {a.id, c.id}

        mine = store.list_media(group.id, member, filters={'uploadedBy': str(member.id)})
        assert {m.id for m in mine['media']} == {b.id, c.id}

        since = (timezone.now() - timedelta(days=2, hours=12)).isoformat()
        recent = store.list_media(group.id, member, filters={'dateFrom': since})
        assert {m.id for m in recent['media']} == {b.id, c.id}

        until = (timezone.now() - timedelta(days=2, hours=12)).isoformat()
        older = store.list_media(group.id, member, filters={'dateTo': until})
        assert [m.id for m in older['media']] == [a.id]

    def test_incomplete_media_hidden(self, store, group, member):
        media = store.upload_media(group.id, member, _file(), 'image')
        GroupMedia.objects.filter(pk=media.pk).update(status=GroupMedia.Status.FAILED)
        assert store.list_media(group.id, member)['total'] == 0
        assert store.count_media(group.id, member) == 0

    @pytest.mark.parametrize('page,limit', [(0, 20), (1, 0), (1, 101)])
    def test_invalid_pagination(self, store, group, member, page, limit):
        with pytest.raises(ValidationError) as exc_info:
            store.list_media(group.id, member, page=page, limit=limit)
        assert _message(exc_info) == 'Invalid pagination parameters'

    def test_non_member_cannot_list(self, store, group, outsider):
        with pytest.raises(PermissionDenied):
            store.list_media(group.id, outsider)


@pytest.mark.django_db
class TestChanges:

    def test_caption_rules(self, store, group, owner, member):
        media = store.upload_media(group.id, member, _file(), 'image')

        assert store.update_caption(media.id, member, ' Harbour ').caption == 'Harbour'

        with pytest.raises(ValidationError) as exc_info:
            store.update_caption(media.id, member, '   ')
        assert _message(exc_info) == 'Caption cannot be empty'

        with pytest.raises(ValidationError):
            store.update_caption(media.id, member, 'x' * 501)

        with pytest.raises(PermissionDenied) as exc_info:
            store.update_caption(media.id, owner, 'Mine now')
        assert _message(exc_info) == 'You can only edit your own media'

    def test_member_cannot_delete_others_media(self, store, group, owner, member):
        media = store.upload_media(group.id, owner, _file(), 'image')
        with pytest.raises(PermissionDenied):
            store.delete_media(media.id, member)
        assert GroupMedia.objects.filter(pk=media.pk).exists()

    def test_uploader_deletes(self, store, storage, group, member):
        media = store.upload_media(group.id, member, _file(), 'image')
        store.delete_media(media.id, member)
        assert not GroupMedia.objects.filter(pk=media.pk).exists()
        assert storage.deleted == [media.provider_public_id]

    def test_uploader_deletes_after_leaving(self, store, group, member):
        media = store.upload_media(group.id, member, _file(), 'image')
        MembershipService().leave_group(group.id, member)

        store.delete_media(media.id, member)
        assert not GroupMedia.objects.filter(pk=media.pk).exists()

    def test_former_admin_cannot_delete_others_media(self, store, group, member, outsider):
        add_member(group, outsider, role=GroupMember.Role.ADMIN)
        media = store.upload_media(group.id, member, _file(), 'image')
        GroupMember.objects.filter(group=group, user=outsider).update(status=GroupMember.Status.LEFT)

        with pytest.raises(PermissionDenied):
            store.delete_media(media.id, outsider)
        assert GroupMedia.objects.filter(pk=media.pk).exists()

    def test_stranger_cannot_delete(self, store, group, member, outsider):
        media = store.upload_media(group.id, member, _file(), 'image')
        with pytest.raises(PermissionDenied) as exc_info:
            store.delete_media(media.id, outsider)
        assert _message(exc_info) == 'You are not a member of this group'

    def test_admin_delete_survives_storage_error(self, store, storage, group, member, outsider):
        add_member(group, outsider, role=GroupMember.Role.ADMIN)
        media = store.upload_media(group.id, member, _file(), 'image')

        with mock.patch.object(storage, 'delete', side_effect=RuntimeError('gone')):
            store.delete_media(media.id, outsider)
        assert not GroupMedia.objects.filter(pk=media.pk).exists()

    def test_missing_media(self, store, member):
        with pytest.raises(NotFound):
            store.get_media('00000000-0000-0000-0000-000000000000', member)

    def test_download_url(self, store, group, member):
        media = store.upload_media(group.id, member, _file(), 'image')
        link = store.download_url(media.id, member)
        assert link['fileName'] == 'beach.jpg'
        assert link['expiresIn'] == 3600
        assert link['url'].endswith(f'{media.provider_public_id}?expires_in=3600')

    def test_group_delete_removes_stored_files(self, store, storage, group, owner, member):
        media = store.upload_media(group.id, member, _file(), 'image')
        GroupDirectory(media_store=store).delete(group.id, owner)
        assert storage.deleted == [media.provider_public_id]
        assert not GroupMedia.objects.exists()


@pytest.mark.django_db
class TestMediaApi:

    def test_multipart_upload_and_read(self, group, member):
        client = auth_client(member)
        resp = client.post(
            f'/api/v1/groups/{group.id}/media',
            {'file': _file(), 'mediaType': 'image', 'caption': 'Pier', 'metadata': '{"album": "day1"}'},
            format='multipart',
        )
        assert resp.status_code == 201, resp.data
        data = resp.json()['data']
        assert data['caption'] == 'Pier'
        assert data['uploadedBy']['username'] == member.username
        assert data['metadata']['album'] == 'day1'

        resp = client.get(f'/api/v1/media/{data["id"]}')
        assert resp.status_code == 200

        resp = client.get(f'/api/v1/groups/{group.id}/media/count')
        assert resp.json()['data']['count'] == 1

        resp = client.get(f'/api/v1/groups/{group.id}/media', {'page': 1, 'limit': 10})
        body = resp.json()['data']
        assert body['total'] == 1
        assert body['totalPages'] == 1

    def test_upload_without_file(self, group, member):
        resp = auth_client(member).post(
            f'/api/v1/groups/{group.id}/media',
            {'mediaType': 'image'},
            format='multipart',
        )
        assert resp.status_code == 400
        assert resp.json()['message'] == 'No file provided'

    def test_caption_endpoint(self, group, member):
        media = MediaStore().upload_media(group.id, member, _file(), 'image')
        resp = auth_client(member).put(f'/api/v1/media/{media.id}/caption', {'caption': 'Old town'}, format='json')
        assert resp.status_code == 200
        assert resp.json()['data']['caption'] == 'Old town'

    def test_outsider_gets_403(self, group, member, outsider):
        media = MediaStore().upload_media(group.id, member, _file(), 'image')
        resp = auth_client(outsider).get(f'/api/v1/media/{media.id}/download')
        assert resp.status_code == 403


class TestImaging:

    def test_dimensions_and_thumbnail(self):
        data = BytesIO(_png_bytes((900, 300)))
        assert get_image_dimensions(data) == (900, 300)

        thumb = Image.open(BytesIO(make_thumbnail(data)))
        assert thumb.format == 'JPEG'
        assert thumb.size == (300, 100)

    def test_filesystem_provider(self, tmp_path):
        provider = DjangoStorageProvider(FileSystemStorage(location=tmp_path, base_url='/media/'))
        upload = SimpleUploadedFile('view.png', _png_bytes(), content_type='image/png')

        result = provider.upload(upload, 'view.png', folder='groups/g1/media', content_type='image/png')
        assert (result.width, result.height) == (600, 400)
        assert result.public_id.startswith('groups/g1/media/')
        assert result.thumbnail_url.startswith('/media/groups/g1/media/thumbnails/')
        assert (tmp_path / result.public_id).exists()

        provider.delete(result.public_id)
        assert not (tmp_path / result.public_id).exists()
        assert not list((tmp_path / 'groups/g1/media/thumbnails').iterdir())

    def test_unreadable_image_still_stored(self, tmp_path):
        provider = DjangoStorageProvider(FileSystemStorage(location=tmp_path, base_url='/media/'))
        upload = SimpleUploadedFile('broken.jpg', b'not an image', content_type='image/jpeg')

        result = provider.upload(upload, 'broken.jpg', folder='groups/g1/media')
        assert result.width is None
        assert result.thumbnail_url is None
        assert (tmp_path / result.public_id).read_bytes() == b'not an image'

    def test_oversized_image_skips_thumbnail(self, tmp_path, monkeypatch):
        monkeypatch.setattr(Image, 'MAX_IMAGE_PIXELS', 1000)
        provider = DjangoStorageProvider(FileSystemStorage(location=tmp_path, base_url='/media/'))
        upload = SimpleUploadedFile('huge.png', _png_bytes(), content_type='image/png')

        result = provider.upload(upload, 'huge.png', folder='groups/g1/media', content_type='image/png')
        assert result.width is None
        assert result.thumbnail_url is None
        assert (tmp_path / result.public_id).exists()
