"""
Views for the Media app.
"""
import logging

from rest_framework import status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.media.serializers import (
    CaptionSerializer,
    GroupMediaSerializer,
    MediaListQuerySerializer,
    MediaUploadSerializer,
)
from apps.media.services.media_store import MediaStore

logger = logging.getLogger(__name__)

FILTER_PARAMS = ('mediaType', 'uploadedBy', 'dateFrom', 'dateTo')


class GroupMediaView(APIView):
    """
    Upload to or list a group's media.

    POST /api/v1/groups/{group_id}/media   (multipart: file, mediaType, caption?, fileName?, metadata?)
    GET  /api/v1/groups/{group_id}/media?page&limit&mediaType&uploadedBy&dateFrom&dateTo
    """
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def post(self, request, group_id):
        serializer = MediaUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        media = MediaStore().upload_media(
            group_id,
            request.user,
            data['file'],
            data['mediaType'],
            caption=data.get('caption', ''),
            file_name=data.get('fileName') or None,
            metadata=data.get('metadata'),
        )
        return Response(
            {
                'success': True,
                'message': 'Media uploaded successfully',
                'data': GroupMediaSerializer(media).data,
            },
            status=status.HTTP_201_CREATED,
        )

    def get(self, request, group_id):
        query = MediaListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        filters = {key: request.query_params[key] for key in FILTER_PARAMS if request.query_params.get(key)}

        result = MediaStore().list_media(
            group_id,
            request.user,
            filters=filters,
            page=query.validated_data['page'],
            limit=query.validated_data.get('limit'),
        )
        result['media'] = GroupMediaSerializer(result['media'], many=True).data
        return Response({'success': True, 'data': result})


class GroupMediaCountView(APIView):
    """
    GET /api/v1/groups/{group_id}/media/count
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, group_id):
        count = MediaStore().count_media(group_id, request.user)
        return Response({'success': True, 'data': {'count': count}})


class MediaDetailView(APIView):
    """
    GET    /api/v1/media/{media_id}
    DELETE /api/v1/media/{media_id}
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, media_id):
        media = MediaStore().get_media(media_id, request.user)
        return Response({'success': True, 'data': GroupMediaSerializer(media).data})

    def delete(self, request, media_id):
        MediaStore().delete_media(media_id, request.user)
        return Response({'success': True, 'message': 'Media deleted successfully'})


class MediaCaptionView(APIView):
    """
    PUT /api/v1/media/{media_id}/caption
    Body: {"caption": "..."}
    """
    permission_classes = [IsAuthenticated]

    def put(self, request, media_id):
        serializer = CaptionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        media = MediaStore().update_caption(media_id, request.user, serializer.validated_data['caption'])
        return Response({
            'success': True,
            'message': 'Caption updated successfully',
            'data': GroupMediaSerializer(media).data,
        })


class MediaDownloadView(APIView):
    """
    GET /api/v1/media/{media_id}/download
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, media_id):
        return Response({'success': True, 'data': MediaStore().download_url(media_id, request.user)})
