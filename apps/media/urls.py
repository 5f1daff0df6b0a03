"""
URL configuration for the Media app.
"""
from django.urls import path

from apps.media.views import (
    GroupMediaCountView,
    GroupMediaView,
    MediaCaptionView,
    MediaDetailView,
    MediaDownloadView,
)

app_name = 'media'

urlpatterns = [
    path('groups/<uuid:group_id>/media', GroupMediaView.as_view(), name='group-media'),
    path('groups/<uuid:group_id>/media/count', GroupMediaCountView.as_view(), name='group-media-count'),
    path('media/<uuid:media_id>', MediaDetailView.as_view(), name='media-detail'),
    path('media/<uuid:media_id>/caption', MediaCaptionView.as_view(), name='media-caption'),
    path('media/<uuid:media_id>/download', MediaDownloadView.as_view(), name='media-download'),
]
