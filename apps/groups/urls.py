"""
URL configuration for the Groups app.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from apps.groups.views import (
    GroupMemberRoleView,
    GroupMemberView,
    GroupViewSet,
    InviteResponseView,
    JoinRequestReviewView,
    JoinWithCodeView,
)

app_name = 'groups'

router = DefaultRouter(trailing_slash=False)
router.include_root_view = False
router.register(r'groups', GroupViewSet, basename='group')

urlpatterns = [
    path('groups/join/<str:code>', JoinWithCodeView.as_view(), name='group-join'),
    path(
        'groups/join-requests/<uuid:request_id>/approve',
        JoinRequestReviewView.as_view(decision='approve'),
        name='join-request-approve',
    ),
    path(
        'groups/join-requests/<uuid:request_id>/reject',
        JoinRequestReviewView.as_view(decision='reject'),
        name='join-request-reject',
    ),
    path(
        'groups/invites/<str:token>/accept',
        InviteResponseView.as_view(decision='accept'),
        name='invite-accept',
    ),
    path(
        'groups/invites/<str:token>/decline',
        InviteResponseView.as_view(decision='decline'),
        name='invite-decline',
    ),
    path(
        'groups/<uuid:group_id>/members/<uuid:user_id>',
        GroupMemberView.as_view(),
        name='group-member-detail',
    ),
    path(
        'groups/<uuid:group_id>/members/<uuid:user_id>/role',
        GroupMemberRoleView.as_view(),
        name='group-member-role',
    ),
    path('', include(router.urls)),
]
