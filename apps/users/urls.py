"""
URL configuration for the Users app.
"""
from django.urls import path

from apps.users.views import (
    ActivityView,
    LoginView,
    LogoutAllView,
    LogoutView,
    MeView,
    RefreshView,
    RegisterView,
)

app_name = 'users'

urlpatterns = [
    path('auth/register', RegisterView.as_view(), name='register'),
    path('auth/login', LoginView.as_view(), name='login'),
    path('auth/refresh', RefreshView.as_view(), name='refresh'),
    path('auth/logout', LogoutView.as_view(), name='logout'),
    path('auth/logout-all', LogoutAllView.as_view(), name='logout-all'),
    path('auth/me', MeView.as_view(), name='me'),
    path('auth/activity', ActivityView.as_view(), name='activity'),
]
