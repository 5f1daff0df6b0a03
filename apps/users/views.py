"""
Views for the Users app.

All auth responses use camelCase and a nested ``tokens`` object to match the
mobile client.
"""
import logging

from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.users.serializers import (
    AuditLogSerializer,
    LoginSerializer,
    RefreshTokenSerializer,
    RegisterSerializer,
    UserSerializer,
)
from apps.users.services.accounts import AccountService
from apps.users.services.audit import AuditService
from apps.users.services.context import RequestContext

logger = logging.getLogger(__name__)


def _build_auth_response(message, user, tokens, http_status=status.HTTP_200_OK):
    """Helper to build a consistent auth response."""
    return Response(
        {
            'success': True,
            'message': message,
            'user': UserSerializer(user).data,
            'tokens': tokens,
        },
        status=http_status,
    )


class RegisterView(APIView):
    """
    Register a new user account.

    POST /api/v1/auth/register
    Body: {"email": "...", "username": "...", "password": "...", "firstName": "...", "lastName": "..."}
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user, tokens = AccountService().register(
            email=data['email'],
            username=data['username'],
            password=data['password'],
            first_name=data['firstName'],
            last_name=data['lastName'],
            context=RequestContext.from_request(request),
        )
        return _build_auth_response(
            'User registered successfully', user, tokens, status.HTTP_201_CREATED,
        )


class LoginView(APIView):
    """
    Login with email or username and password.

    POST /api/v1/auth/login
    Body: {"emailOrUsername": "...", "password": "..."}
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user, tokens = AccountService().login(
            serializer.validated_data['emailOrUsername'],
            serializer.validated_data['password'],
            context=RequestContext.from_request(request),
        )
        return _build_auth_response('Login successful', user, tokens)


class RefreshView(APIView):
    """
    Exchange a refresh token for a new token pair.

    POST /api/v1/auth/refresh
    Body: {"refreshToken": "..."}
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get_authenticate_header(self, request):
        return 'Bearer'

    def post(self, request):
        serializer = RefreshTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        tokens = AccountService().refresh_tokens(
            serializer.validated_data['refreshToken'],
            context=RequestContext.from_request(request),
        )
        return Response({
            'success': True,
            'message': 'Tokens refreshed successfully',
            'tokens': tokens,
        })


class LogoutView(APIView):
    """
    Revoke one refresh token of the authenticated user.

    POST /api/v1/auth/logout
    Body: {"refreshToken": "..."}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = RefreshTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        AccountService().logout(
            serializer.validated_data['refreshToken'],
            request.user,
            context=RequestContext.from_request(request),
        )
        return Response({'success': True, 'message': 'Logged out successfully'})


class LogoutAllView(APIView):
    """
    Revoke every refresh token of the authenticated user.

    POST /api/v1/auth/logout-all
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        AccountService().logout_all_devices(
            request.user,
            context=RequestContext.from_request(request),
        )
        return Response({'success': True, 'message': 'Logged out from all devices successfully'})


class MeView(APIView):
    """
    GET /api/v1/auth/me
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({'success': True, 'user': UserSerializer(request.user).data})


class ActivityView(APIView):
    """
    Recent audit entries for the authenticated user.

    GET /api/v1/auth/activity?limit=10
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        try:
            limit = int(request.query_params.get('limit', 10))
        except (TypeError, ValueError):
            limit = 10
        limit = max(1, min(limit, 50))

        entries = AuditService().recent_activity(request.user, limit=limit)
        return Response({
            'success': True,
            'data': AuditLogSerializer(entries, many=True).data,
        })
