"""
Users — Views

Auth endpoints (register, login, refresh, logout, me) and the farm
staff ViewSet.

@file users/views.py
"""

import logging

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from core.constants import AUDIT_ACTION_LOGIN, AUDIT_ACTION_LOGOUT, UUID_LOOKUP_REGEX
from core.exceptions import InvalidInputError
from core.services import AuditService

from .models import User
from .permissions import IsFarmMember, IsFarmOwner
from .serializers import (
    ChangeStatusSerializer,
    CustomTokenObtainPairSerializer,
    LogoutSerializer,
    RegisterSerializer,
    StaffCreateSerializer,
    StaffUpdateSerializer,
    UserReadSerializer,
)
from .services import AuthService, UserService

logger = logging.getLogger('farmtrack')


def _token_payload(user):
    refresh = RefreshToken.for_user(user)
    return {
        'access': str(refresh.access_token),
        'refresh': str(refresh),
        'user': UserReadSerializer(user).data,
    }


# ---------------------------------------------------------------------------
# Auth views
# ---------------------------------------------------------------------------

class RegisterView(APIView):
    """POST /v1/auth/register — Create a farm with its owner and return a JWT pair."""
    permission_classes = [AllowAny]
    throttle_scope = 'anon'

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserService.register_owner(**serializer.validated_data)
        return Response(
            {'success': True, 'data': _token_payload(user)},
            status=status.HTTP_201_CREATED,
        )


class LoginView(APIView):
    """POST /v1/auth/login — Authenticate and obtain JWT pair."""
    permission_classes = [AllowAny]
    throttle_scope = 'anon'

    def post(self, request):
        serializer = CustomTokenObtainPairSerializer(
            data=request.data, context={'request': request},
        )
        serializer.is_valid(raise_exception=True)

        AuthService.log_auth_event(
            action=AUDIT_ACTION_LOGIN,
            user=serializer.user,
            ip_address=AuditService.get_client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', ''),
        )

        return Response({
            'success': True,
            'data': {
                'access': serializer.validated_data['access'],
                'refresh': serializer.validated_data['refresh'],
                'user': serializer.validated_data['user'],
            },
        })


class LogoutView(APIView):
    """POST /v1/auth/logout — Blacklist the refresh token."""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = LogoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        refresh_token = serializer.validated_data.get('refresh')
        if refresh_token:
            try:
                RefreshToken(refresh_token).blacklist()
            except TokenError as exc:
                raise InvalidInputError(detail=f'Invalid refresh token: {exc}')

        AuthService.log_auth_event(
            action=AUDIT_ACTION_LOGOUT,
            user=request.user,
            ip_address=AuditService.get_client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', ''),
        )

        return Response({'success': True, 'data': None}, status=status.HTTP_200_OK)


class TokenRefreshAPIView(TokenRefreshView):
    """POST /v1/auth/refresh — Rotate refresh token."""
    pass


class MeView(APIView):
    """GET /v1/auth/me — Return the current authenticated user."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({
            'success': True,
            'data': UserReadSerializer(request.user).data,
        })


# ---------------------------------------------------------------------------
# Farm staff ViewSet
# ---------------------------------------------------------------------------

class StaffViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """
    Members of the caller's farm. Every member may list; only the owner
    adds, edits, suspends or removes staff.
    """

    permission_classes = [IsFarmMember, IsFarmOwner]
    lookup_value_regex = UUID_LOOKUP_REGEX
    filterset_fields = ['role', 'status']
    search_fields = ['email', 'first_name', 'last_name']
    ordering_fields = ['created_at', 'first_name', 'last_name', 'role']
    ordering = ['-created_at']
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_queryset(self):
        return (
            User.objects
            .filter(farm_id=self.request.user.farm_id, is_deleted=False)
            .select_related('farm')
        )

    def get_serializer_class(self):
        if self.action == 'create':
            return StaffCreateSerializer
        if self.action == 'partial_update':
            return StaffUpdateSerializer
        return UserReadSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserService.add_staff(
            farm_id=request.user.farm_id,
            actor=request.user,
            **serializer.validated_data,
        )
        return Response(UserReadSerializer(user).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserService.update_user(
            user_id=self.get_object().pk,
            farm_id=request.user.farm_id,
            actor=request.user,
            **serializer.validated_data,
        )
        return Response(UserReadSerializer(user).data)

    def perform_destroy(self, instance):
        UserService.remove_staff(
            user_id=instance.pk,
            farm_id=self.request.user.farm_id,
            actor=self.request.user,
        )

    @action(detail=True, methods=['post'], url_path='change-status')
    def change_status(self, request, pk=None):
        serializer = ChangeStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserService.change_status(
            user_id=self.get_object().pk,
            farm_id=request.user.farm_id,
            new_status=serializer.validated_data['status'],
            actor=request.user,
            reason=serializer.validated_data.get('reason', ''),
        )
        return Response({'success': True, 'data': UserReadSerializer(user).data})
