"""
Users — Views

Auth endpoints: login, refresh, logout, me.

@file users/views.py
"""

import logging

from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from .serializers import CustomTokenObtainPairSerializer, LogoutSerializer, UserReadSerializer
from .services import current_actor

logger = logging.getLogger('wms')


class LoginView(APIView):
    """POST /v1/auth/login — Authenticate and obtain JWT pair."""
    permission_classes = [AllowAny]
    throttle_scope = 'anon'

    def post(self, request):
        serializer = CustomTokenObtainPairSerializer(
            data=request.data, context={'request': request},
        )
        serializer.is_valid(raise_exception=True)
        logger.info('Login succeeded for %s', serializer.user.pk)

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
            except TokenError:
                logger.info('Logout with an invalid refresh token for %s', request.user.pk)

        return Response({'success': True, 'data': None}, status=status.HTTP_200_OK)


class TokenRefreshAPIView(TokenRefreshView):
    """POST /v1/auth/refresh — Rotate refresh token."""
    pass


class MeView(APIView):
    """GET /v1/auth/me — Return the current authenticated user."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        data = UserReadSerializer(request.user).data
        data['actor'] = current_actor(request)
        return Response({'success': True, 'data': data})
