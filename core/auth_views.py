"""
Authentication views.

Login exchanges an e-mail/password pair for a simplejwt access/refresh
pair.  Account rules (confirmation, status) are enforced in
:func:`core.services.users.login`; the view only issues the tokens.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.tokens import RefreshToken

from core.serializers.auth import LoginSerializer, RegisterSerializer
from core.serializers.users import user_payload
from core.services import users as svc


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = svc.login(request, s.validated_data['email'], s.validated_data['password'])
    refresh = RefreshToken.for_user(user)
    return Response({
        'ok': True,
        'data': {
            'accessToken': str(refresh.access_token),
            'refreshToken': str(refresh),
            'user': user_payload(user),
        },
    })

# ScopedRateThrottle reads throttle_scope from the wrapped APIView class
login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
def register_view(request):
    """Public signup; the account stays PENDING until an administrator confirms it."""
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = svc.register(**s.validated_data)
    return Response({'ok': True, 'data': user_payload(user)}, status=status.HTTP_201_CREATED)

register_view.cls.throttle_scope = 'register'


@api_view(['POST'])
@permission_classes([AllowAny])
def refresh_view(request):
    """Return a new access token for a valid refresh token."""
    s = TokenRefreshSerializer(data={'refresh': request.data.get('refreshToken') or request.data.get('refresh')})
    try:
        s.is_valid(raise_exception=True)
    except TokenError as e:
        raise InvalidToken(e.args[0])
    data = {'accessToken': s.validated_data['access']}
    if 'refresh' in s.validated_data:
        data['refreshToken'] = s.validated_data['refresh']
    return Response({'ok': True, 'data': data})
