"""
Account endpoints: the caller's own profile and administrator account
management.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.permissions import IsAdminRole
from core.serializers.users import (
    CreatePatientSerializer,
    CreateStaffSerializer,
    UpdateMyProfileSerializer,
    UpdateRoleSerializer,
    UpdateUserAdminSerializer,
    user_payload,
)
from core.services import users as svc


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def me(request):
    if request.method == 'GET':
        return Response({'ok': True, 'data': user_payload(request.user)})

    s = UpdateMyProfileSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    user = svc.update_me(request.user, dict(s.validated_data))
    return Response({'ok': True, 'data': user_payload(user)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_users(request):
    return Response({'ok': True, 'data': [user_payload(u) for u in svc.list_users()]})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_create_staff(request):
    s = CreateStaffSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = svc.create_staff(**s.validated_data, actor=request.user)
    return Response({'ok': True, 'data': user_payload(user)}, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_create_patient(request):
    s = CreatePatientSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = svc.create_patient(**s.validated_data, actor=request.user)
    return Response({'ok': True, 'data': user_payload(user)}, status=status.HTTP_201_CREATED)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_update_patient(request, pk: int):
    s = UpdateUserAdminSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    user = svc.update_patient(pk, dict(s.validated_data), actor=request.user)
    return Response({'ok': True, 'data': user_payload(user)})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_confirm_user(request, pk: int):
    user = svc.confirm_user(pk, actor=request.user)
    return Response({'ok': True, 'data': user_payload(user)})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_update_role(request, pk: int):
    s = UpdateRoleSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = svc.update_role(pk, s.validated_data['role'], actor=request.user)
    return Response({'ok': True, 'data': user_payload(user)})
