"""
Appointment endpoints.

Administrators manage every booking under ``/api/admin/appointments``.
Patients book for themselves, list their own bookings and cancel them
while they are still upcoming.  Scheduling rules live in
:mod:`core.services.appointments`; these views only validate input and
shape the response.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.models import Appointment
from core.permissions import IsAdminRole, IsPatientRole
from core.serializers.appointments import (
    AppointmentListQuerySerializer,
    AppointmentSerializer,
    AppointmentUpdateSerializer,
    appointment_payload,
)
from core.services import appointments as svc


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_appointments(request):
    """List bookings (filters: status, doctorId, date) or book on a patient's behalf."""
    if request.method == 'GET':
        q = AppointmentListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        items = svc.list_appointments(**q.validated_data)
        return Response({'ok': True, 'data': [appointment_payload(a) for a in items]})

    s = AppointmentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appointment = svc.create_appointment(**s.validated_data)
    return Response({'ok': True, 'data': appointment_payload(appointment)}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_appointment_detail(request, pk: int):
    if request.method == 'GET':
        return Response({'ok': True, 'data': appointment_payload(svc.find_appointment(pk))})

    if request.method == 'PATCH':
        s = AppointmentUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        appointment = svc.update_appointment(pk, dict(s.validated_data), actor=request.user)
        return Response({'ok': True, 'data': appointment_payload(appointment)})

    svc.remove_appointment(pk, actor=request.user)
    return Response({'ok': True, 'id': pk})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def my_appointments(request):
    q = AppointmentListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    items = svc.list_my_appointments(request.user.id, status=q.validated_data.get('status'))
    return Response({'ok': True, 'data': [appointment_payload(a) for a in items]})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPatientRole])
def book_appointment(request):
    """Book for the calling patient; the booking always starts UPCOMING."""
    s = AppointmentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    data = dict(s.validated_data)
    data.pop('user_id', None)
    data.pop('status', None)
    appointment = svc.create_appointment(
        **data, user_id=request.user.id, status=Appointment.STATUS_UPCOMING,
    )
    return Response({'ok': True, 'data': appointment_payload(appointment)}, status=status.HTTP_201_CREATED)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsPatientRole])
def cancel_my_appointment(request, pk: int):
    appointment = svc.cancel_my_appointment(pk, request.user.id)
    return Response({'ok': True, 'data': appointment_payload(appointment)})
