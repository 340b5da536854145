"""
Laboratory endpoints.

Three audiences share the lab workflow:

* doctors order tests and follow their own requests
  (``/api/doctor/lab-requests``);
* lab staff, nurses and administrators work the queue, recording sample
  collection and results (``/api/lab/requests``);
* patients read their completed reports (``/api/lab/reports``).

Requests are addressed by their human-readable code rather than the
numeric id.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.permissions import IsDoctorRole, IsLabStaffRole, IsPatientRole
from core.serializers.lab import (
    CompleteLabRequestSerializer,
    CreateLabRequestSerializer,
    LabListQuerySerializer,
    MarkSampleCollectedSerializer,
    lab_request_payload,
)
from core.services import lab as svc


def _status_filter(request):
    q = LabListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return q.validated_data.get('status')


# ---------------------------------------------------------------------
# Doctor
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def doctor_lab_requests(request):
    if request.method == 'GET':
        items = svc.list_doctor_requests(request.user.id, status=_status_filter(request))
        return Response({'ok': True, 'data': [lab_request_payload(r) for r in items]})

    s = CreateLabRequestSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    req = svc.create_request(doctor_user_id=request.user.id, **s.validated_data)
    return Response({'ok': True, 'data': lab_request_payload(req)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def doctor_lab_request_detail(request, code: str):
    req = svc.get_doctor_request(request.user.id, code)
    return Response({'ok': True, 'data': lab_request_payload(req)})


# ---------------------------------------------------------------------
# Lab queue
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsLabStaffRole])
def lab_queue(request):
    """All requests, pending first, then sample collected, then completed."""
    items = svc.list_queue(status=_status_filter(request))
    return Response({'ok': True, 'data': [lab_request_payload(r) for r in items]})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsLabStaffRole])
def lab_queue_item(request, code: str):
    return Response({'ok': True, 'data': lab_request_payload(svc.get_queue_item(code))})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsLabStaffRole])
def lab_mark_sample_collected(request, code: str):
    s = MarkSampleCollectedSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    req = svc.mark_sample_collected(code, request.user.id, s.validated_data.get('technician_name'))
    return Response({'ok': True, 'data': lab_request_payload(req)})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsLabStaffRole])
def lab_complete(request, code: str):
    s = CompleteLabRequestSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    req = svc.complete_request(
        code, request.user.id, s.validated_data['technician_name'], s.validated_data['results'],
    )
    return Response({'ok': True, 'data': lab_request_payload(req)})


# ---------------------------------------------------------------------
# Patient reports
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def my_lab_reports(request):
    items = svc.list_my_reports(request.user.id)
    return Response({'ok': True, 'data': [lab_request_payload(r) for r in items]})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def my_lab_report_detail(request, code: str):
    req = svc.get_my_report(request.user.id, code)
    return Response({'ok': True, 'data': lab_request_payload(req)})
