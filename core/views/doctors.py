from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from core.models import SPECIALIZATIONS
from core.permissions import IsAdminRole, ReadOnly
from core.serializers.doctors import DoctorCreateSerializer, DoctorUpdateSerializer, doctor_payload
from core.services import doctors as svc


@api_view(['GET', 'POST'])
@permission_classes([ReadOnly | (IsAuthenticated & IsAdminRole)])
def doctors(request):
    """Public doctor directory; creating a profile requires an administrator."""
    if request.method == 'GET':
        return Response({'ok': True, 'data': [doctor_payload(d) for d in svc.list_doctors()]})

    s = DoctorCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    doctor = svc.create_doctor(**s.validated_data)
    return Response({'ok': True, 'data': doctor_payload(doctor)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def confirmed_doctors(request):
    return Response({'ok': True, 'data': [doctor_payload(d) for d in svc.list_confirmed_doctors()]})


@api_view(['GET'])
@permission_classes([AllowAny])
def specializations(request):
    return Response({'ok': True, 'data': [{'id': sid, 'name': name} for sid, name in SPECIALIZATIONS]})


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def doctor_detail(request, pk: int):
    if request.method == 'GET':
        return Response({'ok': True, 'data': doctor_payload(svc.get_doctor(pk))})

    s = DoctorUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    doctor = svc.update_doctor(pk, dict(s.validated_data))
    return Response({'ok': True, 'data': doctor_payload(doctor)})
