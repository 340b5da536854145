from rest_framework import serializers

from core.models import LabRequest
from core.serializers.users import user_summary
from core.serializers.text import clean_text

STATUSES = [c[0] for c in LabRequest.STATUS_CHOICES]


def _ts(value):
    return value.isoformat() if value else None


def lab_request_payload(r: LabRequest) -> dict:
    return {
        'id': r.id,
        'code': r.code,
        'doctorUserId': r.doctor_user_id,
        'patientUserId': r.patient_user_id,
        'appointmentId': r.appointment_id,
        'patientName': r.patient_name,
        'status': r.status,
        'createdAt': _ts(r.created_at),
        'sampleCollectedAt': _ts(r.sample_collected_at),
        'completedAt': _ts(r.completed_at),
        'technicianUserId': r.technician_user_id,
        'technicianName': r.technician_name,
        'tests': [
            {'testName': t.test_name, 'resultValue': t.result_value, 'resultRemarks': t.result_remarks}
            for t in r.tests.all()
        ],
        'doctorUser': user_summary(r.doctor_user),
        'patientUser': user_summary(r.patient_user),
    }


class CreateLabRequestSerializer(serializers.Serializer):
    patientName = serializers.CharField(max_length=150, source='patient_name')
    patientUserId = serializers.IntegerField(min_value=1, required=False, allow_null=True, source='patient_user_id')
    appointmentId = serializers.IntegerField(min_value=1, required=False, allow_null=True, source='appointment_id')
    tests = serializers.ListField(child=serializers.CharField(max_length=150, allow_blank=True), min_length=1)

    def validate_patientName(self, v):
        return clean_text(v)


class MarkSampleCollectedSerializer(serializers.Serializer):
    technicianName = serializers.CharField(max_length=150, required=False, allow_blank=True, allow_null=True,
                                           source='technician_name')


class LabResultSerializer(serializers.Serializer):
    testName = serializers.CharField(max_length=150, allow_blank=True, source='test_name')
    value = serializers.CharField(required=False, allow_blank=True, allow_null=True, trim_whitespace=False)
    remarks = serializers.CharField(required=False, allow_blank=True, allow_null=True, trim_whitespace=False)


class CompleteLabRequestSerializer(serializers.Serializer):
    technicianName = serializers.CharField(max_length=150, allow_blank=True, source='technician_name')
    results = LabResultSerializer(many=True, allow_empty=False)


class LabListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=STATUSES, required=False)
