from rest_framework import serializers

from core.models import Appointment
from core.serializers.text import clean_text

STATUSES = [c[0] for c in Appointment.STATUS_CHOICES]


def appointment_payload(a: Appointment) -> dict:
    return {
        'id': a.id,
        'doctorId': a.doctor_id,
        'userId': a.user_id,
        'patientName': a.patient_name,
        'contactNumber': a.contact_number,
        'reason': a.reason,
        'appointmentType': a.appointment_type,
        'date': a.date.isoformat(),
        'timeSlot': a.time_slot,
        'queueNumber': a.queue_number,
        'status': a.status,
        'createdAt': a.created_at.isoformat() if a.created_at else None,
        'updatedAt': a.updated_at.isoformat() if a.updated_at else None,
        'doctor': {
            'fullName': a.doctor.full_name,
            'specializationId': a.doctor.specialization_id,
        },
    }


class AppointmentSerializer(serializers.Serializer):
    """Booking payload used by the patient endpoint; ``userId``/``status`` are ignored there."""
    doctorId = serializers.IntegerField(min_value=1, source='doctor_id')
    userId = serializers.IntegerField(min_value=1, required=False, allow_null=True, source='user_id')
    patientName = serializers.CharField(max_length=150, source='patient_name')
    contactNumber = serializers.CharField(max_length=20, source='contact_number')
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    appointmentType = serializers.CharField(max_length=50, source='appointment_type')
    date = serializers.DateField()
    timeSlot = serializers.CharField(max_length=10, source='time_slot')
    status = serializers.ChoiceField(choices=STATUSES, required=False)

    def validate_patientName(self, v):
        v = clean_text((v or '').strip())
        if not v:
            raise serializers.ValidationError('Patient name is required')
        return v

    def validate_reason(self, v):
        return clean_text(v)

    def validate_timeSlot(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('Time slot is required')
        return v


class AppointmentUpdateSerializer(AppointmentSerializer):
    """Admin patch: every field optional."""
    doctorId = serializers.IntegerField(min_value=1, required=False, source='doctor_id')
    patientName = serializers.CharField(max_length=150, required=False, source='patient_name')
    contactNumber = serializers.CharField(max_length=20, required=False, source='contact_number')
    appointmentType = serializers.CharField(max_length=50, required=False, source='appointment_type')
    date = serializers.DateField(required=False)
    timeSlot = serializers.CharField(max_length=10, required=False, source='time_slot')


class AppointmentListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=STATUSES, required=False)
    doctorId = serializers.IntegerField(min_value=1, required=False, source='doctor_id')
    date = serializers.DateField(required=False)
