from rest_framework import serializers

from core.models import Doctor, SPECIALIZATIONS
from core.serializers.auth import PHONE_REGEX
from core.serializers.text import clean_text

SPECIALIZATION_IDS = [0] + [sid for sid, _ in SPECIALIZATIONS]


def doctor_payload(d: Doctor) -> dict:
    return {
        'id': d.id,
        'userId': d.user_id,
        'fullName': d.full_name,
        'slmcNumber': d.slmc_number,
        'specializationId': d.specialization_id,
        'specialization': dict(SPECIALIZATIONS).get(d.specialization_id),
        'phone': d.phone,
        'email': d.email,
        'description': d.description,
        'joinedDate': d.joined_date.isoformat() if d.joined_date else None,
    }


class DoctorUpdateSerializer(serializers.Serializer):
    fullName = serializers.CharField(max_length=150, required=False, source='full_name')
    slmcNumber = serializers.CharField(max_length=50, required=False, source='slmc_number')
    specializationId = serializers.ChoiceField(choices=SPECIALIZATION_IDS, required=False, source='specialization_id')
    phone = serializers.RegexField(PHONE_REGEX, required=False, allow_null=True)
    email = serializers.EmailField(max_length=100, required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    joinedDate = serializers.DateField(required=False, allow_null=True, source='joined_date')

    def validate_fullName(self, v):
        v = clean_text((v or '').strip())
        if not v:
            raise serializers.ValidationError('Full name is required')
        return v

    def validate_description(self, v):
        return clean_text(v)


class DoctorCreateSerializer(DoctorUpdateSerializer):
    userId = serializers.IntegerField(min_value=1, source='user_id')
    fullName = serializers.CharField(max_length=150, source='full_name')
    slmcNumber = serializers.CharField(max_length=50, source='slmc_number')
    specializationId = serializers.ChoiceField(choices=SPECIALIZATION_IDS, source='specialization_id')
