from rest_framework import serializers

from core.models import User
from core.serializers.auth import PHONE_REGEX, RegisterSerializer


def user_payload(u: User) -> dict:
    return {
        'id': u.id,
        'firstName': u.first_name,
        'lastName': u.last_name,
        'email': u.email,
        'phone': u.phone,
        'role': u.role,
        'status': u.status,
        'isConfirmed': u.is_confirmed,
        'createdAt': u.created_at.isoformat() if u.created_at else None,
        'updatedAt': u.updated_at.isoformat() if u.updated_at else None,
    }


def user_summary(u) -> dict | None:
    if u is None:
        return None
    return {'id': u.id, 'firstName': u.first_name, 'lastName': u.last_name, 'name': u.display_name}


class UpdateMyProfileSerializer(serializers.Serializer):
    firstName = serializers.CharField(min_length=2, max_length=50, source='first_name')
    lastName = serializers.CharField(min_length=2, max_length=50, source='last_name')
    email = serializers.EmailField()
    phone = serializers.RegexField(PHONE_REGEX)


class CreateStaffSerializer(RegisterSerializer):
    role = serializers.ChoiceField(choices=[c[0] for c in User.ROLE_CHOICES])
    slmcNumber = serializers.CharField(max_length=50, required=False, source='slmc_number')
    specializationId = serializers.IntegerField(min_value=0, required=False, source='specialization_id')
    description = serializers.CharField(required=False, allow_blank=True)
    joinedDate = serializers.DateField(required=False, source='joined_date')


class CreatePatientSerializer(RegisterSerializer):
    status = serializers.ChoiceField(choices=[c[0] for c in User.STATUS_CHOICES], required=False)
    isConfirmed = serializers.BooleanField(required=False, source='is_confirmed')


class UpdateUserAdminSerializer(serializers.Serializer):
    firstName = serializers.CharField(min_length=2, max_length=50, required=False, source='first_name')
    lastName = serializers.CharField(min_length=2, max_length=50, required=False, source='last_name')
    email = serializers.EmailField(required=False)
    phone = serializers.RegexField(PHONE_REGEX, required=False)
    status = serializers.ChoiceField(choices=[c[0] for c in User.STATUS_CHOICES], required=False)
    isConfirmed = serializers.BooleanField(required=False, source='is_confirmed')


class UpdateRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=[c[0] for c in User.ROLE_CHOICES])
