from rest_framework import serializers

PHONE_REGEX = r'^[0-9+()\-\s]{7,20}$'


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField()

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('Password is required')
        return v


class RegisterSerializer(serializers.Serializer):
    firstName = serializers.CharField(min_length=2, max_length=50, source='first_name')
    lastName = serializers.CharField(min_length=2, max_length=50, source='last_name')
    email = serializers.EmailField()
    phone = serializers.RegexField(PHONE_REGEX)
    password = serializers.CharField(min_length=8, max_length=100, write_only=True)
