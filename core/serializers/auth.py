import bleach
from django.contrib.auth.password_validation import validate_password as django_validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from core.models import User

SELF_ASSIGNABLE_ROLES = [User.ROLE_PATIENT, User.ROLE_CENTER_ADMIN]


class LoginSerializer(serializers.Serializer):
    # Both optional so a missing field gets the single "required" message
    email = serializers.CharField(required=False, allow_blank=True)
    password = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)

    def validate_email(self, v):
        return (v or '').strip().lower()


class RegisterSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    dateOfBirth = serializers.DateField(required=False, allow_null=True)
    role = serializers.CharField(required=False, default=User.ROLE_PATIENT)

    def validate_name(self, v):
        v = bleach.clean((v or '').strip(), strip=True)
        if len(v) < 2:
            raise serializers.ValidationError('Name must be at least 2 characters')
        return v

    def validate_email(self, v):
        return v.strip().lower()

    def validate_phone(self, v):
        return bleach.clean((v or '').strip(), strip=True)

    def validate_role(self, v):
        if v not in SELF_ASSIGNABLE_ROLES:
            raise serializers.ValidationError('This role cannot be self-assigned')
        return v

    def validate_password(self, v):
        try:
            django_validate_password(v)
        except DjangoValidationError as e:
            raise serializers.ValidationError(list(e.messages))
        return v


class VerifyOtpSerializer(serializers.Serializer):
    userId = serializers.IntegerField(min_value=1)
    otp = serializers.CharField(max_length=12)


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()

    def validate_email(self, v):
        return v.strip().lower()


class ResetPasswordSerializer(VerifyOtpSerializer):
    newPassword = serializers.CharField(write_only=True, trim_whitespace=False)

    def validate_newPassword(self, v):
        try:
            django_validate_password(v)
        except DjangoValidationError as e:
            raise serializers.ValidationError(list(e.messages))
        return v
