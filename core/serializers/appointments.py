from rest_framework import serializers

from core.models import Appointment

STATUS_VALUES = [s for s, _ in Appointment.STATUS_CHOICES]


class AppointmentCreateSerializer(serializers.Serializer):
    # Presence is checked by the service so all four report the same error
    center = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    test = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    appointmentDate = serializers.DateField(required=False, allow_null=True)
    appointmentTime = serializers.TimeField(required=False, allow_null=True)
    notes = serializers.CharField(max_length=2000, required=False, allow_blank=True)


class PatientAppointmentUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=STATUS_VALUES, required=False)
    appointmentDate = serializers.DateField(required=False)
    appointmentTime = serializers.TimeField(required=False)


class AppointmentStatusSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=20)
    notes = serializers.CharField(max_length=2000, required=False, allow_blank=True)
    cancellationReason = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class CenterAppointmentQuerySerializer(serializers.Serializer):
    centerId = serializers.IntegerField(min_value=1, required=False)
    status = serializers.ChoiceField(choices=STATUS_VALUES, required=False)
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, max_value=200, required=False)


class ResultsUploadSerializer(serializers.Serializer):
    appointmentId = serializers.CharField(required=False, allow_blank=True)
    summary = serializers.CharField(max_length=5000, required=False, allow_blank=True)
