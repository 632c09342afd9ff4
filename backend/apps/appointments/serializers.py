"""
Appointment serializers.
"""

from rest_framework import serializers

from apps.accounts.models import Profile
from apps.accounts.roles import Role
from apps.core.validators import CalendarDateValidator

from .models import Appointment


class AppointmentSerializer(serializers.ModelSerializer):
    patient_name = serializers.CharField(source="patient.name", read_only=True)
    doctor_name = serializers.CharField(source="doctor.name", read_only=True)

    class Meta:
        model = Appointment
        fields = [
            "id",
            "patient",
            "patient_name",
            "doctor",
            "doctor_name",
            "date",
            "status",
            "created_at",
        ]
        read_only_fields = fields


class AppointmentCreateSerializer(serializers.ModelSerializer):
    """Patient booking input. The patient is always the caller."""

    doctor = serializers.PrimaryKeyRelatedField(queryset=Profile.objects.filter(role=Role.DOCTOR))

    class Meta:
        model = Appointment
        fields = ["doctor", "date"]

    def validate_date(self, value):
        is_valid, error = CalendarDateValidator.not_in_past(value, field="date")
        if not is_valid:
            raise serializers.ValidationError(error)
        return value


class AppointmentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Appointment.Status.choices)
