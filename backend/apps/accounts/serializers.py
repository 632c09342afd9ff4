"""
Account serializers.
"""

from rest_framework import serializers

from apps.documents.serializers import DocumentSerializer
from apps.prescriptions.serializers import PrescriptionSerializer

from .models import Profile
from .roles import Role


class RegisterSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    email = serializers.EmailField()
    mobile = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    password = serializers.CharField(write_only=True, min_length=6)
    role = serializers.ChoiceField(choices=Role.choices)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    role = serializers.ChoiceField(choices=Role.choices, required=False)


class ProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = Profile
        fields = ["id", "name", "email", "mobile", "role", "public_key", "created_at"]
        read_only_fields = ["id", "email", "role", "public_key", "created_at"]


class ProfileUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Profile
        fields = ["name", "mobile"]


class DoctorSerializer(serializers.ModelSerializer):
    class Meta:
        model = Profile
        fields = ["id", "name", "email", "mobile"]


class PatientDetailSerializer(serializers.ModelSerializer):
    """Patient as seen by a doctor: contact details, documents, prescriptions."""

    documents = DocumentSerializer(many=True, read_only=True)
    prescriptions = PrescriptionSerializer(many=True, read_only=True, source="patient_prescriptions")

    class Meta:
        model = Profile
        fields = ["id", "name", "email", "mobile", "public_key", "documents", "prescriptions"]
