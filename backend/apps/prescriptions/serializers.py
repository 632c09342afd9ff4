"""
Prescription serializers.
"""

from rest_framework import serializers

from apps.storage.pinning import gateway_url

from .models import Prescription


class MedicationSerializer(serializers.Serializer):
    name = serializers.CharField()
    dosage = serializers.CharField()
    frequency = serializers.CharField(required=False, allow_blank=True, default="")
    duration = serializers.CharField(required=False, allow_blank=True, default="")


class PrescriptionSerializer(serializers.ModelSerializer):
    """Full prescription as stored."""

    patient_name = serializers.CharField(source="patient.name", read_only=True)
    doctor_name = serializers.CharField(source="doctor.name", read_only=True)
    photo_url = serializers.SerializerMethodField()

    class Meta:
        model = Prescription
        fields = [
            "id",
            "patient",
            "patient_name",
            "doctor",
            "doctor_name",
            "medications",
            "photo_hash",
            "photo_url",
            "status",
            "claimed_by",
            "prescription_date",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_photo_url(self, obj):
        return gateway_url(obj.photo_hash) if obj.photo_hash else None


class PrescriptionRecordSerializer(serializers.Serializer):
    """Same shape as PrescriptionSerializer, for PrescriptionRecord objects."""

    id = serializers.CharField()
    patient = serializers.CharField(source="patient_id")
    patient_name = serializers.CharField()
    doctor = serializers.CharField(source="doctor_id")
    doctor_name = serializers.CharField()
    medications = MedicationSerializer(many=True)
    photo_hash = serializers.CharField()
    photo_url = serializers.SerializerMethodField()
    status = serializers.CharField()
    claimed_by = serializers.CharField(allow_null=True)
    prescription_date = serializers.DateField()
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField(allow_null=True)

    def get_photo_url(self, obj):
        return gateway_url(obj.photo_hash) if obj.photo_hash else None


class PrescriptionCreateSerializer(serializers.Serializer):
    """
    Input for a new prescription. Accepts JSON, or multipart with the
    medications list as a JSON string and an optional photo file.
    """

    patient_id = serializers.UUIDField()
    medications = serializers.JSONField()
    prescription_date = serializers.DateField()
    photo = serializers.FileField(required=False, allow_null=True)

    def validate_medications(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("medications must be a list")
        return value


class PendingLookupSerializer(serializers.Serializer):
    patient_name = serializers.CharField(required=False, allow_blank=True)
    doctor_name = serializers.CharField(required=False, allow_blank=True)
    date = serializers.DateField(required=False, allow_null=True)


class PrescriptionFilterSerializer(serializers.Serializer):
    patient = serializers.UUIDField(required=False)
    status = serializers.ChoiceField(choices=Prescription.Status.choices, required=False)
