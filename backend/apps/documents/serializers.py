"""
Document serializers.
"""

from rest_framework import serializers

from apps.core.validators import CalendarDateValidator
from apps.storage.pinning import gateway_url

from .models import Document


class DocumentSerializer(serializers.ModelSerializer):
    url = serializers.SerializerMethodField()

    class Meta:
        model = Document
        fields = ["id", "name", "type", "ipfs_hash", "url", "test_date", "created_at"]
        read_only_fields = fields

    def get_url(self, obj):
        return gateway_url(obj.ipfs_hash)


class DocumentUploadSerializer(serializers.Serializer):
    file = serializers.FileField()
    name = serializers.CharField(max_length=255)
    type = serializers.ChoiceField(choices=Document.Type.choices, default=Document.Type.MEDICAL_REPORT)
    test_date = serializers.DateField(required=False, allow_null=True)

    def validate_test_date(self, value):
        if value is None:
            return value
        is_valid, error = CalendarDateValidator.not_in_future(value, field="test_date")
        if not is_valid:
            raise serializers.ValidationError(error)
        return value
