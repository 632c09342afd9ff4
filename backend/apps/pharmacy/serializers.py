"""
Pharmacy queue serializers.
"""

from rest_framework import serializers

from apps.storage.pinning import gateway_url

from .queue import QueueStatus


class ClaimSerializer(serializers.Serializer):
    prescription_id = serializers.UUIDField()
    patient_public_key = serializers.CharField(required=False, allow_blank=False)


class QueueStatusSerializer(serializers.Serializer):
    queue_status = serializers.ChoiceField(choices=[s.value for s in QueueStatus])


class MedicationPriceSerializer(serializers.Serializer):
    medication_index = serializers.IntegerField()
    # any JSON value; unparseable prices are stored as 0
    price = serializers.JSONField(allow_null=True)


def queue_entry_payload(entry) -> dict:
    data = entry.to_dict()
    data["photo_url"] = gateway_url(entry.photo_hash) if entry.photo_hash else None
    return data
