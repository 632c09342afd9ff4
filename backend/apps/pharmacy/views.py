"""
Pharmacy queue views.

Every action works on the caller's own queue; the queue of another pharmacy
is never addressable.
"""

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.accounts.permissions import HasCapability, get_actor
from apps.accounts.roles import Capability
from apps.prescriptions.lifecycle import get_lifecycle_manager
from apps.prescriptions.serializers import PrescriptionRecordSerializer

from .serializers import (
    ClaimSerializer,
    MedicationPriceSerializer,
    QueueStatusSerializer,
    queue_entry_payload,
)


class QueueViewSet(viewsets.ViewSet):
    """
    list: The pharmacy's queue, reconciled against server status
    create: Claim a pending prescription into the queue
    destroy: Remove an entry from the queue (server status untouched)
    status: Move an entry to another queue status
    prices: Set the price of one medication line
    release: Hand a claimed prescription back to the pending pool
    """

    permission_classes = [HasCapability]
    capability_map = {
        "list": Capability.FULFIL_PRESCRIPTIONS,
        "create": Capability.FULFIL_PRESCRIPTIONS,
        "destroy": Capability.FULFIL_PRESCRIPTIONS,
        "status": Capability.FULFIL_PRESCRIPTIONS,
        "prices": Capability.FULFIL_PRESCRIPTIONS,
        "release": Capability.FULFIL_PRESCRIPTIONS,
    }

    def list(self, request):
        entries = get_lifecycle_manager().list_queue(get_actor(request))
        return Response([queue_entry_payload(entry) for entry in entries])

    def create(self, request):
        serializer = ClaimSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        entry = get_lifecycle_manager().claim_for_queue(
            get_actor(request),
            serializer.validated_data["prescription_id"],
            patient_public_key=serializer.validated_data.get("patient_public_key"),
        )
        return Response(queue_entry_payload(entry), status=status.HTTP_201_CREATED)

    def destroy(self, request, pk=None):
        get_lifecycle_manager().remove_from_queue(get_actor(request), pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def status(self, request, pk=None):
        """POST /api/v1/pharmacy/queue/{id}/status/ {"queue_status": "Ready for Shipment"}"""
        serializer = QueueStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        entry = get_lifecycle_manager().advance_queue_status(
            get_actor(request), pk, serializer.validated_data["queue_status"],
        )
        return Response(queue_entry_payload(entry))

    @action(detail=True, methods=["post"])
    def prices(self, request, pk=None):
        """POST /api/v1/pharmacy/queue/{id}/prices/ {"medication_index": 0, "price": "12.50"}"""
        serializer = MedicationPriceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        entry = get_lifecycle_manager().set_medication_price(
            get_actor(request),
            pk,
            serializer.validated_data["medication_index"],
            serializer.validated_data.get("price"),
        )
        return Response(queue_entry_payload(entry))

    @action(detail=True, methods=["post"])
    def release(self, request, pk=None):
        record = get_lifecycle_manager().release_claim(get_actor(request), pk)
        return Response(PrescriptionRecordSerializer(record).data)
