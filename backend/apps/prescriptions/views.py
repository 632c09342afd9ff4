"""
Prescription views.
"""

import structlog
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.accounts.permissions import HasCapability, get_actor
from apps.accounts.roles import Capability

from .lifecycle import get_lifecycle_manager
from .models import Prescription
from .serializers import (
    PendingLookupSerializer,
    PrescriptionCreateSerializer,
    PrescriptionFilterSerializer,
    PrescriptionRecordSerializer,
    PrescriptionSerializer,
)

logger = structlog.get_logger(__name__)


class PrescriptionViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    list: Prescriptions visible to the caller (patient: received, doctor: issued,
          pharmacy: claimed)
    retrieve: One of those prescriptions
    create: Doctor issues a prescription
    pending: Pharmacy lookup of unclaimed prescriptions
    dispense: Holding pharmacy marks a prescription dispensed
    """

    serializer_class = PrescriptionSerializer
    permission_classes = [HasCapability]
    capability_map = {
        "list": (
            Capability.VIEW_OWN_PRESCRIPTIONS,
            Capability.ISSUE_PRESCRIPTIONS,
            Capability.FULFIL_PRESCRIPTIONS,
        ),
        "retrieve": (
            Capability.VIEW_OWN_PRESCRIPTIONS,
            Capability.ISSUE_PRESCRIPTIONS,
            Capability.FULFIL_PRESCRIPTIONS,
        ),
        "create": Capability.ISSUE_PRESCRIPTIONS,
        "pending": Capability.LOOKUP_PRESCRIPTIONS,
        "dispense": Capability.FULFIL_PRESCRIPTIONS,
    }

    def get_queryset(self):
        actor = get_actor(self.request)
        filters = PrescriptionFilterSerializer(data=self.request.query_params)
        filters.is_valid(raise_exception=True)
        params = filters.validated_data

        queryset = Prescription.objects.select_related("patient", "doctor")

        if actor.can(Capability.ISSUE_PRESCRIPTIONS):
            queryset = queryset.filter(doctor_id=actor.id)
            if "patient" in params:
                queryset = queryset.filter(patient_id=params["patient"])
        elif actor.can(Capability.VIEW_OWN_PRESCRIPTIONS):
            queryset = queryset.filter(patient_id=actor.id)
        elif actor.can(Capability.FULFIL_PRESCRIPTIONS):
            queryset = queryset.filter(claimed_by_id=actor.id)
        else:
            return queryset.none()

        if "status" in params:
            queryset = queryset.filter(status=params["status"])

        return queryset.order_by("-created_at")

    def create(self, request, *args, **kwargs):
        serializer = PrescriptionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        record = get_lifecycle_manager().create(
            actor=get_actor(request),
            patient_id=data["patient_id"],
            medications=data["medications"],
            prescription_date=data["prescription_date"],
            photo=data.get("photo"),
        )
        return Response(PrescriptionRecordSerializer(record).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def pending(self, request):
        """
        GET /api/v1/prescriptions/pending/?patient_name=&doctor_name=&date=

        Not paginated: the pharmacy sees every unclaimed prescription.
        """
        filters = PendingLookupSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        params = filters.validated_data

        records = get_lifecycle_manager().lookup_pending(
            actor=get_actor(request),
            patient_name=params.get("patient_name"),
            doctor_name=params.get("doctor_name"),
            on_date=params.get("date"),
        )
        return Response(PrescriptionRecordSerializer(records, many=True).data)

    @action(detail=True, methods=["post"])
    def dispense(self, request, pk=None):
        """POST /api/v1/prescriptions/{id}/dispense/"""
        record = get_lifecycle_manager().dispense(pk, actor=get_actor(request))
        return Response(PrescriptionRecordSerializer(record).data)
