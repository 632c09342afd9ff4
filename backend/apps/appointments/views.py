"""
Appointment views.
"""

import structlog
from django.db.models import Case, IntegerField, Value, When
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.generics import get_object_or_404
from rest_framework.response import Response

from apps.accounts.permissions import HasCapability, get_actor
from apps.accounts.roles import Capability
from apps.core.exceptions import PermissionDeniedError

from .models import Appointment
from .serializers import (
    AppointmentCreateSerializer,
    AppointmentSerializer,
    AppointmentStatusSerializer,
)

logger = structlog.get_logger(__name__)


class AppointmentViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    list: Patient sees own bookings; doctor sees own schedule by status priority
    create: Patient books an appointment with a doctor
    status: Doctor changes the status of one of their appointments
    """

    serializer_class = AppointmentSerializer
    permission_classes = [HasCapability]
    capability_map = {
        "list": (Capability.BOOK_APPOINTMENTS, Capability.MANAGE_APPOINTMENTS),
        "retrieve": (Capability.BOOK_APPOINTMENTS, Capability.MANAGE_APPOINTMENTS),
        "create": Capability.BOOK_APPOINTMENTS,
        "status": Capability.MANAGE_APPOINTMENTS,
    }

    def get_queryset(self):
        actor = get_actor(self.request)
        queryset = Appointment.objects.select_related("patient", "doctor")

        if actor.can(Capability.MANAGE_APPOINTMENTS):
            priority = Case(
                *[When(status=s, then=Value(p)) for s, p in Appointment.STATUS_PRIORITY.items()],
                output_field=IntegerField(),
            )
            return (
                queryset.filter(doctor_id=actor.id)
                .annotate(status_priority=priority)
                .order_by("status_priority", "-date")
            )
        return queryset.filter(patient_id=actor.id).order_by("-date")

    def create(self, request, *args, **kwargs):
        actor = get_actor(request)
        serializer = AppointmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        appointment = serializer.save(patient_id=actor.id)

        logger.info(
            "appointment_booked",
            appointment_id=str(appointment.id),
            patient_id=str(actor.id),
            doctor_id=str(appointment.doctor_id),
        )
        return Response(AppointmentSerializer(appointment).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def status(self, request, pk=None):
        """
        POST /api/v1/appointments/{id}/status/ {"status": "confirmed"}

        Any status may follow any other, including a return to pending.
        """
        appointment = get_object_or_404(Appointment.objects.select_related("patient", "doctor"), pk=pk)
        if str(appointment.doctor_id) != str(get_actor(request).id):
            raise PermissionDeniedError(detail=["Only the appointment's doctor can change it"])

        serializer = AppointmentStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        previous = appointment.status
        appointment.status = serializer.validated_data["status"]
        appointment.save(update_fields=["status", "updated_at"])

        logger.info(
            "appointment_status_changed",
            appointment_id=str(appointment.id),
            from_status=previous,
            to_status=appointment.status,
        )
        return Response(AppointmentSerializer(appointment).data)
