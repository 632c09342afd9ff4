"""
Prescription models.
"""

import uuid

from django.db import models

from apps.core.validators import validate_not_in_future

from .records import PrescriptionStatus


class Prescription(models.Model):
    """
    A doctor's prescription for a patient.

    status is the durable source of truth: pending until a pharmacy claims
    it (in_process, claimed_by set), dispensed once fulfilled. Prescriptions
    are never deleted.
    """

    Status = PrescriptionStatus

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(
        "accounts.Profile",
        on_delete=models.PROTECT,
        related_name="patient_prescriptions",
    )
    doctor = models.ForeignKey(
        "accounts.Profile",
        on_delete=models.PROTECT,
        related_name="issued_prescriptions",
    )
    # [{"name", "dosage", "frequency", "duration"}, ...]
    medications = models.JSONField(default=list)
    photo_hash = models.CharField(max_length=255, blank=True, default="")

    status = models.CharField(
        max_length=20,
        choices=PrescriptionStatus.choices,
        default=PrescriptionStatus.PENDING,
        db_index=True,
    )
    claimed_by = models.ForeignKey(
        "accounts.Profile",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="claimed_prescriptions",
    )
    prescription_date = models.DateField(validators=[validate_not_in_future])

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "prescriptions"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="rx_status_created_idx"),
        ]

    def __str__(self):
        return f"Prescription {self.id} ({self.status})"
