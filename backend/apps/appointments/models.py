"""
Appointment models.
"""

import uuid

from django.db import models


class Appointment(models.Model):
    """A patient's booking with a doctor."""

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        CONFIRMED = "confirmed", "Confirmed"
        REJECTED = "rejected", "Rejected"
        COMPLETED = "completed", "Completed"

    # order in which a doctor's list shows appointments
    STATUS_PRIORITY = {
        Status.PENDING: 0,
        Status.CONFIRMED: 1,
        Status.REJECTED: 2,
        Status.COMPLETED: 3,
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(
        "accounts.Profile",
        on_delete=models.CASCADE,
        related_name="patient_appointments",
    )
    doctor = models.ForeignKey(
        "accounts.Profile",
        on_delete=models.CASCADE,
        related_name="doctor_appointments",
    )
    date = models.DateTimeField()
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "appointments"
        ordering = ["-date"]

    def __str__(self):
        return f"Appointment {self.date:%Y-%m-%d %H:%M} ({self.status})"
