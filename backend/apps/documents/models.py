"""
Document models.
"""

import uuid

from django.db import models

from apps.core.validators import validate_not_in_future


class Document(models.Model):
    """
    A patient's medical document. The file itself lives in the pinning
    service; only its content hash is stored here.
    """

    class Type(models.TextChoices):
        MEDICAL_REPORT = "medical_report", "Medical Report"
        PRESCRIPTION = "prescription", "Prescription"
        TEST_RESULT = "test_result", "Test Result"
        OTHER = "other", "Other"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        "accounts.Profile",
        on_delete=models.CASCADE,
        related_name="documents",
    )
    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=Type.choices, default=Type.MEDICAL_REPORT)
    ipfs_hash = models.CharField(max_length=255)
    test_date = models.DateField(null=True, blank=True, validators=[validate_not_in_future])

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "documents"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.name} ({self.type})"
