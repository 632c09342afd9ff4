"""
Plain data records for the prescription workflow.

The lifecycle manager works on these instead of model instances so that it
runs unchanged against the Django repository and the in-memory one.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import List, Optional

from django.db import models


class PrescriptionStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    IN_PROCESS = "in_process", "In Process"
    DISPENSED = "dispensed", "Dispensed"


@dataclass
class Medication:
    name: str
    dosage: str
    frequency: str = ""
    duration: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Medication":
        return cls(
            name=str(data.get("name", "")).strip(),
            dosage=str(data.get("dosage", "")).strip(),
            frequency=str(data.get("frequency") or "").strip(),
            duration=str(data.get("duration") or "").strip(),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class PrescriptionRecord:
    id: str
    patient_id: str
    doctor_id: str
    prescription_date: date
    created_at: datetime
    medications: List[Medication] = field(default_factory=list)
    status: str = PrescriptionStatus.PENDING
    patient_name: str = ""
    patient_public_key: str = ""
    doctor_name: str = ""
    photo_hash: str = ""
    claimed_by: Optional[str] = None
    updated_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == PrescriptionStatus.PENDING
