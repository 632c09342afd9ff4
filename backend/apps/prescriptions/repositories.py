"""
Prescription repositories.

Two implementations of the same interface:
- DjangoPrescriptionRepository: the record store (PostgreSQL through the ORM)
- InMemoryPrescriptionRepository: a dict keyed by prescription id, for tests
  and tooling

Claim and release are conditional updates: they only succeed while the row
is still in the expected state, so of two concurrent claims exactly one wins.
"""

import copy
import uuid
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from django.utils import timezone

from apps.accounts.models import Profile
from apps.accounts.roles import Role
from apps.core.exceptions import NotFoundError

from .models import Prescription
from .records import Medication, PrescriptionRecord, PrescriptionStatus


class PrescriptionRepository(ABC):
    """Record store operations the lifecycle manager depends on."""

    @abstractmethod
    def create(self, patient_id, doctor_id, medications: List[Medication],
               prescription_date, photo_hash: str = "") -> PrescriptionRecord:
        """Persist a new pending prescription. Unknown patient -> NotFoundError."""

    @abstractmethod
    def get(self, prescription_id) -> PrescriptionRecord:
        """Fetch one prescription. Unknown id -> NotFoundError."""

    @abstractmethod
    def get_many(self, prescription_ids: Iterable) -> Dict[str, PrescriptionRecord]:
        """Fetch several prescriptions keyed by id; unknown ids are omitted."""

    @abstractmethod
    def list_pending(self) -> List[PrescriptionRecord]:
        """Every prescription whose status is still pending, newest first."""

    @abstractmethod
    def claim(self, prescription_id, pharmacy_id) -> bool:
        """pending -> in_process for this pharmacy. False if no longer pending."""

    @abstractmethod
    def release(self, prescription_id, pharmacy_id) -> bool:
        """in_process -> pending. False unless this pharmacy holds the claim."""

    @abstractmethod
    def mark_dispensed(self, prescription_id) -> PrescriptionRecord:
        """Set status dispensed. Idempotent. Unknown id -> NotFoundError."""


def _prescription_not_found(prescription_id):
    return NotFoundError(
        message="Prescription not found",
        code="PRESCRIPTION_NOT_FOUND",
        detail=[f"No prescription with id {prescription_id}"],
    )


def _as_uuid(prescription_id) -> uuid.UUID:
    try:
        return uuid.UUID(str(prescription_id))
    except ValueError:
        raise _prescription_not_found(prescription_id)


class DjangoPrescriptionRepository(PrescriptionRepository):

    @staticmethod
    def to_record(prescription: Prescription) -> PrescriptionRecord:
        return PrescriptionRecord(
            id=str(prescription.id),
            patient_id=str(prescription.patient_id),
            patient_name=prescription.patient.name,
            patient_public_key=prescription.patient.public_key,
            doctor_id=str(prescription.doctor_id),
            doctor_name=prescription.doctor.name,
            medications=[Medication.from_dict(m) for m in prescription.medications],
            photo_hash=prescription.photo_hash,
            status=prescription.status,
            claimed_by=str(prescription.claimed_by_id) if prescription.claimed_by_id else None,
            prescription_date=prescription.prescription_date,
            created_at=prescription.created_at,
            updated_at=prescription.updated_at,
        )

    def _queryset(self):
        return Prescription.objects.select_related("patient", "doctor")

    def create(self, patient_id, doctor_id, medications, prescription_date, photo_hash=""):
        patient = Profile.objects.filter(pk=patient_id, role=Role.PATIENT).first()
        if patient is None:
            raise NotFoundError(
                message="Patient not found",
                code="PATIENT_NOT_FOUND",
                detail=[f"No patient with id {patient_id}"],
            )
        prescription = Prescription.objects.create(
            patient=patient,
            doctor_id=doctor_id,
            medications=[m.to_dict() for m in medications],
            photo_hash=photo_hash or "",
            prescription_date=prescription_date,
            status=PrescriptionStatus.PENDING,
        )
        return self.get(prescription.id)

    def get(self, prescription_id):
        try:
            return self.to_record(self._queryset().get(pk=_as_uuid(prescription_id)))
        except Prescription.DoesNotExist:
            raise _prescription_not_found(prescription_id)

    def get_many(self, prescription_ids):
        ids = [str(pid) for pid in prescription_ids]
        if not ids:
            return {}
        return {
            str(p.id): self.to_record(p)
            for p in self._queryset().filter(pk__in=ids)
        }

    def list_pending(self):
        return [
            self.to_record(p)
            for p in self._queryset().filter(status=PrescriptionStatus.PENDING).order_by("-created_at")
        ]

    def claim(self, prescription_id, pharmacy_id):
        updated = Prescription.objects.filter(
            pk=_as_uuid(prescription_id),
            status=PrescriptionStatus.PENDING,
        ).update(
            status=PrescriptionStatus.IN_PROCESS,
            claimed_by_id=pharmacy_id,
            updated_at=timezone.now(),
        )
        return updated == 1

    def release(self, prescription_id, pharmacy_id):
        updated = Prescription.objects.filter(
            pk=_as_uuid(prescription_id),
            status=PrescriptionStatus.IN_PROCESS,
            claimed_by_id=pharmacy_id,
        ).update(
            status=PrescriptionStatus.PENDING,
            claimed_by=None,
            updated_at=timezone.now(),
        )
        return updated == 1

    def mark_dispensed(self, prescription_id):
        updated = Prescription.objects.filter(pk=_as_uuid(prescription_id)).update(
            status=PrescriptionStatus.DISPENSED,
            updated_at=timezone.now(),
        )
        if not updated:
            raise _prescription_not_found(prescription_id)
        return self.get(prescription_id)


class InMemoryPrescriptionRepository(PrescriptionRepository):
    """
    Dict-backed repository.

    Profiles are registered up front with add_profile(); create() only
    accepts patients that were registered.
    """

    def __init__(self, clock=timezone.now):
        self.clock = clock
        self.prescriptions: Dict[str, PrescriptionRecord] = {}
        self.profiles: Dict[str, dict] = {}

    def add_profile(self, profile_id, name, role, public_key: Optional[str] = None):
        profile_id = str(profile_id)
        self.profiles[profile_id] = {
            "name": name,
            "role": role,
            "public_key": public_key or profile_id[:15],
        }
        return profile_id

    def _stored(self, prescription_id) -> PrescriptionRecord:
        record = self.prescriptions.get(str(prescription_id))
        if record is None:
            raise _prescription_not_found(prescription_id)
        return record

    def create(self, patient_id, doctor_id, medications, prescription_date, photo_hash=""):
        patient = self.profiles.get(str(patient_id))
        if patient is None or patient["role"] != Role.PATIENT:
            raise NotFoundError(
                message="Patient not found",
                code="PATIENT_NOT_FOUND",
                detail=[f"No patient with id {patient_id}"],
            )
        doctor = self.profiles.get(str(doctor_id), {"name": ""})
        now = self.clock()
        record = PrescriptionRecord(
            id=str(uuid.uuid4()),
            patient_id=str(patient_id),
            patient_name=patient["name"],
            patient_public_key=patient["public_key"],
            doctor_id=str(doctor_id),
            doctor_name=doctor["name"],
            medications=[copy.copy(m) for m in medications],
            photo_hash=photo_hash or "",
            status=PrescriptionStatus.PENDING,
            prescription_date=prescription_date,
            created_at=now,
            updated_at=now,
        )
        self.prescriptions[record.id] = record
        return copy.deepcopy(record)

    def get(self, prescription_id):
        return copy.deepcopy(self._stored(prescription_id))

    def get_many(self, prescription_ids):
        return {
            str(pid): copy.deepcopy(self.prescriptions[str(pid)])
            for pid in prescription_ids
            if str(pid) in self.prescriptions
        }

    def list_pending(self):
        pending = [copy.deepcopy(r) for r in self.prescriptions.values() if r.is_pending]
        return sorted(pending, key=lambda r: r.created_at, reverse=True)

    def claim(self, prescription_id, pharmacy_id):
        record = self.prescriptions.get(str(prescription_id))
        if record is None or record.status != PrescriptionStatus.PENDING:
            return False
        record.status = PrescriptionStatus.IN_PROCESS
        record.claimed_by = str(pharmacy_id)
        record.updated_at = self.clock()
        return True

    def release(self, prescription_id, pharmacy_id):
        record = self.prescriptions.get(str(prescription_id))
        if (
            record is None
            or record.status != PrescriptionStatus.IN_PROCESS
            or record.claimed_by != str(pharmacy_id)
        ):
            return False
        record.status = PrescriptionStatus.PENDING
        record.claimed_by = None
        record.updated_at = self.clock()
        return True

    def mark_dispensed(self, prescription_id):
        record = self._stored(prescription_id)
        record.status = PrescriptionStatus.DISPENSED
        record.updated_at = self.clock()
        return copy.deepcopy(record)
