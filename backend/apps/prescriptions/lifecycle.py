"""
Prescription lifecycle manager.

Orchestrates a prescription from creation to dispensation:

    doctor creates (pending)
        -> pharmacy looks it up
        -> pharmacy claims it (server: in_process, queue: In Process)
        -> pharmacy prices and moves it (Ready for Shipment)
        -> Completed (server: dispensed)

The server-side status is the source of truth; each pharmacy's queue is a
private overlay that is corrected whenever it disagrees with the server.
"""

from datetime import date, datetime
from typing import List, Optional

import structlog
from django.utils import timezone
from prometheus_client import Counter

from apps.accounts.roles import Actor, Capability
from apps.core.exceptions import (
    AppValidationError,
    BlockError,
    NotFoundError,
    PermissionDeniedError,
    RemoteServiceError,
)
from apps.core.validators import MedicationValidator
from apps.pharmacy.queue import (
    PharmacyQueueStore,
    QueueEntry,
    QueueStatus,
    check_transition,
    get_queue_store,
    parse_price,
)
from apps.storage.pinning import BasePinningClient, get_pinning_client

from .records import Medication, PrescriptionRecord, PrescriptionStatus
from .repositories import DjangoPrescriptionRepository, PrescriptionRepository

logger = structlog.get_logger(__name__)

PRESCRIPTION_CREATED_TOTAL = Counter(
    "prescription_created_total",
    "Prescriptions created",
    ["status"],  # success, validation_error, upload_error
)
PRESCRIPTION_CLAIM_TOTAL = Counter(
    "prescription_claim_total",
    "Prescription claim attempts",
    ["result"],  # claimed, already_held, conflict
)
QUEUE_TRANSITION_TOTAL = Counter(
    "pharmacy_queue_transition_total",
    "Pharmacy queue status changes",
    ["from_status", "to_status"],
)
PRESCRIPTION_DISPENSED_TOTAL = Counter(
    "prescription_dispensed_total",
    "Dispense calls",
    ["result"],  # dispensed, already_dispensed
)
QUEUE_ENTRIES_DROPPED_TOTAL = Counter(
    "pharmacy_queue_entries_dropped_total",
    "Stale queue entries dropped after disagreeing with the server",
)


class PrescriptionLifecycleManager:
    """
    Collaborators are injected: production wires the Django repository,
    the Redis queue store and the configured pinning client (see
    get_lifecycle_manager); tests pass in-memory ones.
    """

    def __init__(
        self,
        repository: PrescriptionRepository,
        queue_store: PharmacyQueueStore,
        pinning_client: BasePinningClient,
        clock=timezone.now,
    ):
        self.repository = repository
        self.queue_store = queue_store
        self.pinning_client = pinning_client
        self.clock = clock

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def today(self) -> date:
        now = self.clock()
        if timezone.is_aware(now):
            now = timezone.localtime(now)
        return now.date()

    @staticmethod
    def _require(actor: Optional[Actor], capability: Capability):
        if actor is None or not actor.can(capability):
            raise PermissionDeniedError(
                detail=[f"Role '{getattr(actor, 'role', None)}' cannot {capability.value.replace('_', ' ')}"],
            )

    def _parse_date(self, value) -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value))
        except (TypeError, ValueError):
            raise AppValidationError(detail=["prescription_date must be a date (YYYY-MM-DD)"])

    # ------------------------------------------------------------------
    # doctor side
    # ------------------------------------------------------------------

    def create(self, actor: Actor, patient_id, medications, prescription_date, photo=None) -> PrescriptionRecord:
        """
        Issue a new pending prescription.

        All input is validated before the photo (if any) is uploaded; an
        upload failure aborts creation.
        """
        self._require(actor, Capability.ISSUE_PRESCRIPTIONS)

        errors = []
        is_valid, medication_errors = MedicationValidator.validate(medications or [])
        if not is_valid:
            errors.extend(medication_errors)

        if prescription_date in (None, ""):
            errors.append("prescription_date is required")
        else:
            prescription_date = self._parse_date(prescription_date)
            if prescription_date > self.today():
                errors.append("prescription_date cannot be in the future")

        if errors:
            PRESCRIPTION_CREATED_TOTAL.labels(status="validation_error").inc()
            raise AppValidationError(message="Invalid prescription", detail=errors)

        lines = [m if isinstance(m, Medication) else Medication.from_dict(m) for m in medications]

        photo_hash = ""
        if photo is not None:
            try:
                result = self.pinning_client.pin_file(
                    photo.read(),
                    getattr(photo, "name", "prescription"),
                    metadata={"type": "prescription", "patientId": str(patient_id)},
                )
            except RemoteServiceError:
                PRESCRIPTION_CREATED_TOTAL.labels(status="upload_error").inc()
                raise
            photo_hash = result.ipfs_hash

        record = self.repository.create(
            patient_id=patient_id,
            doctor_id=actor.id,
            medications=lines,
            prescription_date=prescription_date,
            photo_hash=photo_hash,
        )

        PRESCRIPTION_CREATED_TOTAL.labels(status="success").inc()
        logger.info(
            "prescription_created",
            prescription_id=record.id,
            doctor_id=str(actor.id),
            medication_count=len(lines),
            has_photo=bool(photo_hash),
        )
        return record

    # ------------------------------------------------------------------
    # pharmacy side
    # ------------------------------------------------------------------

    def lookup_pending(self, actor: Actor, patient_name=None, doctor_name=None, on_date=None) -> List[PrescriptionRecord]:
        """
        Pending prescriptions, optionally filtered.

        Name filters are case-insensitive substrings; on_date matches the
        prescription date (or creation day when no prescription date exists).
        """
        self._require(actor, Capability.LOOKUP_PRESCRIPTIONS)

        if on_date not in (None, ""):
            on_date = self._parse_date(on_date)
        patient_name = (patient_name or "").strip().lower()
        doctor_name = (doctor_name or "").strip().lower()

        results = []
        for record in self.repository.list_pending():
            if patient_name and patient_name not in record.patient_name.lower():
                continue
            if doctor_name and doctor_name not in record.doctor_name.lower():
                continue
            if on_date:
                record_day = record.prescription_date
                if record_day is None:
                    created = record.created_at
                    record_day = timezone.localtime(created).date() if timezone.is_aware(created) else created.date()
                if record_day != on_date:
                    continue
            results.append(record)
        return results

    def claim_for_queue(self, actor: Actor, prescription_id, patient_public_key=None) -> QueueEntry:
        """
        Take a pending prescription into this pharmacy's queue.

        The server claim is a conditional update; losing the race raises
        BlockError and drops any stale local entry for the prescription.
        """
        self._require(actor, Capability.FULFIL_PRESCRIPTIONS)
        pharmacy_id = str(actor.id)

        record = self.repository.get(prescription_id)

        if patient_public_key is not None and patient_public_key != record.patient_public_key:
            logger.info("claim_public_key_mismatch", prescription_id=record.id, pharmacy_id=pharmacy_id)
            raise PermissionDeniedError(
                message="Invalid patient public key",
                code="INVALID_PUBLIC_KEY",
            )

        if record.status == PrescriptionStatus.IN_PROCESS and record.claimed_by == pharmacy_id:
            PRESCRIPTION_CLAIM_TOTAL.labels(result="already_held").inc()
            existing = self.queue_store.find(pharmacy_id, record.id)
            if existing is not None:
                return existing
            # held on the server but the local entry was lost; rebuild it
            return self.queue_store.put(QueueEntry.from_prescription(record, pharmacy_id, self.clock()))

        if not self.repository.claim(record.id, pharmacy_id):
            PRESCRIPTION_CLAIM_TOTAL.labels(result="conflict").inc()
            if self.queue_store.remove(pharmacy_id, record.id):
                QUEUE_ENTRIES_DROPPED_TOTAL.inc()
            logger.info("prescription_claim_conflict", prescription_id=record.id, pharmacy_id=pharmacy_id)
            raise BlockError(
                message="Prescription is no longer available",
                code="PRESCRIPTION_ALREADY_CLAIMED",
                detail=["Another pharmacy has already taken this prescription"],
            )

        entry = self.queue_store.put(QueueEntry.from_prescription(record, pharmacy_id, self.clock()))

        PRESCRIPTION_CLAIM_TOTAL.labels(result="claimed").inc()
        logger.info("prescription_claimed", prescription_id=record.id, pharmacy_id=pharmacy_id)
        return entry

    def advance_queue_status(self, actor: Actor, entry_id, new_status) -> QueueEntry:
        """
        Move a queue entry through In Process / Ready for Shipment / Completed.

        Completed dispenses on the server first; the entry is only saved once
        that write succeeded.
        """
        self._require(actor, Capability.FULFIL_PRESCRIPTIONS)
        pharmacy_id = str(actor.id)

        try:
            new_status = QueueStatus(new_status)
        except ValueError:
            raise AppValidationError(
                detail=[f"queue_status must be one of: {', '.join(s.value for s in QueueStatus)}"],
            )

        entry = self.queue_store.get(pharmacy_id, entry_id)
        previous = entry.queue_status
        if not check_transition(previous, new_status):
            return entry

        completed_at = None
        if new_status == QueueStatus.COMPLETED:
            self.dispense(entry.id, actor=actor)
            completed_at = self.clock()

        def apply_status(stored):
            # re-checked against the stored entry, which may have moved meanwhile
            if check_transition(stored.queue_status, new_status):
                stored.queue_status = new_status
                if completed_at is not None:
                    stored.completed_at = completed_at

        entry = self.queue_store.modify(pharmacy_id, entry.id, apply_status)

        QUEUE_TRANSITION_TOTAL.labels(from_status=previous.value, to_status=new_status.value).inc()
        logger.info(
            "queue_status_changed",
            prescription_id=entry.id,
            pharmacy_id=pharmacy_id,
            from_status=previous.value,
            to_status=new_status.value,
        )
        return entry

    def set_medication_price(self, actor: Actor, entry_id, medication_index, price) -> QueueEntry:
        """Price one medication line. Unparseable prices become 0."""
        self._require(actor, Capability.FULFIL_PRESCRIPTIONS)
        entry = self.queue_store.get(str(actor.id), entry_id)

        if (
            isinstance(medication_index, bool)
            or not isinstance(medication_index, int)
            or not 0 <= medication_index < len(entry.medication_prices)
        ):
            raise AppValidationError(
                detail=[f"medication_index must be between 0 and {len(entry.medication_prices) - 1}"],
            )

        parsed = parse_price(price)

        def apply_price(stored):
            stored.medication_prices[medication_index].price = parsed
            stored.recompute_total()

        entry = self.queue_store.modify(entry.pharmacy_id, entry.id, apply_price)

        logger.info("queue_price_set", prescription_id=entry.id, medication_index=medication_index)
        return entry

    def dispense(self, prescription_id, actor: Optional[Actor] = None) -> PrescriptionRecord:
        """
        Mark a prescription dispensed. Idempotent.

        When an actor is given it must be a pharmacy holding the claim.
        """
        if actor is not None:
            self._require(actor, Capability.FULFIL_PRESCRIPTIONS)
            record = self.repository.get(prescription_id)
            if record.claimed_by != str(actor.id):
                raise PermissionDeniedError(
                    message="Prescription is not held by this pharmacy",
                    code="PRESCRIPTION_NOT_HELD",
                )
            if record.status == PrescriptionStatus.DISPENSED:
                PRESCRIPTION_DISPENSED_TOTAL.labels(result="already_dispensed").inc()
                return record

        record = self.repository.mark_dispensed(prescription_id)
        PRESCRIPTION_DISPENSED_TOTAL.labels(result="dispensed").inc()
        logger.info("prescription_dispensed", prescription_id=record.id)
        return record

    def remove_from_queue(self, actor: Actor, entry_id) -> None:
        """Drop a local queue entry. The server status is left alone."""
        self._require(actor, Capability.FULFIL_PRESCRIPTIONS)
        if not self.queue_store.remove(str(actor.id), entry_id):
            raise NotFoundError(
                message="Queue entry not found",
                code="QUEUE_ENTRY_NOT_FOUND",
            )
        logger.info("queue_entry_removed", prescription_id=str(entry_id), pharmacy_id=str(actor.id))

    def release_claim(self, actor: Actor, entry_id) -> PrescriptionRecord:
        """
        Give a held, undispensed prescription back to the pending pool.

        The local entry is dropped either way; BlockError if the server no
        longer shows this pharmacy as the holder.
        """
        self._require(actor, Capability.FULFIL_PRESCRIPTIONS)
        pharmacy_id = str(actor.id)

        entry = self.queue_store.get(pharmacy_id, entry_id)
        if entry.queue_status == QueueStatus.COMPLETED:
            raise BlockError(
                message="Completed prescriptions cannot be released",
                code="PRESCRIPTION_ALREADY_DISPENSED",
            )

        released = self.repository.release(entry.id, pharmacy_id)
        self.queue_store.remove(pharmacy_id, entry.id)
        if not released:
            QUEUE_ENTRIES_DROPPED_TOTAL.inc()
            raise BlockError(
                message="Prescription is no longer held by this pharmacy",
                code="PRESCRIPTION_NOT_HELD",
            )

        logger.info("prescription_released", prescription_id=entry.id, pharmacy_id=pharmacy_id)
        return self.repository.get(entry.id)

    def list_queue(self, actor: Actor) -> List[QueueEntry]:
        """
        This pharmacy's queue, reconciled against the server.

        Entries whose prescription vanished or is now held by another pharmacy
        are dropped from the stored queue.
        """
        self._require(actor, Capability.FULFIL_PRESCRIPTIONS)
        pharmacy_id = str(actor.id)

        entries = self.queue_store.load(pharmacy_id)
        if not entries:
            return []

        records = self.repository.get_many(entry.id for entry in entries)
        kept, stale = [], []
        for entry in entries:
            record = records.get(entry.id)
            if record is None or (record.claimed_by and record.claimed_by != pharmacy_id):
                stale.append(entry.id)
            elif record.status == PrescriptionStatus.PENDING:
                # released elsewhere (e.g. by an admin); the claim is gone
                stale.append(entry.id)
            else:
                kept.append(entry)

        if stale:
            # only the stale ids; entries added meanwhile must survive
            dropped = self.queue_store.discard(pharmacy_id, stale)
            QUEUE_ENTRIES_DROPPED_TOTAL.inc(dropped)
            logger.info("queue_reconciled", pharmacy_id=pharmacy_id, dropped=dropped)
        return kept


def get_lifecycle_manager() -> PrescriptionLifecycleManager:
    """Factory function wiring the production collaborators."""
    return PrescriptionLifecycleManager(
        repository=DjangoPrescriptionRepository(),
        queue_store=get_queue_store(),
        pinning_client=get_pinning_client(),
    )
