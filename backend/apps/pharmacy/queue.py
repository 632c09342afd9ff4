"""
Per-pharmacy prescription queue.

A pharmacy's queue is a JSON array stored under ``pharma_queue_<pharmacy_id>``
in the key-value store. Entries are private workflow records overlaid on the
server-side prescription status; they are never shared between pharmacies.
"""

import enum
import json
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import List, Optional

import structlog
from django.utils.dateparse import parse_datetime

from apps.core.exceptions import BlockError, NotFoundError
from apps.storage.keyvalue import KeyValueStore, RedisKeyValueStore

logger = structlog.get_logger(__name__)

QUEUE_KEY_PREFIX = "pharma_queue_"
ZERO = Decimal("0.00")
CENTS = Decimal("0.01")


class QueueStatus(str, enum.Enum):
    IN_PROCESS = "In Process"
    READY_FOR_SHIPMENT = "Ready for Shipment"
    COMPLETED = "Completed"


# Completed is terminal: reaching it has already dispensed the prescription
ALLOWED_TRANSITIONS = {
    QueueStatus.IN_PROCESS: frozenset({QueueStatus.READY_FOR_SHIPMENT, QueueStatus.COMPLETED}),
    QueueStatus.READY_FOR_SHIPMENT: frozenset({QueueStatus.IN_PROCESS, QueueStatus.COMPLETED}),
    QueueStatus.COMPLETED: frozenset(),
}


def check_transition(current: QueueStatus, new: QueueStatus) -> bool:
    """
    Validate a queue status change.

    Returns False for a same-state no-op, True for an allowed change, and
    raises BlockError for anything else.
    """
    if current == new:
        return False
    if new not in ALLOWED_TRANSITIONS[current]:
        raise BlockError(
            message="Queue status change not allowed",
            code="INVALID_QUEUE_TRANSITION",
            detail=[f"Cannot move from '{current.value}' to '{new.value}'"],
        )
    return True


def parse_price(value) -> Decimal:
    """
    Parse a price as a non-negative decimal with two places.

    Anything that is not a finite, non-negative number becomes 0.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    if not price.is_finite() or price <= 0:
        return ZERO
    try:
        return price.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return ZERO


def _iso(value) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


def _as_datetime(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return parse_datetime(value)


@dataclass
class MedicationPrice:
    name: str
    dosage: str
    frequency: str = ""
    duration: str = ""
    price: Decimal = ZERO

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "dosage": self.dosage,
            "frequency": self.frequency,
            "duration": self.duration,
            "price": str(self.price),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MedicationPrice":
        return cls(
            name=data.get("name", ""),
            dosage=data.get("dosage", ""),
            frequency=data.get("frequency", ""),
            duration=data.get("duration", ""),
            price=parse_price(data.get("price")),
        )


@dataclass
class QueueEntry:
    """One claimed prescription in a pharmacy's queue. id is the prescription id."""

    id: str
    pharmacy_id: str
    patient_id: str
    doctor_id: str
    added_to_queue_at: datetime
    patient_name: str = ""
    doctor_name: str = ""
    prescription_date: Optional[str] = None
    created_at: Optional[str] = None
    photo_hash: str = ""
    queue_status: QueueStatus = QueueStatus.IN_PROCESS
    completed_at: Optional[datetime] = None
    medication_prices: List[MedicationPrice] = field(default_factory=list)
    total_price: Decimal = ZERO

    @classmethod
    def from_prescription(cls, record, pharmacy_id, now: datetime) -> "QueueEntry":
        """Snapshot a prescription record into a fresh, unpriced entry."""
        return cls(
            id=str(record.id),
            pharmacy_id=str(pharmacy_id),
            patient_id=str(record.patient_id),
            patient_name=record.patient_name,
            doctor_id=str(record.doctor_id),
            doctor_name=record.doctor_name,
            prescription_date=_iso(record.prescription_date),
            created_at=_iso(record.created_at),
            photo_hash=record.photo_hash,
            queue_status=QueueStatus.IN_PROCESS,
            added_to_queue_at=now,
            medication_prices=[
                MedicationPrice(
                    name=m.name,
                    dosage=m.dosage,
                    frequency=m.frequency,
                    duration=m.duration,
                )
                for m in record.medications
            ],
            total_price=ZERO,
        )

    def recompute_total(self) -> Decimal:
        self.total_price = sum((line.price for line in self.medication_prices), ZERO)
        return self.total_price

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pharmacy_id": self.pharmacy_id,
            "patient_id": self.patient_id,
            "patient_name": self.patient_name,
            "doctor_id": self.doctor_id,
            "doctor_name": self.doctor_name,
            "prescription_date": self.prescription_date,
            "created_at": self.created_at,
            "photo_hash": self.photo_hash,
            "queue_status": self.queue_status.value,
            "added_to_queue_at": _iso(self.added_to_queue_at),
            "completed_at": _iso(self.completed_at),
            "medication_prices": [line.to_dict() for line in self.medication_prices],
            "total_price": str(self.total_price),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QueueEntry":
        entry = cls(
            id=data["id"],
            pharmacy_id=data["pharmacy_id"],
            patient_id=data.get("patient_id", ""),
            patient_name=data.get("patient_name", ""),
            doctor_id=data.get("doctor_id", ""),
            doctor_name=data.get("doctor_name", ""),
            prescription_date=data.get("prescription_date"),
            created_at=data.get("created_at"),
            photo_hash=data.get("photo_hash", ""),
            queue_status=QueueStatus(data.get("queue_status", QueueStatus.IN_PROCESS.value)),
            added_to_queue_at=_as_datetime(data.get("added_to_queue_at")),
            completed_at=_as_datetime(data.get("completed_at")),
            medication_prices=[MedicationPrice.from_dict(line) for line in data.get("medication_prices", [])],
        )
        entry.recompute_total()
        return entry


class PharmacyQueueStore:
    """
    Load and mutate one pharmacy's queue in a key-value store.

    The queue is a JSON array under one key. Every mutation goes through
    the store's atomic update, so overlapping requests from the same
    pharmacy cannot drop each other's entries.
    """

    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    @staticmethod
    def key(pharmacy_id) -> str:
        return f"{QUEUE_KEY_PREFIX}{pharmacy_id}"

    @staticmethod
    def _decode(pharmacy_id, raw) -> List[QueueEntry]:
        if not raw:
            return []
        try:
            return [QueueEntry.from_dict(item) for item in json.loads(raw)]
        except (ValueError, KeyError, TypeError) as exc:
            # the queue is a cache over server state; an unreadable one starts over
            logger.warning("pharmacy_queue_corrupt", pharmacy_id=str(pharmacy_id), error=str(exc))
            return []

    @staticmethod
    def _encode(entries: List[QueueEntry]) -> Optional[str]:
        if not entries:
            return None
        return json.dumps([entry.to_dict() for entry in entries])

    def load(self, pharmacy_id) -> List[QueueEntry]:
        return self._decode(pharmacy_id, self.kv.get(self.key(pharmacy_id)))

    def find(self, pharmacy_id, entry_id) -> Optional[QueueEntry]:
        for entry in self.load(pharmacy_id):
            if entry.id == str(entry_id):
                return entry
        return None

    def get(self, pharmacy_id, entry_id) -> QueueEntry:
        entry = self.find(pharmacy_id, entry_id)
        if entry is None:
            raise NotFoundError(
                message="Queue entry not found",
                code="QUEUE_ENTRY_NOT_FOUND",
                detail=[f"No entry {entry_id} in this pharmacy's queue"],
            )
        return entry

    def put(self, entry: QueueEntry) -> QueueEntry:
        """Insert or replace an entry, keeping queue order."""

        def apply(raw):
            entries = self._decode(entry.pharmacy_id, raw)
            for index, existing in enumerate(entries):
                if existing.id == entry.id:
                    entries[index] = entry
                    break
            else:
                entries.append(entry)
            return self._encode(entries), entry

        return self.kv.update(self.key(entry.pharmacy_id), apply)

    def modify(self, pharmacy_id, entry_id, func) -> QueueEntry:
        """Apply func to the stored entry in place and save it, atomically."""

        def apply(raw):
            entries = self._decode(pharmacy_id, raw)
            for entry in entries:
                if entry.id == str(entry_id):
                    func(entry)
                    return self._encode(entries), entry
            raise NotFoundError(
                message="Queue entry not found",
                code="QUEUE_ENTRY_NOT_FOUND",
                detail=[f"No entry {entry_id} in this pharmacy's queue"],
            )

        return self.kv.update(self.key(pharmacy_id), apply)

    def remove(self, pharmacy_id, entry_id) -> bool:
        return self.discard(pharmacy_id, [entry_id]) > 0

    def discard(self, pharmacy_id, entry_ids) -> int:
        """Drop every listed entry still present. Returns how many went."""
        ids = {str(entry_id) for entry_id in entry_ids}

        def apply(raw):
            entries = self._decode(pharmacy_id, raw)
            remaining = [entry for entry in entries if entry.id not in ids]
            return self._encode(remaining), len(entries) - len(remaining)

        return self.kv.update(self.key(pharmacy_id), apply)


def get_queue_store() -> PharmacyQueueStore:
    """Factory function for the production queue store (Redis)."""
    return PharmacyQueueStore(RedisKeyValueStore())
