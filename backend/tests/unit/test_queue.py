"""
Unit tests for the pharmacy queue: price parsing, status transitions and storage.
"""

import threading
from datetime import date, datetime, timezone as dt_timezone
from decimal import Decimal

import pytest

from apps.core.exceptions import BlockError, NotFoundError
from apps.pharmacy.queue import (
    MedicationPrice,
    PharmacyQueueStore,
    QueueEntry,
    QueueStatus,
    check_transition,
    parse_price,
)
from apps.prescriptions.records import Medication, PrescriptionRecord
from apps.storage.keyvalue import InMemoryKeyValueStore

NOW = datetime(2025, 3, 14, 10, 30, tzinfo=dt_timezone.utc)


def _record(**overrides):
    data = {
        "id": "rx-1",
        "patient_id": "patient-1",
        "patient_name": "John Patient",
        "doctor_id": "doctor-1",
        "doctor_name": "Dr. Jane Smith",
        "prescription_date": date(2025, 3, 10),
        "created_at": datetime(2025, 3, 10, 9, 0, tzinfo=dt_timezone.utc),
        "medications": [
            Medication(name="Amoxicillin", dosage="500mg", frequency="3 times daily", duration="7 days"),
            Medication(name="Ibuprofen", dosage="400mg"),
        ],
    }
    data.update(overrides)
    return PrescriptionRecord(**data)


class TestParsePrice:
    """Price input is coerced, never rejected."""

    @pytest.mark.parametrize("raw, expected", [
        ("12.50", Decimal("12.50")),
        ("12.5", Decimal("12.50")),
        (" 7 ", Decimal("7.00")),
        (3.255, Decimal("3.26")),
        (10, Decimal("10.00")),
    ])
    def test_valid_prices(self, raw, expected):
        assert parse_price(raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "", None, "-1", -0.01, "NaN", "Infinity", True, "1e400", []])
    def test_invalid_prices_become_zero(self, raw):
        assert parse_price(raw) == Decimal("0")


class TestTransitions:
    """Queue status transition table."""

    @pytest.mark.parametrize("current, new", [
        (QueueStatus.IN_PROCESS, QueueStatus.READY_FOR_SHIPMENT),
        (QueueStatus.IN_PROCESS, QueueStatus.COMPLETED),
        (QueueStatus.READY_FOR_SHIPMENT, QueueStatus.IN_PROCESS),
        (QueueStatus.READY_FOR_SHIPMENT, QueueStatus.COMPLETED),
    ])
    def test_allowed(self, current, new):
        assert check_transition(current, new) is True

    @pytest.mark.parametrize("status", list(QueueStatus))
    def test_same_state_is_noop(self, status):
        assert check_transition(status, status) is False

    @pytest.mark.parametrize("new", [QueueStatus.IN_PROCESS, QueueStatus.READY_FOR_SHIPMENT])
    def test_leaving_completed_blocked(self, new):
        with pytest.raises(BlockError) as exc_info:
            check_transition(QueueStatus.COMPLETED, new)
        assert exc_info.value.code == "INVALID_QUEUE_TRANSITION"


class TestQueueEntry:
    """Queue entry snapshot and serialization."""

    def test_from_prescription_starts_unpriced(self):
        entry = QueueEntry.from_prescription(_record(), "pharma-1", NOW)

        assert entry.id == "rx-1"
        assert entry.pharmacy_id == "pharma-1"
        assert entry.queue_status == QueueStatus.IN_PROCESS
        assert entry.prescription_date == "2025-03-10"
        assert [line.name for line in entry.medication_prices] == ["Amoxicillin", "Ibuprofen"]
        assert entry.total_price == Decimal("0")

    def test_recompute_total(self):
        entry = QueueEntry.from_prescription(_record(), "pharma-1", NOW)
        entry.medication_prices[0].price = Decimal("12.50")
        entry.medication_prices[1].price = Decimal("0.75")

        assert entry.recompute_total() == Decimal("13.25")

    def test_dict_form_uses_display_status_and_string_prices(self):
        entry = QueueEntry.from_prescription(_record(), "pharma-1", NOW)
        entry.queue_status = QueueStatus.READY_FOR_SHIPMENT
        entry.medication_prices[0].price = Decimal("4.00")
        entry.recompute_total()

        data = entry.to_dict()

        assert data["queue_status"] == "Ready for Shipment"
        assert data["medication_prices"][0]["price"] == "4.00"
        assert data["total_price"] == "4.00"
        assert data["completed_at"] is None
        assert data["added_to_queue_at"] == NOW.isoformat()

    def test_from_dict_recomputes_total(self):
        data = QueueEntry.from_prescription(_record(), "pharma-1", NOW).to_dict()
        data["medication_prices"][0]["price"] = "2.00"
        data["total_price"] = "999.00"

        entry = QueueEntry.from_dict(data)

        assert entry.total_price == Decimal("2.00")
        assert entry.added_to_queue_at == NOW

    def test_medication_price_from_dict_coerces_price(self):
        line = MedicationPrice.from_dict({"name": "Amoxicillin", "dosage": "500mg", "price": "oops"})
        assert line.price == Decimal("0")


class TestPharmacyQueueStore:
    """Key-value persistence of a pharmacy's queue."""

    @pytest.fixture
    def store(self):
        return PharmacyQueueStore(InMemoryKeyValueStore())

    def test_key_format(self):
        assert PharmacyQueueStore.key("abc") == "pharma_queue_abc"

    def test_put_appends_then_replaces(self, store):
        first = QueueEntry.from_prescription(_record(), "pharma-1", NOW)
        second = QueueEntry.from_prescription(_record(id="rx-2"), "pharma-1", NOW)
        store.put(first)
        store.put(second)

        first.queue_status = QueueStatus.COMPLETED
        store.put(first)

        entries = store.load("pharma-1")
        assert [e.id for e in entries] == ["rx-1", "rx-2"]
        assert entries[0].queue_status == QueueStatus.COMPLETED

    def test_get_missing_entry(self, store):
        with pytest.raises(NotFoundError):
            store.get("pharma-1", "rx-404")

    def test_remove(self, store):
        store.put(QueueEntry.from_prescription(_record(), "pharma-1", NOW))

        assert store.remove("pharma-1", "rx-1") is True
        assert store.remove("pharma-1", "rx-1") is False
        assert store.load("pharma-1") == []

    def test_queues_are_keyed_per_pharmacy(self, store):
        store.put(QueueEntry.from_prescription(_record(), "pharma-1", NOW))
        assert store.load("pharma-2") == []

    def test_corrupt_queue_reads_as_empty(self, store):
        store.kv.set(store.key("pharma-1"), "{not json")
        assert store.load("pharma-1") == []

    def test_put_over_corrupt_queue_starts_fresh(self, store):
        store.kv.set(store.key("pharma-1"), "{not json")
        store.put(QueueEntry.from_prescription(_record(), "pharma-1", NOW))
        assert [e.id for e in store.load("pharma-1")] == ["rx-1"]

    def test_emptied_queue_deletes_key(self, store):
        store.put(QueueEntry.from_prescription(_record(), "pharma-1", NOW))
        store.remove("pharma-1", "rx-1")
        assert store.key("pharma-1") not in store.kv.data

    def test_discard_only_drops_listed_ids(self, store):
        for rx_id in ("rx-1", "rx-2", "rx-3"):
            store.put(QueueEntry.from_prescription(_record(id=rx_id), "pharma-1", NOW))

        assert store.discard("pharma-1", ["rx-1", "rx-3", "rx-404"]) == 2
        assert [e.id for e in store.load("pharma-1")] == ["rx-2"]

    def test_modify_updates_in_place(self, store):
        store.put(QueueEntry.from_prescription(_record(), "pharma-1", NOW))

        entry = store.modify("pharma-1", "rx-1", lambda e: setattr(e, "queue_status", QueueStatus.READY_FOR_SHIPMENT))

        assert entry.queue_status == QueueStatus.READY_FOR_SHIPMENT
        assert store.get("pharma-1", "rx-1").queue_status == QueueStatus.READY_FOR_SHIPMENT

    def test_modify_missing_entry(self, store):
        with pytest.raises(NotFoundError):
            store.modify("pharma-1", "rx-404", lambda e: None)

    def test_parallel_puts_keep_every_entry(self, store):
        threads = [
            threading.Thread(
                target=store.put,
                args=(QueueEntry.from_prescription(_record(id=f"rx-{n}"), "pharma-1", NOW),),
            )
            for n in range(20)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(store.load("pharma-1")) == 20
