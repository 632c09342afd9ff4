"""
Integration tests for the appointments API.
"""

from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from apps.accounts.roles import Role
from apps.appointments.models import Appointment


def _book(client, doctor, days=1):
    return client.post(
        reverse("appointment-list"),
        {"doctor": str(doctor.id), "date": (timezone.now() + timedelta(days=days)).isoformat()},
        format="json",
    )


@pytest.mark.django_db
class TestBooking:
    """Patients booking with doctors."""

    def test_patient_books_pending_appointment(self, client_for, patient, doctor):
        response = _book(client_for(patient), doctor)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["status"] == "pending"
        assert data["patient"] == str(patient.id)
        assert data["doctor_name"] == "Dr. Jane Smith"

    def test_later_today_is_allowed(self, client_for, patient, doctor):
        response = _book(client_for(patient), doctor, days=0)
        assert response.status_code == status.HTTP_201_CREATED

    def test_past_date_rejected(self, client_for, patient, doctor):
        response = _book(client_for(patient), doctor, days=-2)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "date cannot be in the past" in str(response.json()["detail"])
        assert Appointment.objects.count() == 0

    def test_booking_requires_doctor_profile(self, client_for, patient, pharmacy):
        response = _book(client_for(patient), pharmacy)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_doctor_cannot_book(self, client_for, doctor):
        response = _book(client_for(doctor), doctor)
        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestAppointmentLists:
    """Each role sees its own side of the schedule."""

    def test_doctor_list_ordered_by_status_priority(self, client_for, patient, doctor):
        now = timezone.now()
        for offset, appt_status in [
            (1, Appointment.Status.COMPLETED),
            (2, Appointment.Status.CONFIRMED),
            (3, Appointment.Status.PENDING),
            (4, Appointment.Status.REJECTED),
            (5, Appointment.Status.PENDING),
        ]:
            Appointment.objects.create(
                patient=patient, doctor=doctor, date=now + timedelta(days=offset), status=appt_status,
            )

        response = client_for(doctor).get(reverse("appointment-list"))

        assert response.status_code == status.HTTP_200_OK
        results = response.json()["results"]
        assert [a["status"] for a in results] == ["pending", "pending", "confirmed", "rejected", "completed"]
        # newest first within a status
        assert results[0]["date"] > results[1]["date"]

    def test_lists_are_scoped(self, client_for, make_profile, patient, doctor):
        other_patient = make_profile(Role.PATIENT, name="Sarah Johnson")
        other_doctor = make_profile(Role.DOCTOR, name="Dr. Robert Wilson")
        _book(client_for(patient), doctor)
        _book(client_for(other_patient), other_doctor)

        patient_view = client_for(patient).get(reverse("appointment-list")).json()["results"]
        doctor_view = client_for(other_doctor).get(reverse("appointment-list")).json()["results"]

        assert [a["doctor_name"] for a in patient_view] == ["Dr. Jane Smith"]
        assert [a["patient_name"] for a in doctor_view] == ["Sarah Johnson"]

    def test_pharmacy_has_no_appointments(self, client_for, pharmacy):
        response = client_for(pharmacy).get(reverse("appointment-list"))
        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestAppointmentStatus:
    """Doctors changing appointment status."""

    @pytest.fixture
    def appointment(self, client_for, patient, doctor):
        return _book(client_for(patient), doctor).json()

    @pytest.mark.parametrize("sequence", [
        ["confirmed", "completed"],
        ["rejected", "pending"],
        ["completed", "confirmed", "pending"],
    ])
    def test_any_status_may_follow_any_other(self, client_for, doctor, appointment, sequence):
        url = reverse("appointment-status", args=[appointment["id"]])
        client = client_for(doctor)

        for new_status in sequence:
            response = client.post(url, {"status": new_status}, format="json")
            assert response.status_code == status.HTTP_200_OK
            assert response.json()["status"] == new_status

        assert Appointment.objects.get(pk=appointment["id"]).status == sequence[-1]

    def test_other_doctor_forbidden(self, client_for, make_profile, appointment):
        stranger = make_profile(Role.DOCTOR, name="Dr. Emily Davis")

        response = client_for(stranger).post(
            reverse("appointment-status", args=[appointment["id"]]), {"status": "confirmed"}, format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert Appointment.objects.get(pk=appointment["id"]).status == "pending"

    def test_patient_cannot_change_status(self, client_for, patient, appointment):
        response = client_for(patient).post(
            reverse("appointment-status", args=[appointment["id"]]), {"status": "confirmed"}, format="json",
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unknown_status_rejected(self, client_for, doctor, appointment):
        response = client_for(doctor).post(
            reverse("appointment-status", args=[appointment["id"]]), {"status": "cancelled"}, format="json",
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
