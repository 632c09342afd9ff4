"""
Integration tests for the health check and demo seeding.
"""

import pytest
from django.core.management import call_command
from django.urls import reverse
from rest_framework import status

from apps.accounts.models import Profile
from apps.accounts.services import AccountService
from apps.appointments.models import Appointment
from apps.prescriptions.models import Prescription


@pytest.mark.django_db
def test_health_needs_no_credentials(api_client):
    response = api_client.get(reverse("health"))

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "healthy", "database": "ok"}


@pytest.mark.django_db
class TestSeedData:
    """The seed_data management command."""

    def test_seeds_demo_accounts(self):
        call_command("seed_data", "--password", "demo-pass")

        assert Profile.objects.count() == 9
        assert Appointment.objects.count() == 6
        assert Prescription.objects.filter(status=Prescription.Status.PENDING).count() == 3

        profile, _ = AccountService.login("doctor@example.com", "demo-pass", "doctor")
        assert profile.name == "Dr. Jane Smith"

    def test_running_twice_is_idempotent(self):
        call_command("seed_data")
        call_command("seed_data")

        assert Profile.objects.count() == 9
        assert Prescription.objects.count() == 5
