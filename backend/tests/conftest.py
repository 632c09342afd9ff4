"""
Pytest configuration and fixtures.
"""

from unittest.mock import patch

import pytest
from rest_framework.test import APIClient

from apps.accounts.roles import Role
from apps.accounts.services import AccountService
from apps.pharmacy.queue import PharmacyQueueStore
from apps.storage.keyvalue import InMemoryKeyValueStore
from apps.storage.pinning import MockPinningClient


@pytest.fixture(autouse=True)
def pinning_client():
    """Mock pinning client everywhere a client is built, so no HTTP leaves the test."""
    client = MockPinningClient()
    with patch("apps.prescriptions.lifecycle.get_pinning_client", return_value=client), \
            patch("apps.documents.views.get_pinning_client", return_value=client), \
            patch("apps.storage.tasks.get_pinning_client", return_value=client):
        yield client


@pytest.fixture(autouse=True)
def queue_kv():
    """In-memory key-value store behind every pharmacy queue instead of Redis."""
    kv = InMemoryKeyValueStore()
    with patch("apps.prescriptions.lifecycle.get_queue_store", side_effect=lambda: PharmacyQueueStore(kv)):
        yield kv


@pytest.fixture
def api_client():
    """Return an API client for testing."""
    return APIClient()


@pytest.fixture
def make_profile(db):
    """Register an account and return its profile."""
    counter = {"n": 0}

    def _make(role, name=None, email=None, password="password123", mobile="555-0100"):
        counter["n"] += 1
        name = name or f"{role.title()} {counter['n']}"
        email = email or f"{role}{counter['n']}@example.com"
        profile, _ = AccountService.register(
            name=name, email=email, password=password, role=role, mobile=mobile,
        )
        return profile

    return _make


@pytest.fixture
def patient(make_profile):
    return make_profile(Role.PATIENT, name="John Patient", email="patient@example.com")


@pytest.fixture
def doctor(make_profile):
    return make_profile(Role.DOCTOR, name="Dr. Jane Smith", email="doctor@example.com")


@pytest.fixture
def pharmacy(make_profile):
    return make_profile(Role.PHARMA, name="MedPlus Pharmacy", email="pharma@example.com")


@pytest.fixture
def other_pharmacy(make_profile):
    return make_profile(Role.PHARMA, name="City Drugs", email="citydrugs@example.com")


@pytest.fixture
def client_for():
    """Return an API client authenticated with the profile's token."""

    def _client(profile):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Token {profile.user.auth_token.key}")
        return client

    return _client


@pytest.fixture
def sample_medications():
    return [
        {"name": "Amoxicillin", "dosage": "500mg", "frequency": "3 times daily", "duration": "7 days"},
        {"name": "Ibuprofen", "dosage": "400mg", "frequency": "as needed", "duration": "for pain"},
    ]
