"""
Integration tests for the accounts API.
"""

import pytest
from django.urls import reverse
from rest_framework import status
from rest_framework.authtoken.models import Token

from apps.accounts.models import Profile
from apps.accounts.roles import Role


@pytest.fixture
def registration_data():
    return {
        "name": "Sarah Johnson",
        "email": "Sarah@Example.com",
        "mobile": "555-222-3333",
        "password": "s3cret-pass",
        "role": "patient",
    }


@pytest.mark.django_db
class TestRegisterAndLogin:
    """Registration, login and logout."""

    def test_register_returns_token_and_profile(self, api_client, registration_data):
        response = api_client.post(reverse("account-register"), registration_data, format="json")

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["token"]
        assert data["profile"]["email"] == "sarah@example.com"
        assert data["profile"]["role"] == "patient"

        profile = Profile.objects.get(email="sarah@example.com")
        assert data["profile"]["public_key"] == str(profile.id)[:15]
        assert profile.user.check_password("s3cret-pass")

    def test_duplicate_email_rejected_any_case(self, api_client, registration_data):
        api_client.post(reverse("account-register"), registration_data, format="json")
        registration_data["email"] = "SARAH@EXAMPLE.COM"
        registration_data["role"] = "doctor"

        response = api_client.post(reverse("account-register"), registration_data, format="json")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["code"] == "EMAIL_ALREADY_REGISTERED"
        assert Profile.objects.count() == 1

    def test_unknown_role_rejected(self, api_client, registration_data):
        registration_data["role"] = "admin"
        response = api_client.post(reverse("account-register"), registration_data, format="json")
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_login_with_matching_role(self, api_client, patient):
        response = api_client.post(
            reverse("account-login"),
            {"email": "PATIENT@example.com", "password": "password123", "role": "patient"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["token"] == Token.objects.get(user=patient.user).key
        assert response.json()["profile"]["id"] == str(patient.id)

    def test_login_role_mismatch_is_bad_credentials(self, api_client, patient):
        response = api_client.post(
            reverse("account-login"),
            {"email": "patient@example.com", "password": "password123", "role": "doctor"},
            format="json",
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "AUTHENTICATION_FAILED"

    def test_login_wrong_password(self, api_client, patient):
        response = api_client.post(
            reverse("account-login"),
            {"email": "patient@example.com", "password": "nope"},
            format="json",
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_logout_revokes_token(self, client_for, patient):
        client = client_for(patient)

        response = client.post(reverse("account-logout"))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not Token.objects.filter(user=patient.user).exists()
        assert client.get(reverse("account-me")).status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestProfile:
    """Own profile read/update."""

    def test_me_requires_authentication(self, api_client):
        response = api_client.get(reverse("account-me"))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "NOT_AUTHENTICATED"

    def test_update_name_and_mobile_only(self, client_for, patient):
        response = client_for(patient).patch(
            reverse("account-me"),
            {"name": "John Q. Patient", "mobile": "555-000-1111", "role": "doctor", "public_key": "x"},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        patient.refresh_from_db()
        assert patient.name == "John Q. Patient"
        assert patient.mobile == "555-000-1111"
        assert patient.role == Role.PATIENT
        assert patient.public_key == str(patient.id)[:15]


@pytest.mark.django_db
class TestDirectory:
    """Doctor directory and doctor-side patient search."""

    def test_doctor_directory_lists_only_doctors(self, client_for, patient, doctor, pharmacy):
        response = client_for(patient).get(reverse("doctor-list"))

        assert response.status_code == status.HTTP_200_OK
        names = [d["name"] for d in response.json()["results"]]
        assert names == ["Dr. Jane Smith"]

    def test_patient_search_by_name(self, client_for, doctor, patient, make_profile):
        make_profile(Role.PATIENT, name="Sarah Johnson")

        response = client_for(doctor).get(reverse("patient-list"), {"search": "JOHN"})

        assert response.status_code == status.HTTP_200_OK
        results = response.json()["results"]
        assert {p["name"] for p in results} == {"John Patient", "Sarah Johnson"}
        assert "documents" in results[0]
        assert "prescriptions" in results[0]

    def test_patient_search_includes_prescriptions(self, client_for, doctor, patient):
        client = client_for(doctor)
        client.post(
            reverse("prescription-list"),
            {
                "patient_id": str(patient.id),
                "medications": [{"name": "Amoxicillin", "dosage": "500mg"}],
                "prescription_date": "2020-01-01",
            },
            format="json",
        )

        response = client.get(reverse("patient-detail", args=[patient.id]))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["prescriptions"][0]["medications"][0]["name"] == "Amoxicillin"

    def test_patients_cannot_search(self, client_for, patient):
        response = client_for(patient).get(reverse("patient-list"))
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "PERMISSION_DENIED"
