"""
Seed demo data for development.
Usage: python manage.py seed_data [--password secret]
"""

from datetime import timedelta

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from apps.accounts.models import Profile
from apps.accounts.roles import Role
from apps.accounts.services import AccountService
from apps.appointments.models import Appointment
from apps.documents.models import Document
from apps.prescriptions.models import Prescription

PROFILES = [
    {"name": "John Patient", "email": "patient@example.com", "mobile": "555-123-4567", "role": Role.PATIENT},
    {"name": "Sarah Johnson", "email": "sarah@example.com", "mobile": "555-222-3333", "role": Role.PATIENT},
    {"name": "Michael Brown", "email": "michael@example.com", "mobile": "555-444-5555", "role": Role.PATIENT},
    {"name": "Dr. Jane Smith", "email": "doctor@example.com", "mobile": "555-987-6543", "role": Role.DOCTOR},
    {"name": "Dr. Robert Wilson", "email": "robert@example.com", "mobile": "555-666-7777", "role": Role.DOCTOR},
    {"name": "Dr. Emily Davis", "email": "emily@example.com", "mobile": "555-888-9999", "role": Role.DOCTOR},
    {"name": "MedPlus Pharmacy", "email": "pharma@example.com", "mobile": "555-789-0123", "role": Role.PHARMA},
    {"name": "City Drugs", "email": "citydrugs@example.com", "mobile": "555-111-2222", "role": Role.PHARMA},
    {"name": "HealthRx Pharmacy", "email": "healthrx@example.com", "mobile": "555-333-4444", "role": Role.PHARMA},
]

# (patient email, doctor email, days from now, status)
APPOINTMENTS = [
    ("patient@example.com", "doctor@example.com", 2, Appointment.Status.PENDING),
    ("patient@example.com", "robert@example.com", 5, Appointment.Status.CONFIRMED),
    ("patient@example.com", "doctor@example.com", -3, Appointment.Status.COMPLETED),
    ("sarah@example.com", "doctor@example.com", 1, Appointment.Status.PENDING),
    ("michael@example.com", "emily@example.com", 3, Appointment.Status.CONFIRMED),
    ("sarah@example.com", "robert@example.com", -5, Appointment.Status.COMPLETED),
]

# (owner email, name, hash, days ago uploaded, days ago tested)
DOCUMENTS = [
    ("patient@example.com", "Blood Test Results", "ipfs_hash_123", 10, 12),
    ("patient@example.com", "X-Ray Report", "ipfs_hash_456", 20, 22),
    ("patient@example.com", "Vaccination Record", "ipfs_hash_789", 30, 30),
    ("sarah@example.com", "MRI Scan", "ipfs_hash_abc", 15, 18),
    ("michael@example.com", "Allergy Test Results", "ipfs_hash_def", 25, 28),
    ("sarah@example.com", "Annual Physical Results", "ipfs_hash_ghi", 40, 42),
]

# (patient email, doctor email, medication, days ago, dispensing pharmacy or None)
PRESCRIPTIONS = [
    ("patient@example.com", "doctor@example.com",
     {"name": "Amoxicillin", "dosage": "500mg", "frequency": "3 times daily", "duration": "7 days"}, 5, None),
    ("patient@example.com", "doctor@example.com",
     {"name": "Ibuprofen", "dosage": "400mg", "frequency": "as needed", "duration": "for pain"}, 15, "pharma@example.com"),
    ("patient@example.com", "doctor@example.com",
     {"name": "Lisinopril", "dosage": "10mg", "frequency": "once daily", "duration": "30 days"}, 2, None),
    ("sarah@example.com", "robert@example.com",
     {"name": "Metformin", "dosage": "500mg", "frequency": "twice daily", "duration": "90 days"}, 3, None),
    ("michael@example.com", "emily@example.com",
     {"name": "Atorvastatin", "dosage": "20mg", "frequency": "once daily", "duration": "30 days"}, 10, "citydrugs@example.com"),
]


class Command(BaseCommand):
    help = "Seed database with demo patients, doctors, pharmacies and records"

    def add_arguments(self, parser):
        parser.add_argument("--password", default="password123", help="Password for every seeded account")

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding database...")
        now = timezone.now()

        profiles = {}
        created = 0
        for data in PROFILES:
            profile = Profile.objects.filter(email__iexact=data["email"]).first()
            if profile is None:
                profile, _ = AccountService.register(password=options["password"], **data)
                created += 1
            profiles[data["email"]] = profile
        self.stdout.write(f"  Created {created} accounts ({len(profiles) - created} already present)")

        for patient, doctor, days, status in APPOINTMENTS:
            Appointment.objects.get_or_create(
                patient=profiles[patient],
                doctor=profiles[doctor],
                status=status,
                defaults={"date": now + timedelta(days=days)},
            )
        self.stdout.write(f"  Seeded {len(APPOINTMENTS)} appointments")

        for owner, name, ipfs_hash, uploaded, tested in DOCUMENTS:
            Document.objects.get_or_create(
                owner=profiles[owner],
                ipfs_hash=ipfs_hash,
                defaults={
                    "name": name,
                    "type": Document.Type.MEDICAL_REPORT,
                    "test_date": (now - timedelta(days=tested)).date(),
                },
            )
        self.stdout.write(f"  Seeded {len(DOCUMENTS)} documents")

        for patient, doctor, medication, days_ago, pharmacy in PRESCRIPTIONS:
            if Prescription.objects.filter(
                patient=profiles[patient],
                medications__0__name=medication["name"],
            ).exists():
                continue
            Prescription.objects.create(
                patient=profiles[patient],
                doctor=profiles[doctor],
                medications=[medication],
                prescription_date=(now - timedelta(days=days_ago)).date(),
                status=Prescription.Status.DISPENSED if pharmacy else Prescription.Status.PENDING,
                claimed_by=profiles[pharmacy] if pharmacy else None,
            )
        self.stdout.write(f"  Seeded {len(PRESCRIPTIONS)} prescriptions")

        self.stdout.write(self.style.SUCCESS("Done!"))
