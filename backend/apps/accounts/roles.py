"""
Roles and the capabilities each role grants.

Views and services ask "may this actor do X" through capabilities; they
never compare role strings.
"""

import enum
import uuid
from dataclasses import dataclass

from django.db import models


class Role(models.TextChoices):
    PATIENT = "patient", "Patient"
    DOCTOR = "doctor", "Doctor"
    PHARMA = "pharma", "Pharmacy"


class Capability(str, enum.Enum):
    UPLOAD_DOCUMENTS = "upload_documents"
    BOOK_APPOINTMENTS = "book_appointments"
    VIEW_OWN_PRESCRIPTIONS = "view_own_prescriptions"
    MANAGE_APPOINTMENTS = "manage_appointments"
    SEARCH_PATIENTS = "search_patients"
    ISSUE_PRESCRIPTIONS = "issue_prescriptions"
    LOOKUP_PRESCRIPTIONS = "lookup_prescriptions"
    FULFIL_PRESCRIPTIONS = "fulfil_prescriptions"


ROLE_CAPABILITIES = {
    Role.PATIENT: frozenset({
        Capability.UPLOAD_DOCUMENTS,
        Capability.BOOK_APPOINTMENTS,
        Capability.VIEW_OWN_PRESCRIPTIONS,
    }),
    Role.DOCTOR: frozenset({
        Capability.MANAGE_APPOINTMENTS,
        Capability.SEARCH_PATIENTS,
        Capability.ISSUE_PRESCRIPTIONS,
    }),
    Role.PHARMA: frozenset({
        Capability.LOOKUP_PRESCRIPTIONS,
        Capability.FULFIL_PRESCRIPTIONS,
    }),
}


def capabilities_for(role) -> frozenset:
    try:
        return ROLE_CAPABILITIES[Role(role)]
    except ValueError:
        return frozenset()


@dataclass(frozen=True)
class Actor:
    """
    The authenticated identity a service acts on behalf of.

    Decoupled from the ORM so the prescription workflow can run against
    any repository.
    """
    id: uuid.UUID
    role: Role
    name: str = ""

    def can(self, capability: Capability) -> bool:
        return capability in capabilities_for(self.role)
