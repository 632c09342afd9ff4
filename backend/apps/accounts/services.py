"""
Account services: registration, login and patient search.
"""

import structlog
from django.contrib.auth import authenticate, get_user_model
from django.db import transaction
from prometheus_client import Counter
from rest_framework.authtoken.models import Token

from apps.core.exceptions import AppValidationError, AuthenticationFailedError, BlockError

from .models import Profile
from .roles import Role

logger = structlog.get_logger(__name__)

LOGIN_ATTEMPTS_TOTAL = Counter(
    "login_attempts_total",
    "Login attempts",
    ["result"],  # success, bad_credentials, role_mismatch
)
REGISTRATIONS_TOTAL = Counter(
    "registrations_total",
    "Accounts registered",
    ["role"],
)


class AccountService:
    """
    Registration and authentication against Django's auth user.

    The auth username is the lower-cased email, so lookups are
    case-insensitive everywhere.
    """

    @staticmethod
    def normalize_email(email: str) -> str:
        return (email or "").strip().lower()

    @classmethod
    def register(cls, name, email, password, role, mobile=""):
        email = cls.normalize_email(email)
        if role not in Role.values:
            raise AppValidationError(detail=f"Unknown role '{role}'")

        User = get_user_model()
        if (
            Profile.objects.filter(email__iexact=email).exists()
            or User.objects.filter(username__iexact=email).exists()
        ):
            raise BlockError(
                message="Email already registered",
                code="EMAIL_ALREADY_REGISTERED",
                detail=["An account with this email already exists"],
            )

        with transaction.atomic():
            user = User.objects.create_user(username=email, email=email, password=password)
            profile = Profile.objects.create(
                user=user,
                name=name.strip(),
                email=email,
                mobile=mobile or "",
                role=role,
            )
            token = Token.objects.create(user=user)

        REGISTRATIONS_TOTAL.labels(role=role).inc()
        logger.info("account_registered", profile_id=str(profile.id), role=role)
        return profile, token

    @classmethod
    def login(cls, email, password, role=None):
        email = cls.normalize_email(email)
        user = authenticate(username=email, password=password)
        if user is None or not hasattr(user, "profile"):
            LOGIN_ATTEMPTS_TOTAL.labels(result="bad_credentials").inc()
            logger.info("login_failed", reason="bad_credentials")
            raise AuthenticationFailedError()

        profile = user.profile
        # a role mismatch looks exactly like a wrong password to the caller
        if role and role != profile.role:
            LOGIN_ATTEMPTS_TOTAL.labels(result="role_mismatch").inc()
            logger.info("login_failed", reason="role_mismatch", profile_id=str(profile.id))
            raise AuthenticationFailedError()

        token, _ = Token.objects.get_or_create(user=user)
        LOGIN_ATTEMPTS_TOTAL.labels(result="success").inc()
        logger.info("login_succeeded", profile_id=str(profile.id), role=profile.role)
        return profile, token

    @staticmethod
    def logout(user):
        Token.objects.filter(user=user).delete()
        logger.info("logout", user_id=user.pk)

    @staticmethod
    def search_patients(query: str = ""):
        queryset = Profile.objects.filter(role=Role.PATIENT).prefetch_related(
            "documents",
            "patient_prescriptions__doctor",
        )
        query = (query or "").strip()
        if query:
            queryset = queryset.filter(name__icontains=query)
        return queryset.order_by("name")
