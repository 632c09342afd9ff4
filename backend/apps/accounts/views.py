"""
Account views.
"""

from rest_framework import status, viewsets
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from .models import Profile
from .permissions import HasCapability, get_actor
from .roles import Capability, Role
from .serializers import (
    DoctorSerializer,
    LoginSerializer,
    PatientDetailSerializer,
    ProfileSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
)
from .services import AccountService


class AuthViewSet(viewsets.ViewSet):
    """
    register: Create an account and return its token
    login: Exchange email/password (and optionally role) for a token
    logout: Revoke the current token
    me: Read or update the current profile
    """

    def get_permissions(self):
        if self.action in ("register", "login"):
            return [AllowAny()]
        return [IsAuthenticated()]

    def register(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        profile, token = AccountService.register(**serializer.validated_data)
        return Response(
            {"token": token.key, "profile": ProfileSerializer(profile).data},
            status=status.HTTP_201_CREATED,
        )

    def login(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        profile, token = AccountService.login(**serializer.validated_data)
        return Response({"token": token.key, "profile": ProfileSerializer(profile).data})

    def logout(self, request):
        AccountService.logout(request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    def me(self, request):
        get_actor(request)
        profile = request.user.profile
        if request.method == "PATCH":
            serializer = ProfileUpdateSerializer(profile, data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            serializer.save()
        return Response(ProfileSerializer(profile).data)


class DoctorViewSet(viewsets.ReadOnlyModelViewSet):
    """Directory of doctors, used when booking appointments."""

    queryset = Profile.objects.filter(role=Role.DOCTOR).order_by("name")
    serializer_class = DoctorSerializer


class PatientViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Doctor-facing patient search.

    list: Patients whose name contains ?search= (case-insensitive)
    retrieve: One patient with documents and prescriptions
    """

    serializer_class = PatientDetailSerializer
    permission_classes = [HasCapability]
    capability_map = {
        "list": Capability.SEARCH_PATIENTS,
        "retrieve": Capability.SEARCH_PATIENTS,
    }

    def get_queryset(self):
        return AccountService.search_patients(self.request.query_params.get("search", ""))
