"""
Account URL configuration.
"""

from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import AuthViewSet, DoctorViewSet, PatientViewSet

router = DefaultRouter()
router.register("doctors", DoctorViewSet, basename="doctor")
router.register("patients", PatientViewSet, basename="patient")

urlpatterns = [
    path("register/", AuthViewSet.as_view({"post": "register"}), name="account-register"),
    path("login/", AuthViewSet.as_view({"post": "login"}), name="account-login"),
    path("logout/", AuthViewSet.as_view({"post": "logout"}), name="account-logout"),
    path("me/", AuthViewSet.as_view({"get": "me", "patch": "me"}), name="account-me"),
] + router.urls
