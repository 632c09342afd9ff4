"""
API URL configuration.
Includes all app routes.
"""

from django.urls import include, path

from .views import health

urlpatterns = [
    path("health/", health, name="health"),
    path("accounts/", include("apps.accounts.urls")),
    path("appointments/", include("apps.appointments.urls")),
    path("documents/", include("apps.documents.urls")),
    path("prescriptions/", include("apps.prescriptions.urls")),
    path("pharmacy/", include("apps.pharmacy.urls")),
]
