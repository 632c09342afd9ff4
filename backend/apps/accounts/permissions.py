"""
Capability-based DRF permissions.
"""

from rest_framework.permissions import BasePermission

from apps.core.exceptions import PermissionDeniedError

from .roles import Actor


def get_actor(request) -> Actor:
    """Resolve the portal actor behind an authenticated request."""
    profile = getattr(request.user, "profile", None)
    if profile is None:
        raise PermissionDeniedError(detail="This account has no portal profile")
    return profile.actor


class HasCapability(BasePermission):
    """
    Grant access when the actor holds a capability the view requires.

    Views declare ``capability_map``: action name -> Capability, or a tuple of
    capabilities of which any one is enough. Actions absent from the map
    only need an authenticated profile.
    """

    message = "Your role does not allow this action"

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        profile = getattr(request.user, "profile", None)
        if profile is None:
            return False

        required = getattr(view, "capability_map", {}).get(getattr(view, "action", None))
        if required is None:
            return True
        if not isinstance(required, (tuple, list, set, frozenset)):
            required = (required,)

        actor = profile.actor
        return any(actor.can(capability) for capability in required)
