"""
Custom permission classes for role based access control.

These gate whole endpoints by role.  Record level visibility and the
finer mutation rules live in :mod:`core.services.scopes` and
:mod:`core.services.guards`.
"""
from rest_framework.permissions import BasePermission

STAFF_ROLES = {"admin", "warden"}


def _role(request):
    user = getattr(request, "user", None)
    if not (user and user.is_authenticated):
        return None
    return getattr(user, "role", None)


class IsAdminRole(BasePermission):
    """Allow access only to administrators."""
    message = "Admin only"

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == "admin"


class IsWardenRole(BasePermission):
    """Allow access only to wardens."""
    message = "Warden only"

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == "warden"


class IsStaffRole(BasePermission):
    """admin or warden."""
    message = "Admin or warden only"

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) in STAFF_ROLES


class IsResidentRole(BasePermission):
    """Allow access only to residents."""
    message = "Resident only"

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == "resident"
