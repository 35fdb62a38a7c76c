"""
Custom permission classes for role based access control.
"""
from rest_framework.permissions import SAFE_METHODS, BasePermission

from .models import User


def _role(request):
    user = getattr(request, "user", None)
    if not (user and user.is_authenticated):
        return None
    return getattr(user, "role", None)


class IsPatientRole(BasePermission):
    """Allow access only to users with the patient role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == User.ROLE_PATIENT


class IsCenterAdminRole(BasePermission):
    """Allow access only to diagnostic center administrators."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == User.ROLE_CENTER_ADMIN


class IsAdminRole(BasePermission):
    """Allow access only to system administrators."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) == User.ROLE_ADMIN


class IsAdminOrCenterAdmin(BasePermission):
    """admin or diagnostic_center_admin."""
    def has_permission(self, request, view) -> bool:
        return _role(request) in {User.ROLE_ADMIN, User.ROLE_CENTER_ADMIN}


class IsAdminOrReadOnly(BasePermission):
    """Anyone may read; only system administrators may write."""
    def has_permission(self, request, view) -> bool:
        if request.method in SAFE_METHODS:
            return True
        return _role(request) == User.ROLE_ADMIN
