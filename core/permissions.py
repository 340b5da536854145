"""
Role based permission classes.

Views declare which roles may call them; the services only compare the
caller's id against ownership fields and never decide policy.
"""
from rest_framework.permissions import SAFE_METHODS, BasePermission

from .models import User

LAB_ROLES = {User.ROLE_STAFF, User.ROLE_ADMIN, User.ROLE_NURSE}


def _has_role(request, roles) -> bool:
    user = getattr(request, "user", None)
    return bool(user and user.is_authenticated and getattr(user, "role", None) in roles)


class IsAdminRole(BasePermission):
    """Allow access only to administrators."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, {User.ROLE_ADMIN})


class IsPatientRole(BasePermission):
    """Allow access only to users with the patient role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, {User.ROLE_USER})


class IsDoctorRole(BasePermission):
    """Allow access only to doctors."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, {User.ROLE_DOCTOR})


class IsLabStaffRole(BasePermission):
    """Lab staff, nurses and administrators work the lab queue."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, LAB_ROLES)


class ReadOnly(BasePermission):
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return request.method in SAFE_METHODS
