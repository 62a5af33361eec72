"""Role-based permissions for back-office endpoints."""

from __future__ import annotations

from rest_framework.permissions import BasePermission

from modules.core.authentication import ROLE_ADMIN, ROLE_EMPLOYEE


def _has_role(user, *roles: str) -> bool:
    has_role = getattr(user, "has_role", None)
    return bool(has_role and has_role(*roles))


class IsBackOffice(BasePermission):
    """Admin/employee principals or Django staff users."""

    message = "Back-office access required."

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return bool(getattr(user, "is_staff", False)) or _has_role(
            user, ROLE_ADMIN, ROLE_EMPLOYEE
        )
