"""
Core permissions utilities for role-based access control.

Every route declares the capability it needs; the role -> capability map below
is the single place that decides what a role may do.
"""
from enum import Enum
from typing import Dict, List, Set
from ..auth.models import UserRole

class Permission(str, Enum):
    """
    Permission types for role-based access control.
    """
    # Referral permissions
    VIEW_REFERRALS = "view_referrals"
    MANAGE_REFERRALS = "manage_referrals"
    DELETE_REFERRALS = "delete_referrals"
    EXPORT_REFERRALS = "export_referrals"
    MANAGE_DOCUMENTS = "manage_documents"

    # Directory permissions
    VIEW_DIRECTORY = "view_directory"
    MANAGE_DIRECTORY = "manage_directory"
    MANAGE_PROVIDER_NOTES = "manage_provider_notes"

    # Reporting
    VIEW_REPORTS = "view_reports"

    # Admin permissions
    MANAGE_USERS = "manage_users"


_STAFF_PERMISSIONS: List[Permission] = [
    Permission.VIEW_REFERRALS,
    Permission.MANAGE_REFERRALS,
    Permission.DELETE_REFERRALS,
    Permission.EXPORT_REFERRALS,
    Permission.MANAGE_DOCUMENTS,
    Permission.VIEW_DIRECTORY,
    Permission.MANAGE_DIRECTORY,
    Permission.MANAGE_PROVIDER_NOTES,
    Permission.VIEW_REPORTS,
]

# Role-based permission mapping
ROLE_PERMISSIONS: Dict[UserRole, List[Permission]] = {
    UserRole.STAFF: _STAFF_PERMISSIONS,
    # Admin has all permissions
    UserRole.ADMIN: list(Permission),
}


def get_permissions_for_role(role: UserRole) -> Set[Permission]:
    """
    Get permissions for a specific role.

    Args:
        role: User role

    Returns:
        Set[Permission]: Set of permissions for the role
    """
    return set(ROLE_PERMISSIONS.get(role, []))


def has_permission(role: UserRole, permission: Permission) -> bool:
    """
    Check if a role has a specific permission.

    Args:
        role: User role
        permission: Permission to check

    Returns:
        bool: True if the role has the permission
    """
    return permission in get_permissions_for_role(role)
