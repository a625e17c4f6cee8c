"""Role-based access control and permissions."""

from enum import Enum


class UserRole(str, Enum):
    """User roles in the system."""

    CUSTOMER = "CUSTOMER"
    VENDOR = "VENDOR"
    MANAGER = "MANAGER"  # Vendor approval and booking triage
    ADMIN = "ADMIN"


class Permission(str, Enum):
    """System permissions."""

    # Booking permissions
    CREATE_BOOKING = "create_booking"
    CANCEL_OWN_BOOKING = "cancel_own_booking"
    CANCEL_ANY_BOOKING = "cancel_any_booking"
    ASSIGN_BOOKING = "assign_booking"
    RESPOND_TO_ASSIGNMENT = "respond_to_assignment"

    # Vendor permissions
    APPROVE_VENDOR = "approve_vendor"
    SUSPEND_VENDOR = "suspend_vendor"
    MANAGE_EMPLOYEES = "manage_employees"

    # Back-office permissions
    VIEW_REPORTS = "view_reports"
    MANAGE_USERS = "manage_users"
    MANAGE_PAYMENTS = "manage_payments"
    VIEW_AUDIT_LOGS = "view_audit_logs"


# Role to permissions mapping
ROLE_PERMISSIONS: dict[UserRole, set[Permission]] = {
    UserRole.CUSTOMER: {
        Permission.CREATE_BOOKING,
        Permission.CANCEL_OWN_BOOKING,
    },
    UserRole.VENDOR: {
        Permission.RESPOND_TO_ASSIGNMENT,
        Permission.MANAGE_EMPLOYEES,
    },
    UserRole.MANAGER: {
        Permission.CANCEL_ANY_BOOKING,
        Permission.ASSIGN_BOOKING,
        Permission.APPROVE_VENDOR,
        Permission.VIEW_REPORTS,
        Permission.MANAGE_PAYMENTS,
    },
    UserRole.ADMIN: {
        # Admins have all permissions
        perm for perm in Permission
    },
}


def has_permission(role: UserRole | str, permission: Permission) -> bool:
    """Check if a role has a specific permission."""
    try:
        role = UserRole(role)
    except ValueError:
        return False
    return permission in ROLE_PERMISSIONS.get(role, set())
