"""
User roles enumeration.

Defines the role types for the back office.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        OPERATOR: Books shipments, records deliveries and trips (default role)
        ADMIN: First-stage delivery approval, ledger postings
        SUPERADMIN: Final delivery approval
    """
    OPERATOR = "OPERATOR"
    ADMIN = "ADMIN"
    SUPERADMIN = "SUPERADMIN"
