"""
Delivery approval enumeration.
"""

import enum


class ApprovalStatus(str, enum.Enum):
    """
    Delivery approval status.

    Status flow:
        PENDING → APPROVED_BY_ADMIN → APPROVED
        PENDING / APPROVED_BY_ADMIN → REJECTED
        APPROVED and REJECTED are terminal.
    """
    PENDING = "PENDING"
    APPROVED_BY_ADMIN = "APPROVED_BY_ADMIN"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ApprovalAction(str, enum.Enum):
    """Target statuses a reviewer may request."""
    APPROVED_BY_ADMIN = "APPROVED_BY_ADMIN"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
