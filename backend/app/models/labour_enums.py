"""
Labour assignment enumerations.
"""

import enum


class LabourAssignmentStatus(str, enum.Enum):
    """
    Labour assignment status.

    Status flow (linear):
        ASSIGNED → DELIVERED → COLLECTED → SETTLED
    """
    ASSIGNED = "ASSIGNED"
    DELIVERED = "DELIVERED"
    COLLECTED = "COLLECTED"
    SETTLED = "SETTLED"


class LabourAction(str, enum.Enum):
    DELIVER = "DELIVER"
    COLLECT = "COLLECT"
    SETTLE = "SETTLE"
