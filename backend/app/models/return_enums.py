"""
Return shipment enumerations.
"""

import enum


class ReturnStatus(str, enum.Enum):
    """
    Return shipment status.

    Status flow:
        PENDING → IN_TRANSIT → COMPLETED
        PENDING / IN_TRANSIT → CANCELLED
        COMPLETED and CANCELLED are terminal.
    """
    PENDING = "PENDING"
    IN_TRANSIT = "IN_TRANSIT"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ReturnCondition(str, enum.Enum):
    """Condition of the returned goods."""
    DAMAGED = "DAMAGED"
    WRONG_ITEM = "WRONG_ITEM"
    INCOMPLETE = "INCOMPLETE"
    NOT_AS_DESCRIBED = "NOT_AS_DESCRIBED"
    OTHER = "OTHER"
