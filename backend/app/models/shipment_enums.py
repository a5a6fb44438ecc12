"""
Shipment enumerations.
"""

import enum


class PaymentStatus(str, enum.Enum):
    """
    How the sender settles the bill at booking time.

    Only PENDING bills are posted to the sender's ledger.
    """
    PENDING = "PENDING"
    ALREADY_PAID = "ALREADY_PAID"
    FREE = "FREE"
