"""
Ledger enumerations.
"""

import enum


class PartyType(str, enum.Enum):
    """Which side of a shipment a party ledger row belongs to."""
    SENDER = "SENDER"
    RECEIVER = "RECEIVER"


class LedgerEntryType(str, enum.Enum):
    """Ledger entry type enumeration."""
    DEBIT = "DEBIT"  # Money leaving the account
    CREDIT = "CREDIT"  # Money entering the account


class FareStatus(str, enum.Enum):
    """Fare status of a vehicle, taken from its most recent trip."""
    PAID = "PAID"
    UNPAID = "UNPAID"
    NOT_APPLICABLE = "N/A"
