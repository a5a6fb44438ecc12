"""
Party ledger database model.

Append-only. Exactly one of credit_amount / debit_amount is non-zero.
"""

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Enum, Text
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.ledger_enums import PartyType


class Transaction(Base):
    """
    Transaction model.

    A posting against a sender or receiver party, normally linked to the
    shipment that produced it.
    """
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    party_type = Column(Enum(PartyType), nullable=False)
    party_id = Column(Integer, ForeignKey('parties.id'), nullable=False, index=True)
    shipment_id = Column(String(50), ForeignKey('shipments.register_number'), nullable=True, index=True)

    credit_amount = Column(Numeric(10, 2), nullable=False, default=0)
    debit_amount = Column(Numeric(10, 2), nullable=False, default=0)
    description = Column(Text, nullable=True)
    transaction_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<Transaction(id={self.id}, party={self.party_id}, cr={self.credit_amount}, dr={self.debit_amount})>"
