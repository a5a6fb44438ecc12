"""
Labour payment history database model.

Append-only record of money paid to a labour person against a shipment.
"""

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from backend.app.db.session import Base


class LabourPaymentHistory(Base):
    __tablename__ = "labour_payment_history"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    labour_person_id = Column(Integer, ForeignKey('labour_persons.id'), nullable=False, index=True)
    shipment_id = Column(String(50), ForeignKey('shipments.register_number'), nullable=False, index=True)

    amount_paid = Column(Numeric(10, 2), nullable=False)
    payment_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    payment_method = Column(String(20), nullable=False, default="CASH")
    notes = Column(Text, nullable=True)

    def __repr__(self):
        return f"<LabourPaymentHistory(id={self.id}, person={self.labour_person_id}, amount={self.amount_paid})>"
