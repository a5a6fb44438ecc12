"""
Vehicle ledger database model.

Append-only. Trip logging posts debits; fare settlement and manual
postings add credits or debits.
"""

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from backend.app.db.session import Base


class VehicleTransaction(Base):
    __tablename__ = "vehicle_transactions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False, index=True)
    shipment_id = Column(String(50), ForeignKey('shipments.register_number'), nullable=True)
    trip_id = Column(Integer, ForeignKey('trip_logs.id'), nullable=True, index=True)

    credit_amount = Column(Numeric(10, 2), nullable=False, default=0)
    debit_amount = Column(Numeric(10, 2), nullable=False, default=0)
    description = Column(Text, nullable=True)
    transaction_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<VehicleTransaction(id={self.id}, vehicle={self.vehicle_id}, cr={self.credit_amount}, dr={self.debit_amount})>"
