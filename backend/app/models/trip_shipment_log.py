"""
Trip shipment log database model.

Snapshot of a shipment line taken when the trip is logged. Receiver name
and bility number are stored as text and do not follow later edits.
"""

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, UniqueConstraint
from backend.app.db.session import Base


class TripShipmentLog(Base):
    __tablename__ = "trip_shipment_logs"
    __table_args__ = (
        UniqueConstraint('trip_log_id', 'serial_number', name='uq_trip_shipment_serial'),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    trip_log_id = Column(Integer, ForeignKey('trip_logs.id', ondelete="CASCADE"), nullable=False, index=True)
    serial_number = Column(Integer, nullable=False)

    shipment_id = Column(String(50), ForeignKey('shipments.register_number'), nullable=False)
    bility_number = Column(String(50), nullable=False)
    receiver_name = Column(String(100), nullable=False)
    item_details = Column(String(255), nullable=True)
    quantity = Column(Integer, nullable=False, default=0)
    delivery_charges = Column(Numeric(10, 2), nullable=False, default=0)

    def __repr__(self):
        return f"<TripShipmentLog(trip={self.trip_log_id}, serial={self.serial_number}, shipment='{self.shipment_id}')>"
