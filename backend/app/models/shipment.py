"""
Shipment database model.

A shipment is booked once against a paper bility (waybill) and is only ever
mutated afterwards to stamp its delivery date.
"""

from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, ForeignKey, Enum, Text
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.shipment_enums import PaymentStatus


class Shipment(Base):
    """
    Shipment model.

    Identified by the generated register number (YYYYMM-NNNN, reset monthly)
    and by the user-supplied bility number. Both are unique.
    """
    __tablename__ = "shipments"

    register_number = Column(String(50), primary_key=True)
    bility_number = Column(String(50), unique=True, nullable=False, index=True)
    bility_date = Column(Date, nullable=False, index=True)

    # Route
    departure_city_id = Column(Integer, ForeignKey('cities.id'), nullable=False)
    to_city_id = Column(Integer, ForeignKey('cities.id'), nullable=True)
    forwarding_agency_id = Column(Integer, ForeignKey('agencies.id'), nullable=False)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False, index=True)

    # Parties (walk-in names override the linked party's name for display)
    sender_id = Column(Integer, ForeignKey('parties.id'), nullable=False, index=True)
    receiver_id = Column(Integer, ForeignKey('parties.id'), nullable=False, index=True)
    walk_in_sender_name = Column(String(100), nullable=True)
    walk_in_receiver_name = Column(String(100), nullable=True)

    # Financials
    total_charges = Column(Numeric(10, 2), nullable=False)
    total_delivery_charges = Column(Numeric(10, 2), nullable=False, default=0)
    payment_status = Column(Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)

    delivery_date = Column(Date, nullable=True, index=True)
    remarks = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Shipment(register_number='{self.register_number}', bility='{self.bility_number}')>"
