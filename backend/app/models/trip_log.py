"""
Trip log database model.

A vehicle's daily manifest together with its fare roll-up.
"""

from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, ForeignKey, Boolean, Text
from sqlalchemy.sql import func
from backend.app.db.session import Base


class TripLog(Base):
    """
    TripLog model.

    received_amount = total_fare_collected - delivery_cut - cuts - accountant_charges,
    never below zero. fare_is_paid flips once the trip's fare is settled.
    """
    __tablename__ = "trip_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False, index=True)

    driver_name = Column(String(100), nullable=False)
    driver_mobile = Column(String(50), nullable=True)
    station_name = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)
    date = Column(Date, nullable=False, index=True)
    arrival_time = Column(String(20), nullable=True)
    departure_time = Column(String(20), nullable=True)

    # Fare roll-up
    total_fare_collected = Column(Numeric(10, 2), nullable=False, default=0)
    delivery_cut_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    delivery_cut = Column(Numeric(10, 2), nullable=False, default=0)
    cuts = Column(Numeric(10, 2), nullable=False, default=0)
    accountant_charges = Column(Numeric(10, 2), nullable=False, default=0)
    received_amount = Column(Numeric(10, 2), nullable=False, default=0)
    fare_is_paid = Column(Boolean, nullable=False, default=False)

    note = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<TripLog(id={self.id}, vehicle={self.vehicle_id}, date={self.date}, paid={self.fare_is_paid})>"
