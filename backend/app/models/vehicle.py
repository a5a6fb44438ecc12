"""
Vehicle database model.

A vehicle carries shipments and owns its own ledger (VehicleTransaction rows).
"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from backend.app.db.session import Base


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Stored trimmed and upper-cased
    vehicle_number = Column(String(50), unique=True, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Vehicle(id={self.id}, number='{self.vehicle_number}')>"
