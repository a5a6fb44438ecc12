"""
Labour assignment database model.

Links a labour person to one shipment. Status moves linearly
ASSIGNED -> DELIVERED -> COLLECTED -> SETTLED.
"""

from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, ForeignKey, Enum, Text
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.labour_enums import LabourAssignmentStatus


class LabourAssignment(Base):
    __tablename__ = "labour_assignments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    labour_person_id = Column(Integer, ForeignKey('labour_persons.id'), nullable=False, index=True)
    shipment_id = Column(String(50), ForeignKey('shipments.register_number'), nullable=False, index=True)

    assigned_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    due_date = Column(Date, nullable=True)
    status = Column(Enum(LabourAssignmentStatus), default=LabourAssignmentStatus.ASSIGNED, nullable=False, index=True)

    delivered_date = Column(DateTime(timezone=True), nullable=True)
    collected_amount = Column(Numeric(10, 2), nullable=True)
    settled_date = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<LabourAssignment(id={self.id}, shipment='{self.shipment_id}', status='{self.status.value}')>"
