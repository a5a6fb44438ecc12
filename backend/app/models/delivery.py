"""
Delivery database model.

Records the hand-over of a shipment and carries it through the two-stage
approval pipeline: PENDING -> APPROVED_BY_ADMIN -> APPROVED, or REJECTED.
"""

from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, ForeignKey, Enum, Text
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.delivery_enums import ApprovalStatus


class Delivery(Base):
    """
    Delivery model.

    At most one per shipment (unique shipment_id). Expense fields start at
    zero when a labour person delivers and are back-filled on collection.
    """
    __tablename__ = "deliveries"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    shipment_id = Column(String(50), ForeignKey('shipments.register_number'), unique=True, nullable=False, index=True)

    delivery_date = Column(Date, nullable=False)
    delivery_time = Column(String(20), nullable=True)

    # Expenses
    station_expense = Column(Numeric(10, 2), nullable=False, default=0)
    bility_expense = Column(Numeric(10, 2), nullable=False, default=0)
    station_labour = Column(Numeric(10, 2), nullable=False, default=0)
    cart_labour = Column(Numeric(10, 2), nullable=False, default=0)
    total_expenses = Column(Numeric(10, 2), nullable=False, default=0)

    # Receiver details at time of delivery
    receiver_name = Column(String(100), nullable=False)
    receiver_phone = Column(String(50), nullable=True)
    receiver_cnic = Column(String(50), nullable=True)
    receiver_address = Column(Text, nullable=True)
    delivery_notes = Column(Text, nullable=True)
    delivery_status = Column(String(20), nullable=False, default="DELIVERED")

    # Approval
    approval_status = Column(Enum(ApprovalStatus), default=ApprovalStatus.PENDING, nullable=False, index=True)
    approved_by = Column(String(100), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Delivery(id={self.id}, shipment='{self.shipment_id}', approval='{self.approval_status.value}')>"
