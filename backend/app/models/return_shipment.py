"""
Return shipment database models.

A return records goods coming back against an original shipment, one
item row per goods line being returned.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Text
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.return_enums import ReturnStatus, ReturnCondition


class ReturnShipment(Base):
    __tablename__ = "return_shipments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    original_shipment_id = Column(String(50), ForeignKey('shipments.register_number'), nullable=False, index=True)

    reason = Column(Text, nullable=False)
    action_taken = Column(Text, nullable=True)
    comments = Column(Text, nullable=True)

    status = Column(Enum(ReturnStatus), default=ReturnStatus.PENDING, nullable=False, index=True)
    # Set when the return reaches COMPLETED
    resolution_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<ReturnShipment(id={self.id}, shipment='{self.original_shipment_id}', status='{self.status.value}')>"


class ReturnItem(Base):
    __tablename__ = "return_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    return_id = Column(Integer, ForeignKey('return_shipments.id', ondelete="CASCADE"), nullable=False, index=True)
    goods_detail_id = Column(Integer, ForeignKey('goods_details.id'), nullable=False, index=True)

    quantity_returned = Column(Integer, nullable=False)
    condition = Column(Enum(ReturnCondition), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<ReturnItem(id={self.id}, goods_detail={self.goods_detail_id}, qty={self.quantity_returned})>"
