"""
Goods detail database model.

Line items of a shipment. Created with the shipment and never edited.
"""

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey
from sqlalchemy.sql import func
from backend.app.db.session import Base


class GoodsDetail(Base):
    __tablename__ = "goods_details"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    shipment_id = Column(String(50), ForeignKey('shipments.register_number', ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey('item_catalog.id'), nullable=False)

    quantity = Column(Integer, nullable=False)
    charges = Column(Numeric(10, 2), nullable=False, default=0)
    delivery_charges = Column(Numeric(10, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<GoodsDetail(id={self.id}, shipment='{self.shipment_id}', qty={self.quantity})>"
