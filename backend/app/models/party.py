"""
Party database model.

Senders and receivers of shipments. Walk-in customers share a placeholder
party and carry their real name on the shipment itself.
"""

from sqlalchemy import Column, Integer, String, Numeric, DateTime
from sqlalchemy.sql import func
from backend.app.db.session import Base


class Party(Base):
    __tablename__ = "parties"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False, index=True)
    contact_info = Column(String(100), nullable=False)
    opening_balance = Column(Numeric(10, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Party(id={self.id}, name='{self.name}')>"
