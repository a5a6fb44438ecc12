"""
Register sequence database model.

One counter row per calendar month. Register numbers are allocated by an
atomic increment of this row inside the shipment's own transaction.
"""

from sqlalchemy import Column, Integer, String
from backend.app.db.session import Base


class RegisterSequence(Base):
    __tablename__ = "register_sequences"

    # YYYYMM
    period = Column(String(6), primary_key=True)
    last_value = Column(Integer, nullable=False)

    def __repr__(self):
        return f"<RegisterSequence(period='{self.period}', last_value={self.last_value})>"
