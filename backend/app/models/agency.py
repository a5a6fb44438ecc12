"""
Forwarding agency database model.
"""

from sqlalchemy import Column, Integer, String
from backend.app.db.session import Base


class Agency(Base):
    __tablename__ = "agencies"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)

    def __repr__(self):
        return f"<Agency(id={self.id}, name='{self.name}')>"
