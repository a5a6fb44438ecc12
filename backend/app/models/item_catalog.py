"""
Item catalog database model.
"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from backend.app.db.session import Base


class ItemCatalog(Base):
    __tablename__ = "item_catalog"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    item_description = Column(String(100), unique=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<ItemCatalog(id={self.id}, description='{self.item_description}')>"
