"""
SQLAlchemy ORM models.

Defines the single 'grocery_items' table:
- id: integer primary key, AUTOINCREMENT so ids are never reused
- name: text, required
- quantity: integer, defaults to 1
- category: optional text
- bought: 0/1 integer flag
- created_at: epoch milliseconds
"""

from sqlalchemy import Column, Integer, Text, text

from ..db.sqlalchemy import Base


class GroceryItemRow(Base):
    """ORM model representing one stored grocery item."""
    __tablename__ = "grocery_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    quantity = Column(Integer, default=1, server_default=text("1"))
    category = Column(Text, nullable=True)
    bought = Column(Integer, default=0, server_default=text("0"))
    created_at = Column(Integer, nullable=True)
