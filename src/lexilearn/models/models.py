"""Database models for the practice app."""
from sqlalchemy import Column, Integer, String, Text

from lexilearn.models.base import Base, TimestampMixin


class StoredValue(Base, TimestampMixin):
    """A single key-value record of the persistent store."""

    __tablename__ = "stored_values"

    id = Column(Integer, primary_key=True)
    key = Column(String(128), unique=True, index=True, nullable=False)
    value = Column(Text, nullable=False)  # JSON document
