"""Database models for the app."""
from sqlalchemy import Column, String, Text

from spellbee.models.base import Base, TimestampMixin


class StoredValue(Base, TimestampMixin):
    """A single key-value pair of the local store."""

    __tablename__ = "kv_store"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
