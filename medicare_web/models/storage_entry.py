from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func

from ..core.database import Base

class StorageEntry(Base):
    """One key of durable client storage (the token or the profile blob)."""
    __tablename__ = "client_storage"

    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=False)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<StorageEntry(key='{self.key}')>"
