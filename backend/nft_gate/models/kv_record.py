from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from nft_gate.database import Base

class KVRecord(Base):
    """Local key-value entry; the session store keeps one serialized session per key."""
    __tablename__ = "kv_records"

    key = Column(String(200), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
