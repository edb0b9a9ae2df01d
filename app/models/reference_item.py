"""SQLAlchemy model for reference items that carry generated waveforms."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String

from app.models.base import Base


class ReferenceItem(Base):
    __tablename__ = "reference_items"

    id = Column(String(64), primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    waveform_peaks = Column(JSON, nullable=True)
    waveform_duration = Column(Float, nullable=True)
    waveform_sample_rate = Column(Integer, nullable=True)
    created_at = Column(
        DateTime,
        nullable=False,
        server_default="NOW()",
    )
    updated_at = Column(
        DateTime,
        nullable=False,
        server_default="NOW()",
        onupdate=datetime.utcnow,
    )


__all__ = ["ReferenceItem"]
