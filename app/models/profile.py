"""SQLAlchemy model for user profiles holding Dropbox credentials."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text

from app.models.base import Base


class Profile(Base):
    __tablename__ = "profiles"

    user_id = Column(String(64), primary_key=True, index=True)
    dropbox_access_token = Column(Text, nullable=True)
    dropbox_refresh_token = Column(Text, nullable=True)
    dropbox_token_expires_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(
        DateTime,
        nullable=False,
        server_default="NOW()",
        onupdate=datetime.utcnow,
    )


__all__ = ["Profile"]
