from typing import Optional
from pydantic import BaseModel
from datetime import datetime


class Credential(BaseModel):
    """Domain model for a principal's stored Dropbox credential"""
    user_id: str
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReferenceItem(BaseModel):
    """Domain model for ReferenceItem entity"""
    id: str
    user_id: str
    waveform_peaks: Optional[list] = None
    waveform_duration: Optional[float] = None
    waveform_sample_rate: Optional[int] = None

    class Config:
        from_attributes = True
