"""Pydantic schemas used as views in the MVC architecture."""

from .common import ErrorResponse, HealthResponse
from .waveform import GenerateWaveformRequest, GenerateWaveformResponse, WaveformData

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "GenerateWaveformRequest",
    "GenerateWaveformResponse",
    "WaveformData",
]
