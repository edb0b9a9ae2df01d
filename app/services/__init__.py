"""Service layer helpers for external integrations."""

from .audiowaveform import AudiowaveformAnalyzer, build_arguments, parse_waveform
from .dropbox_auth import (
    DEFAULT_TOKEN_LIFETIME,
    EXPIRY_SAFETY_MARGIN,
    DropboxCredentialManager,
)

__all__ = [
    "AudiowaveformAnalyzer",
    "build_arguments",
    "parse_waveform",
    "DropboxCredentialManager",
    "DEFAULT_TOKEN_LIFETIME",
    "EXPIRY_SAFETY_MARGIN",
]
