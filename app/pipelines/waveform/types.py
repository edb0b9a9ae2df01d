"""Typed containers shared across the waveform pipeline.

These dataclasses live in their own module so the stages (`source`,
`workspace`, `flow`) and the analysis service can import them without
creating circular dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Union

PREVIEW_REFERENCE_ID = "preview"
DEFAULT_FILENAME = "audio.mp3"
DEFAULT_EXTENSION = ".mp3"


@dataclass(frozen=True)
class SharedLinkLocator:
    """A Dropbox shared link, fetched through the authenticated API."""

    url: str


@dataclass(frozen=True)
class ProviderPathLocator:
    """A path inside the user's Dropbox, e.g. ``/Music/take1.wav``."""

    path: str


@dataclass(frozen=True)
class PreviewLocator:
    """A public link fetched anonymously for preview requests."""

    url: str


SourceLocator = Union[SharedLinkLocator, ProviderPathLocator, PreviewLocator]


@dataclass(frozen=True)
class AccessToken:
    """Access token handed to the download stage."""

    token: str
    expires_at: datetime
    refreshed: bool = False


@dataclass(frozen=True)
class FetchedAudio:
    """Downloaded audio buffered in memory."""

    content: bytes
    filename: str
    extension: str


@dataclass(frozen=True)
class TempFilePair:
    """Input/output locations owned by a single pipeline run."""

    token: str
    audio_path: Path
    json_path: Path


@dataclass(frozen=True)
class WaveformResult:
    """Parsed audiowaveform output."""

    peaks: tuple[Any, ...]
    sample_rate: int | None
    channels: int | None
    bits: int | None
    samples_per_pixel: int | None
    length: int | None
    version: int | None = None

    @property
    def num_peaks(self) -> int:
        return len(self.peaks)

    @property
    def duration(self) -> float | None:
        """Audio duration in seconds derived from the pixel metadata."""

        if not self.sample_rate or self.length is None or not self.samples_per_pixel:
            return None
        return round(self.length * self.samples_per_pixel / self.sample_rate, 3)


@dataclass(frozen=True)
class WaveformOutcome:
    """What the orchestrator hands back to the HTTP layer."""

    result: WaveformResult
    saved: bool
    filename: str
