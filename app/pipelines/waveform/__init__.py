"""Waveform generation pipeline package.

Modules follow the order in which `/generate-waveform` executes:

1. `source` – classify the locator and download the audio.
2. `workspace` – scoped temp file pairs.
3. `flow` – the `WaveformPipeline` orchestrator and its stage map.

`types` and `errors` are shared by every stage and by the services in
`app.services` (credential refresh, audiowaveform invocation).
"""

from .errors import (
    AnalysisFailed,
    AnalysisUnavailable,
    BadRequest,
    ConfigurationMissing,
    CredentialError,
    CredentialNotFound,
    CredentialPersistFailed,
    DownloadFailed,
    MalformedOutput,
    PersistFailed,
    ReferenceNotFound,
    RefreshFailed,
    RefreshTokenMissing,
    WaveformError,
)
from .flow import PipelineStage, WaveformPipeline
from .source import DropboxSourceResolver, classify_locator
from .types import (
    PREVIEW_REFERENCE_ID,
    AccessToken,
    FetchedAudio,
    PreviewLocator,
    ProviderPathLocator,
    SharedLinkLocator,
    SourceLocator,
    TempFilePair,
    WaveformOutcome,
    WaveformResult,
)
from .workspace import allocate, release, temp_file_pair

__all__ = [
    "PREVIEW_REFERENCE_ID",
    "AccessToken",
    "AnalysisFailed",
    "AnalysisUnavailable",
    "BadRequest",
    "ConfigurationMissing",
    "CredentialError",
    "CredentialNotFound",
    "CredentialPersistFailed",
    "DownloadFailed",
    "DropboxSourceResolver",
    "FetchedAudio",
    "MalformedOutput",
    "PersistFailed",
    "PipelineStage",
    "PreviewLocator",
    "ProviderPathLocator",
    "ReferenceNotFound",
    "RefreshFailed",
    "RefreshTokenMissing",
    "SharedLinkLocator",
    "SourceLocator",
    "TempFilePair",
    "WaveformError",
    "WaveformOutcome",
    "WaveformPipeline",
    "WaveformResult",
    "allocate",
    "classify_locator",
    "release",
    "temp_file_pair",
]
