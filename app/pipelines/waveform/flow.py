"""Orchestration of the waveform generation pipeline.

Execution order for ``POST /generate-waveform``:

1. ``credential`` – find the reference owner and resolve a Dropbox token (skipped for previews).
2. ``source`` – classify the locator and download the audio.
3. ``workspace`` – allocate the temp input/output pair.
4. ``analysis`` – write the audio, run audiowaveform, parse the peaks.
5. ``persistence`` – store the peaks on the reference item (skipped for previews).

Cleanup of the temp pair runs after step 3 regardless of how steps 4-5 end.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, List

from app.application.interfaces import (
    PersistenceError,
    ReferenceItemRepositoryInterface,
)
from app.telemetry import observe_waveform

from .errors import BadRequest, PersistFailed, ReferenceNotFound, WaveformError
from .source import DropboxSourceResolver, classify_locator
from .types import PREVIEW_REFERENCE_ID, WaveformOutcome, WaveformResult
from .workspace import temp_file_pair

if TYPE_CHECKING:
    from app.services.audiowaveform import AudiowaveformAnalyzer
    from app.services.dropbox_auth import DropboxCredentialManager

logger = logging.getLogger("app.pipelines.waveform")


@dataclass(frozen=True)
class PipelineStage:
    """Human-readable description of one stage in the waveform pipeline."""

    order: int
    name: str
    module: str
    summary: str
    skipped_in_preview: bool = False


class WaveformPipeline:
    """Run one waveform generation request end to end."""

    _STAGES: List[PipelineStage] = [
        PipelineStage(
            1,
            "Credential",
            "app.services.dropbox_auth",
            "Look up the reference owner and hand out a Dropbox token valid for 5+ minutes.",
            skipped_in_preview=True,
        ),
        PipelineStage(
            2,
            "Source",
            "app.pipelines.waveform.source",
            "Pick preview, shared-link or path download and buffer the audio bytes.",
        ),
        PipelineStage(
            3,
            "Workspace",
            "app.pipelines.waveform.workspace",
            "Allocate the temp audio/peaks pair; released on every exit path.",
        ),
        PipelineStage(
            4,
            "Analysis",
            "app.services.audiowaveform",
            "Write the audio, run audiowaveform and validate the peaks JSON.",
        ),
        PipelineStage(
            5,
            "Persistence",
            "app.infrastructure.persistence.repositories_sqlalchemy",
            "Store peaks, duration and sample rate on the reference item.",
            skipped_in_preview=True,
        ),
    ]

    def __init__(
        self,
        *,
        references: ReferenceItemRepositoryInterface,
        credentials: "DropboxCredentialManager",
        resolver: DropboxSourceResolver,
        analyzer: "AudiowaveformAnalyzer",
        temp_dir: str | Path | None = None,
    ) -> None:
        self._references = references
        self._credentials = credentials
        self._resolver = resolver
        self._analyzer = analyzer
        self._temp_dir = temp_dir

    @classmethod
    def describe(cls) -> Iterable[PipelineStage]:
        """Expose the ordered list of stages for debugging and documentation."""

        return tuple(cls._STAGES)

    async def run(self, url: str | None, reference_id: str | None) -> WaveformOutcome:
        if not url:
            raise BadRequest("Missing url")
        if not reference_id:
            raise BadRequest("Missing referenceId")

        preview = reference_id == PREVIEW_REFERENCE_ID
        mode = "preview" if preview else "reference"
        started = time.perf_counter()
        logger.info("Processing url=%s reference=%s mode=%s", url, reference_id, mode)

        try:
            outcome = await self._execute(url, reference_id, preview)
        except WaveformError as exc:
            observe_waveform(mode, type(exc).__name__, time.perf_counter() - started)
            logger.error("Waveform pipeline failed reference=%s: %s", reference_id, exc)
            raise
        except Exception:
            observe_waveform(mode, "unexpected", time.perf_counter() - started)
            logger.exception("Waveform pipeline crashed reference=%s", reference_id)
            raise

        observe_waveform(mode, "success", time.perf_counter() - started)
        logger.info(
            "Waveform generated reference=%s peaks=%d saved=%s",
            reference_id,
            outcome.result.num_peaks,
            outcome.saved,
        )
        return outcome

    async def _execute(self, url: str, reference_id: str, preview: bool) -> WaveformOutcome:
        locator = classify_locator(url, preview=preview)

        access_token: str | None = None
        if not preview:
            reference = await self._references.get_by_id(reference_id)
            if reference is None:
                raise ReferenceNotFound(reference_id)
            token = await self._credentials.get_valid_access_token(reference.user_id)
            access_token = token.token
            logger.info(
                "Using Dropbox token user=%s (%s)",
                reference.user_id,
                "refreshed" if token.refreshed else "existing",
            )

        audio = await self._resolver.fetch(locator, access_token)

        async with temp_file_pair(audio.extension, self._temp_dir) as pair:
            result = await self._analyzer.analyze(audio.content, pair)

        if preview:
            logger.info("Preview mode - skipping database save")
            return WaveformOutcome(result=result, saved=False, filename=audio.filename)

        await self._persist(reference_id, result)
        return WaveformOutcome(result=result, saved=True, filename=audio.filename)

    async def _persist(self, reference_id: str, result: WaveformResult) -> None:
        try:
            await self._references.save_waveform(
                reference_id,
                list(result.peaks),
                duration=result.duration,
                sample_rate=result.sample_rate,
            )
        except PersistenceError as exc:
            raise PersistFailed(str(exc)) from exc
        logger.info("Saved peaks for reference=%s", reference_id)


__all__ = ["WaveformPipeline", "PipelineStage"]
