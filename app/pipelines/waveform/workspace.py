"""Temporary file pairs for one pipeline run (stage 03)."""

from __future__ import annotations

import logging
import secrets
import tempfile
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from .types import TempFilePair

logger = logging.getLogger("app.pipelines.waveform")

AUDIO_PREFIX = "waveform-audio-"
PEAKS_PREFIX = "waveform-peaks-"


def _unique_token() -> str:
    return f"{time.time_ns()}-{secrets.token_hex(6)}"


def allocate(extension: str, directory: str | Path | None = None) -> TempFilePair:
    """Reserve collision-free names; nothing is created on disk yet."""

    base = Path(directory) if directory else Path(tempfile.gettempdir())
    suffix = extension if extension.startswith(".") else f".{extension}"
    token = _unique_token()
    return TempFilePair(
        token=token,
        audio_path=base / f"{AUDIO_PREFIX}{token}{suffix}",
        json_path=base / f"{PEAKS_PREFIX}{token}.json",
    )


def release(pair: TempFilePair) -> None:
    """Remove both files. Missing files are fine, other failures are only logged."""

    for path in (pair.audio_path, pair.json_path):
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Error cleaning up temp file %s: %s", path, exc)
        else:
            logger.debug("Cleaned up temp file %s", path)


@asynccontextmanager
async def temp_file_pair(
    extension: str,
    directory: str | Path | None = None,
) -> AsyncIterator[TempFilePair]:
    """Allocate a pair and release it however the block exits."""

    pair = allocate(extension, directory)
    logger.info("Temp audio path=%s json path=%s", pair.audio_path, pair.json_path)
    try:
        yield pair
    finally:
        release(pair)


__all__ = ["allocate", "release", "temp_file_pair", "AUDIO_PREFIX", "PEAKS_PREFIX"]
