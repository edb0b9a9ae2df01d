"""audiowaveform CLI integration."""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any

from fastapi.concurrency import run_in_threadpool

from app.config.settings import AnalysisConfig
from app.pipelines.waveform.errors import (
    AnalysisFailed,
    AnalysisUnavailable,
    MalformedOutput,
)
from app.pipelines.waveform.types import TempFilePair, WaveformResult

logger = logging.getLogger("app.pipelines.waveform")


def build_arguments(pair: TempFilePair, config: AnalysisConfig) -> list[str]:
    args = [
        config.binary,
        "-i",
        str(pair.audio_path),
        "-o",
        str(pair.json_path),
        "--pixels-per-second",
        str(config.pixels_per_second),
        "--output-format",
        "json",
    ]
    if config.split_channels:
        args.append("--split-channels")
    return args


def parse_waveform(document: Any) -> WaveformResult:
    """Validate the audiowaveform JSON document and normalise it."""

    if not isinstance(document, dict):
        raise MalformedOutput("audiowaveform output is not a JSON object")

    data = document.get("data")
    if not isinstance(data, list) or not data:
        logger.error("No valid data array generated by audiowaveform; keys=%s", sorted(document))
        raise MalformedOutput()

    return WaveformResult(
        peaks=tuple(data),
        sample_rate=document.get("sample_rate"),
        channels=document.get("channels"),
        bits=document.get("bits"),
        samples_per_pixel=document.get("samples_per_pixel"),
        length=document.get("length"),
        version=document.get("version"),
    )


class AudiowaveformAnalyzer:
    """Run audiowaveform on downloaded bytes and read back the peaks."""

    def __init__(self, config: AnalysisConfig) -> None:
        self._config = config

    async def analyze(self, audio_bytes: bytes, pair: TempFilePair) -> WaveformResult:
        await run_in_threadpool(pair.audio_path.write_bytes, audio_bytes)
        logger.info("Audio file saved to %s, size=%d bytes", pair.audio_path, len(audio_bytes))

        await run_in_threadpool(self._run_sync, pair)
        logger.info("audiowaveform completed, reading %s", pair.json_path)

        document = await run_in_threadpool(self._read_artifact, pair.json_path)
        result = parse_waveform(document)
        logger.info(
            "Parsed waveform channels=%s sample_rate=%s samples_per_pixel=%s bits=%s length=%s peaks=%d",
            result.channels,
            result.sample_rate,
            result.samples_per_pixel,
            result.bits,
            result.length,
            result.num_peaks,
        )
        return result

    def _run_sync(self, pair: TempFilePair) -> None:
        args = build_arguments(pair, self._config)
        logger.info("audiowaveform args: %s", args[1:])
        try:
            process = subprocess.run(
                args,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                timeout=self._config.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            stderr = exc.stderr.decode("utf-8", errors="replace") if exc.stderr else ""
            logger.error("audiowaveform timed out after %ss", self._config.timeout_seconds)
            raise AnalysisFailed(None, f"timed out after {self._config.timeout_seconds}s {stderr}".strip()) from exc
        except OSError as exc:
            logger.error("audiowaveform could not be started: %s", exc)
            raise AnalysisUnavailable(self._config.binary, str(exc)) from exc

        if process.returncode != 0:
            stderr = process.stderr.decode("utf-8", errors="replace") if process.stderr else ""
            logger.error("audiowaveform failed code=%s stderr=%s", process.returncode, stderr)
            raise AnalysisFailed(process.returncode, stderr)

    @staticmethod
    def _read_artifact(json_path: Path) -> Any:
        try:
            raw = json_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise MalformedOutput(f"audiowaveform output could not be read: {exc}") from exc
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise MalformedOutput(f"audiowaveform output is not valid JSON: {exc}") from exc


__all__ = ["AudiowaveformAnalyzer", "build_arguments", "parse_waveform"]
