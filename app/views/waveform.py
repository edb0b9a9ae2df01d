"""Pydantic schemas for waveform generation."""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.pipelines.waveform import WaveformOutcome


class GenerateWaveformRequest(BaseModel):
    """Body of ``POST /generate-waveform``.

    Both fields are optional at the schema level so that missing values are
    reported as ``{error, details}`` by the pipeline rather than as a 422.
    """

    url: Optional[str] = Field(None, description="Dropbox shared link or path")
    reference_id: Optional[str] = Field(
        None,
        alias="referenceId",
        description='Reference item id, or "preview" for an unsaved audition',
    )
    access_token: Optional[str] = Field(
        None,
        alias="accessToken",
        description="Accepted for client compatibility; the server resolves its own token",
    )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class WaveformData(BaseModel):
    """Waveform payload as produced by audiowaveform."""

    data: List[Any]
    version: Optional[int] = None
    channels: Optional[int] = None
    sampleRate: Optional[int] = None
    samplesPerPixel: Optional[int] = None
    bits: Optional[int] = None
    length: Optional[int] = None
    duration: Optional[float] = None
    numPeaks: int


class GenerateWaveformResponse(BaseModel):
    waveform: WaveformData
    saved: bool

    @classmethod
    def from_outcome(cls, outcome: WaveformOutcome) -> "GenerateWaveformResponse":
        result = outcome.result
        return cls(
            waveform=WaveformData(
                data=list(result.peaks),
                version=result.version,
                channels=result.channels,
                sampleRate=result.sample_rate,
                samplesPerPixel=result.samples_per_pixel,
                bits=result.bits,
                length=result.length,
                duration=result.duration,
                numPeaks=result.num_peaks,
            ),
            saved=outcome.saved,
        )
