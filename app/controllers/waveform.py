"""Waveform generation endpoint.

For a stage-by-stage map see `app.pipelines.waveform.flow.WaveformPipeline`.
The POST `/generate-waveform` pipeline performs:

1. Reference lookup + Dropbox token resolution (skipped for previews).
2. Audio download via preview link, shared link or Dropbox path.
3. audiowaveform analysis inside a scoped temp file pair.
4. Peaks persistence onto the reference item (skipped for previews).
"""

import logging

from fastapi import APIRouter, status

from app.controllers.dependencies import WaveformPipelineDep
from app.pipelines.waveform import WaveformError, WaveformPipeline
from app.views import ErrorResponse, GenerateWaveformRequest, GenerateWaveformResponse

router = APIRouter(tags=["waveform"])

logger = logging.getLogger(__name__)

PIPELINE_STAGES = tuple(WaveformPipeline.describe())
"""Ordered pipeline metadata used for quick reference and debugging."""

_ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


@router.post(
    "/generate-waveform",
    response_model=GenerateWaveformResponse,
    responses=_ERROR_RESPONSES,
)
async def generate_waveform(
    payload: GenerateWaveformRequest,
    pipeline: WaveformPipelineDep,
) -> GenerateWaveformResponse:
    """Download a Dropbox audio file and return (and usually store) its peaks."""

    try:
        outcome = await pipeline.run(payload.url, payload.reference_id)
    except WaveformError:
        raise
    except Exception as exc:
        logger.exception("Waveform error")
        raise WaveformError(str(exc)) from exc

    return GenerateWaveformResponse.from_outcome(outcome)
