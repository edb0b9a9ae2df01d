"""Common FastAPI dependencies reused across controllers."""

from __future__ import annotations

from typing import Annotated

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.database import get_session
from app.infrastructure.persistence.repositories_sqlalchemy import (
    SQLAlchemyCredentialRepository,
    SQLAlchemyReferenceItemRepository,
)
from app.pipelines.waveform import DropboxSourceResolver, WaveformPipeline
from app.services import AudiowaveformAnalyzer, DropboxCredentialManager

SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Return the process-wide HTTP client created at startup."""

    return request.app.state.http_client


HttpClientDep = Annotated[httpx.AsyncClient, Depends(get_http_client)]


async def get_waveform_pipeline(
    session: SessionDep,
    http_client: HttpClientDep,
) -> WaveformPipeline:
    """Wire a pipeline for the current request around the shared clients."""

    return WaveformPipeline(
        references=SQLAlchemyReferenceItemRepository(session),
        credentials=DropboxCredentialManager(
            SQLAlchemyCredentialRepository(session),
            http_client,
            settings.dropbox,
        ),
        resolver=DropboxSourceResolver(http_client, settings.dropbox),
        analyzer=AudiowaveformAnalyzer(settings.analysis),
        temp_dir=settings.analysis.temp_dir,
    )


WaveformPipelineDep = Annotated[WaveformPipeline, Depends(get_waveform_pipeline)]


__all__ = [
    "get_http_client",
    "get_waveform_pipeline",
    "HttpClientDep",
    "SessionDep",
    "WaveformPipelineDep",
]
