"""End-to-end orchestration with fake collaborators."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from app.domain.models import Credential, ReferenceItem
from app.pipelines.waveform import (
    AnalysisFailed,
    BadRequest,
    CredentialNotFound,
    DownloadFailed,
    DropboxSourceResolver,
    MalformedOutput,
    PersistFailed,
    ReferenceNotFound,
    WaveformPipeline,
)
from app.services import AudiowaveformAnalyzer, DropboxCredentialManager

from conftest import (
    SAMPLE_WAVEFORM,
    InMemoryCredentialRepository,
    InMemoryReferenceItemRepository,
    RecordingTransport,
)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
AUDIO = b"fake-audio-bytes"


class DropboxStub:
    """Answers the token, content and preview endpoints."""

    def __init__(self, download_status: int = 200) -> None:
        self.download_status = download_status

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/oauth2/token":
            return httpx.Response(200, json={"access_token": "fresh-token"})
        if self.download_status != 200:
            return httpx.Response(self.download_status, text="download refused")
        headers = {}
        if request.url.host == "content.dropboxapi.com":
            headers["Dropbox-API-Result"] = json.dumps({"name": "Track 01.wav"})
        return httpx.Response(200, content=AUDIO, headers=headers)


@pytest.fixture
def references():
    return InMemoryReferenceItemRepository(ReferenceItem(id="ref-1", user_id="user-1"))


@pytest.fixture
def credentials():
    return InMemoryCredentialRepository(
        Credential(
            user_id="user-1",
            access_token="stored-token",
            refresh_token="refresh-me",
            expires_at=NOW + timedelta(hours=2),
        )
    )


@pytest.fixture
def run_pipeline(references, credentials, dropbox_config, fake_audiowaveform, work_dir):
    def _run(url, reference_id, *, stub=None, analysis=None):
        transport = RecordingTransport(stub or DropboxStub())

        async def _go():
            async with httpx.AsyncClient(transport=transport) as client:
                pipeline = WaveformPipeline(
                    references=references,
                    credentials=DropboxCredentialManager(
                        credentials, client, dropbox_config, clock=lambda: NOW
                    ),
                    resolver=DropboxSourceResolver(client, dropbox_config),
                    analyzer=AudiowaveformAnalyzer(analysis or fake_audiowaveform()),
                    temp_dir=work_dir,
                )
                return await pipeline.run(url, reference_id)

        _run.transport = transport
        return asyncio.run(_go()), transport

    return _run


def test_reference_request_persists_exact_peaks(run_pipeline, references, credentials, work_dir):
    outcome, transport = run_pipeline("/Music/track01.wav", "ref-1")

    assert outcome.saved is True
    assert outcome.filename == "Track 01.wav"
    assert list(outcome.result.peaks) == SAMPLE_WAVEFORM["data"]
    assert references.saved["ref-1"] == {
        "peaks": SAMPLE_WAVEFORM["data"],
        "duration": 0.2,
        "sample_rate": 44100,
    }
    assert credentials.reads == ["user-1"]
    assert [r.url.path for r in transport.requests] == ["/2/files/download"]
    assert transport.requests[0].headers["authorization"] == "Bearer stored-token"
    assert list(work_dir.iterdir()) == []


def test_expiring_token_is_refreshed_once(run_pipeline, credentials):
    credentials.credentials["user-1"] = credentials.credentials["user-1"].model_copy(
        update={"expires_at": NOW + timedelta(minutes=2)}
    )

    _, transport = run_pipeline("https://www.dropbox.com/s/abc/song.mp3?dl=0", "ref-1")

    paths = [r.url.path for r in transport.requests]
    assert paths == ["/oauth2/token", "/2/sharing/get_shared_link_file"]
    assert transport.requests[1].headers["authorization"] == "Bearer fresh-token"
    assert len(credentials.writes) == 1


def test_preview_skips_lookup_credentials_and_persistence(run_pipeline, references, credentials, work_dir):
    outcome, transport = run_pipeline("https://www.dropbox.com/s/abc/song.mp3?dl=0", "preview")

    assert outcome.saved is False
    assert outcome.filename == "song.mp3"
    assert references.lookups == []
    assert references.saved == {}
    assert credentials.reads == []
    request = transport.requests[0]
    assert str(request.url) == "https://dl.dropboxusercontent.com/s/abc/song.mp3?dl=0"
    assert "authorization" not in request.headers
    assert list(work_dir.iterdir()) == []


def test_preview_of_a_path_still_skips_credentials(run_pipeline, credentials, references):
    outcome, transport = run_pipeline("https://www.dropbox.com/home/Private/secret.mp3", "preview")

    assert outcome.saved is False
    assert credentials.reads == []
    assert references.lookups == []
    assert transport.requests[0].method == "GET"


@pytest.mark.parametrize(
    "url, reference_id, message",
    [(None, "ref-1", "Missing url"), ("", "ref-1", "Missing url"), ("/a.mp3", None, "Missing referenceId")],
)
def test_missing_fields_fail_before_any_io(run_pipeline, references, url, reference_id, message):
    with pytest.raises(BadRequest) as excinfo:
        run_pipeline(url, reference_id)

    assert excinfo.value.error == message
    assert excinfo.value.status_code == 400
    assert references.lookups == []
    assert run_pipeline.transport.requests == []


def test_unknown_reference(run_pipeline, credentials):
    with pytest.raises(ReferenceNotFound):
        run_pipeline("/a.mp3", "ref-404")
    assert credentials.reads == []


def test_credential_failure_stops_before_download(run_pipeline, credentials):
    credentials.credentials.clear()

    with pytest.raises(CredentialNotFound):
        run_pipeline("/a.mp3", "ref-1")
    assert run_pipeline.transport.requests == []


def test_download_failure_allocates_nothing(run_pipeline, work_dir):
    with pytest.raises(DownloadFailed):
        run_pipeline("/a.mp3", "ref-1", stub=DropboxStub(download_status=409))
    assert list(work_dir.iterdir()) == []


def test_analysis_failure_cleans_up_and_skips_persistence(run_pipeline, references, fake_audiowaveform, work_dir):
    analysis = fake_audiowaveform(exit_code=1, stderr="invalid file")

    with pytest.raises(AnalysisFailed) as excinfo:
        run_pipeline("/a.mp3", "ref-1", analysis=analysis)

    assert "invalid file" in excinfo.value.details
    assert references.saved == {}
    assert list(work_dir.iterdir()) == []


def test_malformed_output_is_not_persisted(run_pipeline, references, fake_audiowaveform, work_dir):
    analysis = fake_audiowaveform(document={"sample_rate": 44100, "data": []})

    with pytest.raises(MalformedOutput):
        run_pipeline("/a.mp3", "ref-1", analysis=analysis)

    assert references.saved == {}
    assert list(work_dir.iterdir()) == []


def test_persist_failure(run_pipeline, references, work_dir):
    references.fail_writes = True

    with pytest.raises(PersistFailed) as excinfo:
        run_pipeline("/a.mp3", "ref-1")

    assert excinfo.value.status_code == 500
    assert list(work_dir.iterdir()) == []


def test_describe_lists_stages_in_order():
    stages = WaveformPipeline.describe()

    assert [stage.order for stage in stages] == [1, 2, 3, 4, 5]
    assert [stage.name for stage in stages if stage.skipped_in_preview] == ["Credential", "Persistence"]
