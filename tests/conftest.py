"""Shared fakes for the waveform test-suite."""

from __future__ import annotations

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from app.application.interfaces import (  # noqa: E402
    CredentialRepositoryInterface,
    PersistenceError,
    ReferenceItemRepositoryInterface,
)
from app.config.settings import AnalysisConfig, DropboxConfig  # noqa: E402
from app.domain.models import Credential, ReferenceItem  # noqa: E402

SAMPLE_WAVEFORM = {
    "version": 2,
    "channels": 2,
    "sample_rate": 44100,
    "samples_per_pixel": 2205,
    "bits": 8,
    "length": 4,
    "data": [-12, 15, -10, 11, -30, 33, -28, 29, -5, 6, -4, 4, 0, 1, -1, 1],
}


class InMemoryCredentialRepository(CredentialRepositoryInterface):
    def __init__(self, *credentials: Credential, fail_writes: bool = False) -> None:
        self.credentials = {c.user_id: c for c in credentials}
        self.fail_writes = fail_writes
        self.reads: list[str] = []
        self.writes: list[tuple[str, str, datetime]] = []

    async def get_credential(self, user_id: str) -> Optional[Credential]:
        self.reads.append(user_id)
        return self.credentials.get(user_id)

    async def save_access_token(self, user_id: str, access_token: str, expires_at: datetime) -> None:
        if self.fail_writes:
            raise PersistenceError("database is read-only")
        self.writes.append((user_id, access_token, expires_at))
        current = self.credentials[user_id]
        self.credentials[user_id] = current.model_copy(
            update={"access_token": access_token, "expires_at": expires_at}
        )


class InMemoryReferenceItemRepository(ReferenceItemRepositoryInterface):
    def __init__(self, *items: ReferenceItem, fail_writes: bool = False) -> None:
        self.items = {item.id: item for item in items}
        self.fail_writes = fail_writes
        self.lookups: list[str] = []
        self.saved: dict[str, dict[str, Any]] = {}

    async def get_by_id(self, reference_id: str) -> Optional[ReferenceItem]:
        self.lookups.append(reference_id)
        return self.items.get(reference_id)

    async def save_waveform(
        self,
        reference_id: str,
        peaks: Sequence[float],
        *,
        duration: Optional[float] = None,
        sample_rate: Optional[int] = None,
    ) -> None:
        if self.fail_writes:
            raise PersistenceError("Failed to save peaks to database: connection lost")
        self.saved[reference_id] = {
            "peaks": list(peaks),
            "duration": duration,
            "sample_rate": sample_rate,
        }


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def dropbox_config() -> DropboxConfig:
    return DropboxConfig(client_id="app-key", client_secret="app-secret")


@pytest.fixture
def fake_audiowaveform(tmp_path: Path) -> Callable[..., AnalysisConfig]:
    """Write an executable stand-in for audiowaveform and return its config."""

    def _factory(
        *,
        document: Any = SAMPLE_WAVEFORM,
        exit_code: int = 0,
        stderr: str = "",
        raw_output: Optional[str] = None,
        split_channels: bool = True,
    ) -> AnalysisConfig:
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir(exist_ok=True)
        script = bin_dir / "audiowaveform"
        output = raw_output if raw_output is not None else json.dumps(document)
        script.write_text(
            f"#!{sys.executable}\n"
            "import json, os, sys\n"
            "args = sys.argv[1:]\n"
            "source = args[args.index('-i') + 1]\n"
            "target = args[args.index('-o') + 1]\n"
            f"log = {str(bin_dir / 'invocation.json')!r}\n"
            "with open(log, 'w') as fh:\n"
            "    json.dump({'args': args, 'input_size': os.path.getsize(source)}, fh)\n"
            f"sys.stderr.write({stderr!r})\n"
            f"if {exit_code}:\n"
            f"    sys.exit({exit_code})\n"
            "with open(target, 'w') as fh:\n"
            f"    fh.write({output!r})\n",
            encoding="utf-8",
        )
        script.chmod(0o755)
        return AnalysisConfig(binary=str(script), split_channels=split_channels)

    return _factory


@pytest.fixture
def invocation_log(tmp_path: Path) -> Callable[[], dict[str, Any]]:
    def _read() -> dict[str, Any]:
        return json.loads((tmp_path / "bin" / "invocation.json").read_text(encoding="utf-8"))

    return _read


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "work"
    directory.mkdir()
    return directory
