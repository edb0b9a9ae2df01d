"""Source acquisition (stage 02): classify the locator and download the audio."""

from __future__ import annotations

import json
import logging
from pathlib import PurePosixPath

import httpx

from app.config.settings import DropboxConfig

from .errors import BadRequest, DownloadFailed
from .types import (
    DEFAULT_EXTENSION,
    DEFAULT_FILENAME,
    FetchedAudio,
    PreviewLocator,
    ProviderPathLocator,
    SharedLinkLocator,
    SourceLocator,
)

logger = logging.getLogger("app.pipelines.waveform")

_LINK_PREFIXES = ("http://", "https://")
_API_ARG_HEADER = "Dropbox-API-Arg"
_API_RESULT_HEADER = "Dropbox-API-Result"


def classify_locator(raw: str, *, preview: bool = False) -> SourceLocator:
    """Map the caller's string onto exactly one retrieval strategy."""

    if not raw:
        raise BadRequest("Missing url")
    if preview:
        return PreviewLocator(url=raw)
    if raw.startswith(_LINK_PREFIXES):
        return SharedLinkLocator(url=raw)
    return ProviderPathLocator(path=raw)


def filename_from_url(url: str) -> str:
    """Last path segment without its query string, when it looks like a file."""

    candidate = url.split("/")[-1].split("?")[0]
    if candidate and "." in candidate:
        return candidate
    return DEFAULT_FILENAME


def filename_from_api_result(header_value: str | None) -> str:
    if not header_value:
        return DEFAULT_FILENAME
    try:
        api_result = json.loads(header_value)
    except ValueError:
        logger.warning("Could not parse %s header: %r", _API_RESULT_HEADER, header_value)
        return DEFAULT_FILENAME
    name = api_result.get("name") if isinstance(api_result, dict) else None
    return name if isinstance(name, str) and name else DEFAULT_FILENAME


def extension_for(filename: str) -> str:
    return PurePosixPath(filename).suffix or DEFAULT_EXTENSION


def direct_download_url(url: str, config: DropboxConfig) -> str:
    """Point a public share link at the host that serves raw file content."""

    return url.replace(config.public_host, config.direct_host)


class DropboxSourceResolver:
    """Download audio from Dropbox using the strategy the locator selects."""

    def __init__(self, http_client: httpx.AsyncClient, config: DropboxConfig) -> None:
        self._http = http_client
        self._config = config

    async def fetch(self, locator: SourceLocator, access_token: str | None) -> FetchedAudio:
        if isinstance(locator, PreviewLocator):
            direct_url = direct_download_url(locator.url, self._config)
            logger.info("Preview download url=%s", direct_url)
            response = await self._send("GET", direct_url)
            filename = filename_from_url(locator.url)
        elif isinstance(locator, SharedLinkLocator):
            logger.info("Shared link download url=%s", locator.url)
            response = await self._send(
                "POST",
                self._config.shared_link_file_url,
                headers=self._api_headers(access_token, {"url": locator.url}),
            )
            filename = filename_from_api_result(response.headers.get(_API_RESULT_HEADER))
        elif isinstance(locator, ProviderPathLocator):
            logger.info("Path download path=%s", locator.path)
            response = await self._send(
                "POST",
                self._config.files_download_url,
                headers=self._api_headers(access_token, {"path": locator.path}),
            )
            filename = filename_from_api_result(response.headers.get(_API_RESULT_HEADER))
        else:  # pragma: no cover - exhaustive over SourceLocator
            raise TypeError(f"Unsupported locator {locator!r}")

        content = response.content
        if not content:
            raise DownloadFailed(response.status_code, "Downloaded file is empty")

        extension = extension_for(filename)
        logger.info("Downloaded filename=%s extension=%s size=%d bytes", filename, extension, len(content))
        return FetchedAudio(content=content, filename=filename, extension=extension)

    @staticmethod
    def _api_headers(access_token: str | None, argument: dict[str, str]) -> dict[str, str]:
        if not access_token:
            raise DownloadFailed(None, "An access token is required for Dropbox API downloads")
        return {
            "Authorization": f"Bearer {access_token}",
            _API_ARG_HEADER: json.dumps(argument),
        }

    async def _send(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            response = await self._http.request(
                method,
                url,
                headers=headers,
                follow_redirects=True,
            )
        except httpx.RequestError as exc:
            logger.error("Download transport error url=%s: %s", url, exc)
            raise DownloadFailed(None, str(exc)) from exc

        if not response.is_success:
            logger.error("Download failed status=%s body=%s", response.status_code, response.text)
            raise DownloadFailed(response.status_code, response.text)
        return response


__all__ = [
    "DropboxSourceResolver",
    "classify_locator",
    "direct_download_url",
    "extension_for",
    "filename_from_api_result",
    "filename_from_url",
]
