"""Error taxonomy for the waveform pipeline.

Every failure a stage can produce is a ``WaveformError`` subclass carrying the
HTTP status and the ``{error, details}`` body the API answers with. Stages
raise them; ``app.main`` renders them.
"""

from __future__ import annotations

from fastapi import status


class WaveformError(Exception):
    """Base class for failures that short-circuit the pipeline."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "Failed to generate waveform"

    def __init__(self, details: str | None = None) -> None:
        super().__init__(details or self.error)
        self.details = details

    def to_payload(self) -> dict[str, str | None]:
        return {"error": self.error, "details": self.details}


class BadRequest(WaveformError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Invalid request"

    def __init__(self, error: str, details: str | None = None) -> None:
        self.error = error
        super().__init__(details or error)


class ConfigurationMissing(WaveformError):
    error = "Missing service configuration"


# Credential lifecycle


class CredentialError(WaveformError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Dropbox authentication failed"


class CredentialNotFound(CredentialError):
    def __init__(self, user_id: str) -> None:
        super().__init__("No access token available")
        self.user_id = user_id


class RefreshTokenMissing(CredentialError):
    def __init__(self, user_id: str) -> None:
        super().__init__("No refresh token available")
        self.user_id = user_id


class RefreshFailed(CredentialError):
    def __init__(self, status_code: int | None, body: str) -> None:
        label = status_code if status_code is not None else "transport error"
        super().__init__(f"Token refresh failed: {label} - {body}")
        self.response_status = status_code
        self.body = body


class CredentialPersistFailed(CredentialError):
    def __init__(self, reason: str | None = None) -> None:
        super().__init__(reason or "Failed to save new token to database")


# Lookup and persistence


class ReferenceNotFound(WaveformError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "Reference not found"

    def __init__(self, reference_id: str) -> None:
        super().__init__(f"No reference item with id {reference_id}")
        self.reference_id = reference_id


class PersistFailed(WaveformError):
    error = "Failed to save peaks to database"


# Source retrieval


class DownloadFailed(WaveformError):
    def __init__(self, status_code: int | None, body: str) -> None:
        label = status_code if status_code is not None else "transport error"
        super().__init__(f"Dropbox download failed: {label} - {body}")
        self.response_status = status_code
        self.body = body


# Analysis


class AnalysisUnavailable(WaveformError):
    def __init__(self, binary: str, reason: str) -> None:
        super().__init__(f"Could not start {binary}: {reason}")
        self.binary = binary


class AnalysisFailed(WaveformError):
    def __init__(self, exit_code: int | None, stderr: str) -> None:
        if exit_code is None:
            message = f"audiowaveform did not finish: {stderr}"
        else:
            message = f"audiowaveform exited with code {exit_code}: {stderr}"
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr


class MalformedOutput(WaveformError):
    error = "Failed to generate valid waveform data"

    def __init__(self, details: str = "audiowaveform did not produce expected data array") -> None:
        super().__init__(details)


__all__ = [
    "WaveformError",
    "BadRequest",
    "ConfigurationMissing",
    "CredentialError",
    "CredentialNotFound",
    "RefreshTokenMissing",
    "RefreshFailed",
    "CredentialPersistFailed",
    "ReferenceNotFound",
    "PersistFailed",
    "DownloadFailed",
    "AnalysisUnavailable",
    "AnalysisFailed",
    "MalformedOutput",
]
