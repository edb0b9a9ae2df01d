"""Dropbox access token resolution with transparent refresh."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx

from app.application.interfaces import CredentialRepositoryInterface, PersistenceError
from app.config.settings import DropboxConfig
from app.pipelines.waveform.errors import (
    ConfigurationMissing,
    CredentialNotFound,
    CredentialPersistFailed,
    RefreshFailed,
    RefreshTokenMissing,
)
from app.pipelines.waveform.types import AccessToken
from app.telemetry import increment_token_refresh

logger = logging.getLogger(__name__)

EXPIRY_SAFETY_MARGIN = timedelta(minutes=5)
# The refresh response is not trusted to carry an expiry; assume this window.
DEFAULT_TOKEN_LIFETIME = timedelta(hours=4)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime) -> datetime:
    """Treat naive timestamps coming back from the database as UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DropboxCredentialManager:
    """Hand out Dropbox access tokens that stay valid for the safety margin."""

    def __init__(
        self,
        repository: CredentialRepositoryInterface,
        http_client: httpx.AsyncClient,
        config: DropboxConfig,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repository = repository
        self._http = http_client
        self._config = config
        self._clock = clock

    async def get_valid_access_token(self, user_id: str) -> AccessToken:
        """Return the stored token or refresh it when it is inside the margin."""

        credential = await self._repository.get_credential(user_id)
        if credential is None or not credential.access_token:
            logger.warning("No Dropbox access token on record user=%s", user_id)
            raise CredentialNotFound(user_id)

        now = self._clock()
        if credential.expires_at is not None:
            expires_at = _as_aware(credential.expires_at)
            if now < expires_at - EXPIRY_SAFETY_MARGIN:
                logger.info("Dropbox token still valid user=%s expires_at=%s", user_id, expires_at.isoformat())
                return AccessToken(token=credential.access_token, expires_at=expires_at)

        logger.info("Dropbox token expired or expiring, refreshing user=%s", user_id)
        if not credential.refresh_token:
            logger.warning("No Dropbox refresh token on record user=%s", user_id)
            increment_token_refresh("missing_refresh_token")
            raise RefreshTokenMissing(user_id)

        payload = await self._exchange_refresh_token(credential.refresh_token)
        new_token = payload.get("access_token")
        if not isinstance(new_token, str) or not new_token:
            increment_token_refresh("rejected")
            raise RefreshFailed(200, "Token endpoint response did not include an access_token")

        new_expires_at = self._compute_expiry(now, payload.get("expires_in"))
        if new_expires_at - EXPIRY_SAFETY_MARGIN <= now:
            increment_token_refresh("rejected")
            raise RefreshFailed(200, f"Refreshed token expires too soon ({new_expires_at.isoformat()})")

        try:
            await self._repository.save_access_token(user_id, new_token, new_expires_at)
        except PersistenceError as exc:
            logger.error("Could not persist refreshed Dropbox token user=%s: %s", user_id, exc)
            increment_token_refresh("persist_failed")
            raise CredentialPersistFailed() from exc

        increment_token_refresh("success")
        logger.info("Dropbox token refreshed user=%s expires_at=%s", user_id, new_expires_at.isoformat())
        return AccessToken(token=new_token, expires_at=new_expires_at, refreshed=True)

    async def _exchange_refresh_token(self, refresh_token: str) -> dict[str, Any]:
        client_id = self._config.client_id
        client_secret = (
            self._config.client_secret.get_secret_value()
            if self._config.client_secret
            else None
        )
        if not client_id or not client_secret:
            increment_token_refresh("unconfigured")
            raise ConfigurationMissing(
                "DROPBOX_CLIENT_ID and DROPBOX_CLIENT_SECRET must be set to refresh tokens"
            )

        try:
            response = await self._http.post(
                self._config.token_url,
                data={
                    "grant_type": "refresh_token",
                    "refresh_token": refresh_token,
                    "client_id": client_id,
                    "client_secret": client_secret,
                },
            )
        except httpx.RequestError as exc:
            logger.error("Dropbox token endpoint unreachable: %s", exc)
            increment_token_refresh("transport_error")
            raise RefreshFailed(None, str(exc)) from exc

        if not response.is_success:
            logger.error("Dropbox token refresh failed status=%s body=%s", response.status_code, response.text)
            increment_token_refresh("rejected")
            raise RefreshFailed(response.status_code, response.text)

        try:
            payload = response.json()
        except ValueError as exc:
            increment_token_refresh("rejected")
            raise RefreshFailed(response.status_code, "Token endpoint returned invalid JSON") from exc

        if not isinstance(payload, dict):
            increment_token_refresh("rejected")
            raise RefreshFailed(response.status_code, "Token endpoint returned an unexpected payload")
        return payload

    @staticmethod
    def _compute_expiry(now: datetime, expires_in: Any) -> datetime:
        """Use the provider's lifetime when it reports one, else the fixed window."""

        if isinstance(expires_in, (int, float)) and not isinstance(expires_in, bool) and expires_in > 0:
            return now + timedelta(seconds=expires_in)
        return now + DEFAULT_TOKEN_LIFETIME


__all__ = [
    "DropboxCredentialManager",
    "EXPIRY_SAFETY_MARGIN",
    "DEFAULT_TOKEN_LIFETIME",
]
