from typing import Optional
from urllib.parse import quote_plus

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """Database configuration"""

    host: str = "localhost"
    port: int = 5432
    username: str = "postgres"
    password: SecretStr = Field(default=SecretStr("postgres"))
    database: str = "waveforms"
    schema_name: Optional[str] = Field(default=None, validation_alias="DB_SCHEMA")
    serverless: bool = Field(
        default=True,
        description="If true, disable connection pooling so serverless DBs can pause.",
    )

    @property
    def url(self) -> str:
        """Get database URL"""
        username = quote_plus(self.username)
        password = quote_plus(self.password.get_secret_value())
        return (
            "postgresql+asyncpg://"
            f"{username}:{password}"
            f"@{self.host}:{self.port}/{self.database}"
        )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class DropboxConfig(BaseSettings):
    """Dropbox OAuth client and endpoint configuration."""

    client_id: Optional[str] = None
    client_secret: Optional[SecretStr] = None
    api_base_url: str = "https://api.dropboxapi.com"
    content_base_url: str = "https://content.dropboxapi.com"
    public_host: str = "www.dropbox.com"
    direct_host: str = "dl.dropboxusercontent.com"
    http_timeout_seconds: float = Field(default=60.0, gt=0)

    @property
    def token_url(self) -> str:
        return f"{self.api_base_url.rstrip('/')}/oauth2/token"

    @property
    def shared_link_file_url(self) -> str:
        return f"{self.content_base_url.rstrip('/')}/2/sharing/get_shared_link_file"

    @property
    def files_download_url(self) -> str:
        return f"{self.content_base_url.rstrip('/')}/2/files/download"

    model_config = SettingsConfigDict(
        env_prefix="DROPBOX_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class AnalysisConfig(BaseSettings):
    """audiowaveform invocation settings."""

    binary: str = "audiowaveform"
    pixels_per_second: int = Field(default=20, ge=1)
    split_channels: bool = True
    temp_dir: Optional[str] = None
    timeout_seconds: Optional[float] = Field(default=None, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="ANALYSIS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "Waveform Service"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 3000
    log_file: str = "logs/app.log"
    waveform_log_file: str = "logs/waveform_pipeline.log"

    # Database
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    # Dropbox
    dropbox: DropboxConfig = Field(default_factory=DropboxConfig)

    # audiowaveform
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    def environment_report(self) -> dict[str, str]:
        """Report whether each required variable was supplied."""

        checks = {
            "DB_HOST": "host" in self.database.model_fields_set,
            "DB_PASSWORD": "password" in self.database.model_fields_set,
            "DROPBOX_CLIENT_ID": bool(self.dropbox.client_id),
            "DROPBOX_CLIENT_SECRET": bool(
                self.dropbox.client_secret
                and self.dropbox.client_secret.get_secret_value()
            ),
        }
        return {name: "Set" if present else "Missing" for name, present in checks.items()}


# Global settings instance
settings = Settings()
