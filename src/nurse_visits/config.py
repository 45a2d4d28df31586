"""Proxy and view configuration loaded from environment variables.

Variable names match the web front end deployment
(NEXT_PUBLIC_SCRIPT_URL, GOOGLE_*), so an existing .env keeps working.
"""

from zoneinfo import ZoneInfo

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings


class ProxyConfig(BaseSettings):
    """Configuration shared by the proxy server and the view scripts.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # External script (system of record)
    script_url: str = Field(
        default="",
        validation_alias=AliasChoices("NEXT_PUBLIC_SCRIPT_URL", "SCRIPT_URL"),
        description="Google Apps Script web app URL",
    )
    script_timeout_seconds: float | None = Field(
        default=30.0,
        description="Timeout for outbound calls to the script (None disables it)",
    )

    # Google Drive image upload
    google_client_email: str = Field(
        default="",
        description="Service account e-mail used for Drive uploads",
    )
    google_private_key: str = Field(
        default="",
        description="Service account private key (PEM, \\n escapes allowed)",
    )
    google_drive_folder_id: str = Field(
        default="",
        description="Drive folder receiving uploaded visit photos",
    )
    max_image_bytes: int = Field(
        default=5 * 1024 * 1024,
        description="Largest accepted image upload",
    )

    # Proxy server
    proxy_host: str = Field(default="127.0.0.1", description="Bind address")
    proxy_port: int = Field(default=3000, description="Bind port")

    # Views
    proxy_url: str = Field(
        default="http://127.0.0.1:3000/api/proxy",
        description="Proxy endpoint used by the view scripts",
    )
    fetch_timeout_seconds: float = Field(
        default=10.0,
        description="Client-side timeout for each view request",
    )
    fetch_max_retries: int = Field(
        default=3,
        description="Total attempts when loading the booking list",
    )
    fetch_retry_delay_seconds: float = Field(
        default=2.0,
        description="Base backoff delay, multiplied by the attempt number",
    )
    timezone: str = Field(
        default="Asia/Bangkok",
        description="Time zone used for every day boundary",
    )
    preferences_path: str = Field(
        default="data/state/preferences.json",
        description="File holding the dark-mode flag and remembered e-mail",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator("google_private_key")
    @classmethod
    def _unescape_newlines(cls, value: str) -> str:
        # Keys pasted into .env files usually carry literal "\n" sequences
        return value.replace("\\n", "\n")

    @property
    def drive_configured(self) -> bool:
        return bool(
            self.google_client_email
            and self.google_private_key
            and self.google_drive_folder_id
        )

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


# Singleton pattern
_config: ProxyConfig | None = None


def get_config() -> ProxyConfig:
    """Get the configuration singleton.

    Returns:
        ProxyConfig: Configuration instance
    """
    global _config
    if _config is None:
        _config = ProxyConfig()
    return _config
