"""Client configuration loaded from environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings


class UntisConfig(BaseSettings):
    """Client configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # WebUntis JSON-RPC endpoint (school is part of the query string)
    untis_url: str = Field(
        default="https://neilo.webuntis.com/WebUntis/jsonrpc.do?school=tgm",
        description="WebUntis JSON-RPC endpoint URL",
    )
    untis_client_name: str = Field(
        default="Refundable",
        description="Client name sent with the authenticate call",
    )
    untis_user: str = Field(
        default="",
        description="WebUntis username (used by scripts only)",
    )
    untis_pass: str = Field(
        default="",
        description="WebUntis password (used by scripts only)",
    )

    # Transport
    request_timeout_seconds: float | None = Field(
        default=30.0,
        description="Per-request HTTP timeout; None waits indefinitely",
    )

    # Reference data
    reference_cache_ttl_seconds: float = Field(
        default=300.0,
        ge=0,
        description="Lifetime of cached teacher/room/class listings; 0 disables caching",
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
    }


# Singleton pattern
_config: UntisConfig | None = None


def get_config() -> UntisConfig:
    """Get the client configuration singleton.

    Returns:
        UntisConfig: Client configuration instance
    """
    global _config
    if _config is None:
        _config = UntisConfig()
    return _config
