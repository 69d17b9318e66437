"""Configuration management with pydantic-settings for the Office 365 client.

Loads from (in order of precedence):
1. Environment variables prefixed with OFFICE365_ (highest priority)
2. .env file in the working directory
3. Default values (lowest priority)

The config is frozen after load; secrets are held as SecretStr.
"""

from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import BodyType

__all__ = [
    "DEFAULT_BASE_URL",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_TOKEN_URL",
    "Office365Config",
    "get_config",
    "reset_config",
]

DEFAULT_BASE_URL = "https://outlook.office.com/api/v2.0/me"
DEFAULT_TOKEN_URL = "https://login.microsoftonline.com/common/oauth2/v2.0/token"
DEFAULT_PAGE_SIZE = 100


class Office365Config(BaseSettings):
    """Configuration for the Office 365 client.

    Attributes:
        base_url: API prefix every logical path is appended to
        page_size: $top value sent with the first page of every query
        preferred_body_type: Body format requested via the Prefer header
        connect_timeout: httpx connect timeout (seconds)
        read_timeout: httpx read timeout (seconds)
        write_timeout: httpx write timeout (seconds)
        pool_timeout: httpx pool acquisition timeout (seconds)
        token_url: OAuth2 token endpoint used by RefreshTokenCredential
        client_id: OAuth2 application (client) ID
        client_secret: OAuth2 client secret, empty for public clients
        refresh_token: OAuth2 refresh token used to mint access tokens
        scopes: Space-separated OAuth2 scopes requested on refresh
        token_expiry_skew_seconds: Treat tokens as expired this long before expiry
        refresh_backoff_seconds: Minimum delay between a failed refresh and the next attempt
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format (json for production, text for development)
    """

    model_config = SettingsConfigDict(
        env_prefix="OFFICE365_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        validate_default=True,
        frozen=True,
        extra="ignore",
    )

    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="API base URL, e.g. https://outlook.office.com/api/v2.0/me",
    )

    page_size: int = Field(
        default=DEFAULT_PAGE_SIZE,
        ge=1,
        le=1000,
        description="Items requested per page ($top)",
    )

    preferred_body_type: BodyType = Field(
        default=BodyType.HTML,
        description="Preferred message body format: html or text",
    )

    # httpx timeouts
    connect_timeout: float = Field(default=5.0, gt=0)
    read_timeout: float = Field(default=30.0, gt=0)
    write_timeout: float = Field(default=5.0, gt=0)
    pool_timeout: float = Field(default=5.0, gt=0)

    # OAuth2 refresh-token grant
    token_url: str = Field(
        default=DEFAULT_TOKEN_URL,
        description="OAuth2 token endpoint",
    )

    client_id: str = Field(default="", description="OAuth2 client ID")

    client_secret: SecretStr = Field(
        default=SecretStr(""),
        description="OAuth2 client secret (stored securely)",
    )

    refresh_token: SecretStr = Field(
        default=SecretStr(""),
        description="OAuth2 refresh token (stored securely)",
    )

    scopes: str = Field(
        default="offline_access https://outlook.office.com/Mail.Read",
        description="Space-separated OAuth2 scopes",
    )

    token_expiry_skew_seconds: int = Field(
        default=60,
        ge=0,
        le=3600,
        description="Refresh this many seconds before the token actually expires",
    )

    refresh_backoff_seconds: float = Field(
        default=0.0,
        ge=0.0,
        le=300.0,
        description="Wait at least this long after a failed refresh before retrying (0 = immediately)",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )

    log_format: str = Field(
        default="json",
        pattern="^(json|text)$",
        description="Log format: json (production), text (development)",
    )

    @field_validator("base_url", "token_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Strip trailing slashes so paths can be appended verbatim."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"URL must start with http:// or https://, got '{v}'")
        return v.rstrip("/")

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v):
        """Accept lowercase level names from the environment."""
        if isinstance(v, str):
            return v.upper()
        return v


@lru_cache(maxsize=1)
def get_config() -> Office365Config:
    """Get global configuration singleton.

    First call loads from environment + .env file, subsequent calls return
    the cached instance.

    Raises:
        ValidationError: If configuration values are invalid.
    """
    return Office365Config()


def reset_config() -> None:
    """Reset configuration singleton for testing.

    Warning:
        Only use in test code. Production code should not reset config.
    """
    get_config.cache_clear()
