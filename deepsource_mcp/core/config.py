from __future__ import annotations

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from deepsource_mcp.core import constants as cs
from deepsource_mcp.infrastructure import exceptions as ex

load_dotenv()


class AppConfig(BaseSettings):
    """Server settings, loaded from environment variables or a .env file.

    This class uses Pydantic's `BaseSettings` to load and validate the
    DeepSource credentials, transport options and logging options.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    DEEPSOURCE_API_KEY: str | None = None
    DEEPSOURCE_API_BASE_URL: str = cs.DEFAULT_API_BASE_URL
    DEEPSOURCE_REQUEST_TIMEOUT: int = Field(cs.DEFAULT_REQUEST_TIMEOUT_MS, gt=0)

    DEEPSOURCE_DEFAULT_PAGE_SIZE: int = Field(cs.DEFAULT_PAGE_SIZE, ge=1)
    DEEPSOURCE_MAX_PAGES: int = Field(cs.DEFAULT_MAX_PAGES, ge=1)

    LOG_FILE: str | None = None
    LOG_LEVEL: str = cs.DEFAULT_LOG_LEVEL

    @property
    def request_timeout_seconds(self) -> float:
        """The request timeout converted from milliseconds for httpx."""
        return self.DEEPSOURCE_REQUEST_TIMEOUT / 1000

    def has_api_key(self) -> bool:
        return bool(self.DEEPSOURCE_API_KEY and self.DEEPSOURCE_API_KEY.strip())

    def require_api_key(self) -> str:
        """Returns the configured API key.

        Raises:
            ValueError: If `DEEPSOURCE_API_KEY` is not set.
        """
        if not self.has_api_key():
            raise ValueError(ex.API_KEY_NOT_SET)
        return str(self.DEEPSOURCE_API_KEY).strip()

    def masked_api_key(self) -> str:
        if not self.has_api_key():
            return ""
        key = str(self.DEEPSOURCE_API_KEY).strip()
        return f"{key[: cs.API_KEY_VISIBLE_CHARS]}{cs.API_KEY_MASK}"


settings = AppConfig()
