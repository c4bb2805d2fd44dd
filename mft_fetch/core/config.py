"""Application configuration using pydantic-settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36"
)


def _default_output_dir() -> Path:
    return Path.cwd() / "downloads"


class Settings(BaseSettings):
    """Settings loaded from MFT_* environment variables and an optional .env file."""

    model_config = SettingsConfigDict(
        env_prefix="MFT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="mft-fetch")
    debug: bool = Field(default=False)
    # any non-empty value turns debug on
    chromedp_debug: str = Field(default="", validation_alias="CHROMEDP_DEBUG", exclude=True)
    log_json: bool = Field(default=False)

    # Output
    output_dir: Path = Field(default_factory=_default_output_dir)

    # Portal
    target_url: str = Field(default="https://mft.ffessm.fr/pages/documents")
    select_all_selector: str = Field(default="#k-grid0-select-all")
    download_button_label: str = Field(default="Télécharger les éléments sélectionnés")

    # Browser
    headless: bool = Field(default=True)
    user_agent: str = Field(default=DEFAULT_USER_AGENT)
    deadline_seconds: float = Field(default=60.0, gt=0)
    render_delay_seconds: float = Field(default=5.0, ge=0)

    @model_validator(mode="after")
    def apply_legacy_debug(self) -> "Settings":
        """Honour the CHROMEDP_DEBUG switch."""
        if self.chromedp_debug.strip():
            self.debug = True
        return self

    @property
    def download_button_xpath(self) -> str:
        """XPath matching the download button by its visible label."""
        return f"//button[normalize-space() = '{self.download_button_label}']"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
