"""Typed application settings."""

from pathlib import Path
from typing import Dict

from pydantic import BaseModel, Field, ValidationError

from recordwatch.core.exceptions import ConfigurationError

from .loader import ConfigLoader


class RecordClubConfig(BaseModel):
    base_url: str = "https://record.club"


class BrowserConfig(BaseModel):
    """Headless browser rendering options."""

    headless: bool = True
    navigation_timeout_seconds: float = 60.0
    ready_timeout_seconds: float = 10.0
    scroll_pixels: int = 500
    settle_seconds: float = 1.0
    max_attempts: int = Field(default=3, ge=1)
    retry_delay_seconds: float = 5.0


class ExtractConfig(BaseModel):
    max_review_chars: int = Field(default=500, ge=10)


class EnrichmentConfig(BaseModel):
    """MusicBrainz release-year lookup."""

    enabled: bool = True
    base_url: str = "https://musicbrainz.org/ws/2"
    user_agent: str = "RecordWatch/0.3 ( recordwatch@example.com )"
    timeout_seconds: float = 5.0
    max_attempts: int = Field(default=3, ge=1)
    backoff_seconds: float = 1.0
    min_interval_seconds: float = 1.1
    album_page_fallback: bool = True


class PollingConfig(BaseModel):
    interval_minutes: float = Field(default=15.0, gt=0)
    user_delay_seconds: float = 5.0


class DiscordConfig(BaseModel):
    token: str = ""
    api_base: str = "https://discord.com/api/v10"
    timeout_seconds: float = 10.0
    max_attempts: int = Field(default=3, ge=1)

    @property
    def has_token(self) -> bool:
        # Unexpanded placeholders count as missing
        return bool(self.token.strip()) and not self.token.startswith("${")


class StorageConfig(BaseModel):
    path: str = "data/recordwatch.sqlite"


class CuratedConfig(BaseModel):
    """Curated list locations keyed by source tag."""

    sources: Dict[str, str] = Field(
        default_factory=lambda: {
            "1001": "https://1001albumsgenerator.com/albums",
            "latam": "https://www.600discoslatam.com/indice-general-de-los-600-discos-de-latinoamerica/",
        }
    )
    timeout_seconds: float = 30.0


class Settings(BaseModel):
    """Root settings container."""

    recordclub: RecordClubConfig = Field(default_factory=RecordClubConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    extract: ExtractConfig = Field(default_factory=ExtractConfig)
    enrichment: EnrichmentConfig = Field(default_factory=EnrichmentConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    discord: DiscordConfig = Field(default_factory=DiscordConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    curated: CuratedConfig = Field(default_factory=CuratedConfig)

    def storage_path(self, base_dir: Path | str) -> Path:
        """Resolve the SQLite path against the base directory."""
        path = Path(self.storage.path)
        return path if path.is_absolute() else Path(base_dir) / path


def load_settings(base_dir: Path | str) -> Settings:
    """Load settings from ``<base_dir>/config/config.yaml``."""
    data = ConfigLoader(base_dir).load()
    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


__all__ = [
    "Settings",
    "RecordClubConfig",
    "BrowserConfig",
    "ExtractConfig",
    "EnrichmentConfig",
    "PollingConfig",
    "DiscordConfig",
    "StorageConfig",
    "CuratedConfig",
    "load_settings",
]
