from typing import ClassVar
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


def _split_comma_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    app_name: ClassVar[str] = "Layers Server"
    version: ClassVar[str] = "0.1.0"

    database_url: str = "sqlite:///./storage/database/layers.db"

    # --- BASE URL ---
    # Default to "/" for root, or "/layers" for subpath
    base_url: str = "/"

    # --- ALLOWED ORIGINS ---
    # Comma-separated list of domains (e.g., "http://localhost:3000,http://localhost:8000")
    allowed_origins_raw: str = Field(default="*", alias="ALLOWED_ORIGINS")

    # --- PROXY SETTINGS ---
    trusted_proxies_raw: str = Field(default="127.0.0.1", alias="TRUSTED_PROXIES")

    # --- CULTURES ---
    # The site culture is used for widgets that don't carry one
    default_culture: str = "en-US"
    supported_cultures_raw: str = Field(default="en-US", alias="SUPPORTED_CULTURES")

    # --- LAYERS ---
    # Zones offered by the theme, in display order
    layer_zones_raw: str = Field(default="Header,Content,Sidebar,Footer", alias="LAYER_ZONES")

    # Upper bound for the process-local document cache
    cache_max_entries: int = 128

    @property
    def allowed_origins(self) -> list[str]:
        return _split_comma_list(self.allowed_origins_raw)

    @property
    def trusted_proxies(self) -> list[str]:
        return _split_comma_list(self.trusted_proxies_raw)

    @property
    def supported_cultures(self) -> list[str]:
        cultures = _split_comma_list(self.supported_cultures_raw)
        if self.default_culture not in cultures:
            cultures.insert(0, self.default_culture)
        return cultures

    @property
    def layer_zones(self) -> list[str]:
        return _split_comma_list(self.layer_zones_raw)

    # --- SECURITY SETTINGS ---
    # openssl rand -hex 32
    secret_key: str = "CHANGE_THIS_TO_A_SECURE_RANDOM_KEY"
    algorithm: str = "HS256"

    # Logging
    log_dir: Path = Path("storage/logs")
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env",
                                      extra="ignore",
                                      env_ignore_empty=True,
                                      case_sensitive=False,
                                      populate_by_name=True,
                                      )

    # Helper to clean up the URL (ensure it starts with / and no trailing /)
    @property
    def clean_base_url(self):
        url = self.base_url.strip()
        if not url.startswith("/"):
            url = f"/{url}"
        return url.rstrip("/")


settings = Settings()
