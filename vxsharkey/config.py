# vxsharkey/config.py
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    log_level: str = "INFO"
    access_log: bool = True
    port: int = 3000
    site_name: str = "vxsharkey"

    # Response cache settings
    cache_max_size: int = 500
    cache_ttl_seconds: float = 900.0  # 15 minutes

    # Outbound API settings
    request_timeout_seconds: float = 10.0

    # Preview card settings
    og_image_enabled: bool = True
    chromium_path: Optional[str] = None  # None = Playwright's bundled Chromium
    render_timeout_seconds: float = 15.0

    # Rate limiting
    rate_limit_window_seconds: int = 60
    rate_limit_max_requests: int = 100

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
