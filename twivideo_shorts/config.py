"""Application configuration management."""
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False
    log_level: str = "INFO"

    # Browser Configuration
    chrome_path: Optional[str] = None  # Set via CHROME_PATH env var
    headless: bool = True
    launch_browser_on_startup: bool = True

    # Static Files
    static_root: str = "./public"

    # Model Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def static_path(self) -> Path:
        """Get the resolved document root."""
        return Path(self.static_root).expanduser().resolve()


# Global settings instance
settings = Settings()
