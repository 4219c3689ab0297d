"""Configuration management for mailsweep."""

import os

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables
load_dotenv()


class Config(BaseSettings):
    """Configuration class for mailsweep."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore unexpected env vars rather than raising errors
    )

    # Image matching
    image_match_threshold: float = Field(default=0.8, description="Minimum match rate for an image hit")
    pixel_match_threshold: float = Field(default=0.1, description="Per-pixel colour distance tolerance")
    images_dir: str = Field(default="./images", description="Directory holding reference images")
    size_tolerance_ratio: float = Field(default=0.5)  # bounding box vs. reference size, +/- ratio
    size_tolerance_px: int = Field(default=5)  # raster size difference still compared after cropping
    image_load_timeout_ms: int = Field(default=1000)  # per <img> load wait

    # Diagnostics
    debug_dir: str = Field(default="./debug")
    save_failed_matches: bool = Field(default=True)

    # Mailbox
    search_query: str = Field(default="from:rakuten")
    gmail_url: str = Field(default="https://mail.google.com")

    # Browser
    headless: bool = Field(default=False)
    timeout: int = Field(default=30000)  # milliseconds
    storage_state_path: str = Field(default="./auth.json")

    # Logging
    log_level: str = Field(default="INFO")
    logs_dir: str = Field(default="logs")
    log_to_file: bool = Field(default=True)

    def validate_config(self) -> bool:
        """Validate configuration values."""
        if self.image_match_threshold < 0 or self.image_match_threshold > 1:
            raise ValueError("Image match threshold must be between 0 and 1")

        if self.pixel_match_threshold < 0 or self.pixel_match_threshold > 1:
            raise ValueError("Pixel match threshold must be between 0 and 1")

        if self.size_tolerance_ratio < 0:
            raise ValueError("Size tolerance ratio must not be negative")

        if self.timeout <= 0 or self.image_load_timeout_ms <= 0:
            raise ValueError("Timeouts must be positive")

        return True

    def get_images_path(self) -> str:
        """Get the absolute path to the reference image directory."""
        return os.path.abspath(self.images_dir)


# Global configuration instance
try:
    config = Config()
except Exception as e:
    print(f"Warning: Could not load configuration: {e}")
    config = Config.model_construct()
