"""Configuration and environment variables"""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Google AI API Key (metadata generation). Without it the mock service is used.
    google_api_key: Optional[str] = None

    # Model Configuration
    gemini_model: str = "gemini-2.5-flash"
    gemini_temperature: float = 0.2
    gemini_timeout: int = 120
    gemini_max_retries: int = 2

    # Upload Configuration
    max_file_size: int = 100 * 1024 * 1024  # 100MB
    url_fetch_timeout: float = 30.0

    # Rendering Configuration
    display_scale: float = 1.5  # Fixed display scale (native size x scale)
    extraction_scale: float = 1.5  # Scale used for images sent to the model
    jpeg_quality: int = 80
    preload_margin: int = 500  # Pixels beyond the visible viewport to preload
    page_gap: int = 16  # Vertical gap between stacked pages in the viewer

    # Extraction Configuration
    page_failure_policy: str = "abort"  # "abort" or "skip"
    regenerate_delay: float = 2.0
    mock_latency: float = 2.0

    # CORS Settings
    cors_origins: list = ["http://localhost:3000", "http://127.0.0.1:3000"]

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
