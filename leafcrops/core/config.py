"""
Application Configuration

Centralized settings management using Pydantic Settings.
Supports environment variables and .env files.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # ==========================================================================
    # App Settings
    # ==========================================================================
    APP_NAME: str = "Leaf Crop Segmentation Service"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development, staging, PROD
    DEBUG: bool = True

    # ==========================================================================
    # Image Input Settings
    # ==========================================================================
    MAX_IMAGE_SIZE_BYTES: int = 10485760  # 10MB
    IMAGE_FETCH_TIMEOUT_SECONDS: float = 10.0

    # ==========================================================================
    # Request Defaults
    # ==========================================================================
    DEFAULT_MAX_LEAVES: int = 3
    MAX_LEAVES_LIMIT: int = 10

    # ==========================================================================
    # Segmentation Tuning (hand-tuned heuristics, not universal constants)
    # ==========================================================================
    # Working raster used for segmentation
    SEGMENTATION_WORKING_MAX_WIDTH: int = 320

    # Green-ness classifier
    SEGMENTATION_GREEN_MIN: int = 50
    SEGMENTATION_GREEN_OVER_RED: int = 20
    SEGMENTATION_GREEN_OVER_BLUE: int = 15
    SEGMENTATION_MIN_CHANNEL_SUM: int = 120

    # Noise floor for connected components
    SEGMENTATION_MIN_COMPONENT_AREA: int = 200
    SEGMENTATION_MIN_COMPONENT_AREA_FRACTION: float = 0.01

    # Crop rendering
    SEGMENTATION_EXPAND_FACTOR: float = 1.2
    SEGMENTATION_THUMBNAIL_MAX_WIDTH: int = 320
    SEGMENTATION_JPEG_QUALITY: float = 0.85

    # ==========================================================================
    # Logging Settings
    # ==========================================================================
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT_JSON: bool = True  # JSON for production, console for development

    # ==========================================================================
    # CORS Settings
    # ==========================================================================
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173,http://localhost:8000"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Global settings instance
settings = Settings()
