"""
colorextract Configuration
Manages environment variables and defaults for the extraction service.
"""
import os


class Config:
    """Configuration class for colorextract services."""

    # Extraction defaults
    DEFAULT_COLOR_COUNT: int = int(os.environ.get("COLOREXTRACT_DEFAULT_COLOR_COUNT", "6"))
    DEFAULT_MAX_SIZE: int = int(os.environ.get("COLOREXTRACT_DEFAULT_MAX_SIZE", "100"))
    DEFAULT_MAX_ITERATIONS: int = int(os.environ.get("COLOREXTRACT_DEFAULT_MAX_ITERATIONS", "20"))

    # Upload and download limits
    MAX_FILE_MB: int = int(os.environ.get("COLOREXTRACT_MAX_FILE_MB", "10"))
    DOWNLOAD_TIMEOUT_S: float = float(os.environ.get("COLOREXTRACT_DOWNLOAD_TIMEOUT_S", "10"))

    # Logging
    LOG_LEVEL: str = os.environ.get("COLOREXTRACT_LOG_LEVEL", "INFO")

    # CORS settings
    ALLOWED_ORIGINS: str = os.environ.get("COLOREXTRACT_ALLOWED_ORIGINS", "http://localhost:3000")

    # Observability
    METRICS_ENABLED: bool = bool(int(os.environ.get("COLOREXTRACT_METRICS_ENABLED", "1")))

    # Request parameter bounds
    MAX_COLOR_COUNT: int = 32
    MAX_SAMPLE_EDGE: int = 2048
    MAX_ITERATIONS_LIMIT: int = 200
    MAX_BATCH_URLS: int = 20

    # Accepted URL schemes
    SUPPORTED_URL_SCHEMES = {"http", "https"}

    @classmethod
    def max_file_bytes(cls) -> int:
        """Upload size limit in bytes."""
        return cls.MAX_FILE_MB * 1024 * 1024

    @classmethod
    def allowed_origins(cls) -> list:
        """Parse the comma separated CORS origin list."""
        return [origin.strip() for origin in cls.ALLOWED_ORIGINS.split(",") if origin.strip()]


# Global config instance
config = Config()
