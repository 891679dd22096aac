from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


# ──────────────────────────────────────────────
# Settings (from environment variables / .env)
# ──────────────────────────────────────────────
class Settings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # Upstream inference service
    upstream_url: str = "https://welding-defects-production.up.railway.app/predict"
    upstream_timeout: float = 30.0

    # Where the inspection station reaches the proxy route
    proxy_url: str = "http://127.0.0.1:8000/api/model"

    # CORS settings
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000"
    cors_allow_credentials: bool = True
    cors_allow_methods: str = "GET,POST,OPTIONS"
    cors_allow_headers: str = "*"

    # Inspection settings
    defect_marker: str = "bad"
    scan_linger_seconds: float = 1.0
    overlay_enabled: bool = False

    # Camera settings
    camera_user_index: int = 0
    camera_environment_index: int = 1
    capture_jpeg_quality: int = 95

    # Application settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def cors_methods_list(self) -> list[str]:
        """Parse CORS methods from comma-separated string."""
        if self.cors_allow_methods == "*":
            return ["*"]
        return [method.strip() for method in self.cors_allow_methods.split(",")]

    @property
    def cors_headers_list(self) -> list[str]:
        """Parse CORS headers from comma-separated string."""
        if self.cors_allow_headers == "*":
            return ["*"]
        return [header.strip() for header in self.cors_allow_headers.split(",")]

    @property
    def camera_indices(self) -> dict[str, int]:
        """Map each facing mode to its capture device index."""
        return {
            "user": self.camera_user_index,
            "environment": self.camera_environment_index,
        }


# Global settings instance
settings = Settings()

# ──────────────────────────────────────────────
# Paths
# ──────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent                 # src/weldscan/
STATIC_DIR = BASE_DIR / "static"
IMAGE_DIR = BASE_DIR.parent / "images"

# Create the temporary image directory if it doesn't exist
IMAGE_DIR.mkdir(parents=True, exist_ok=True)

# ──────────────────────────────────────────────
# Rendering
# ──────────────────────────────────────────────
DEFECT_VERDICT = "Defects Detected"
CLEAN_VERDICT = "No Defects"

VERDICT_SUMMARIES = {
    DEFECT_VERDICT: "Critical defects have been detected that may compromise structural integrity.",
    CLEAN_VERDICT: "No critical defects were detected in the analyzed areas.",
}

DEFECT_COLOR = "#ff3b30"
OK_COLOR = "#34c759"

CAMERA_ERROR_MESSAGE = (
    "Could not access camera. Please check permissions and ensure your device has a camera."
)
ANALYSIS_ERROR_MESSAGE = "Failed to analyze image"
CAPTURE_FILENAME = "camera-capture.jpg"
