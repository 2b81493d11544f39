"""Configuration loading and validation for genius-chat."""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from rich.logging import RichHandler

# Get the project root directory (parent of src)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Load environment variables from .env file in project root
load_dotenv(PROJECT_ROOT / ".env")


class MissingConfiguration(Exception):
    """Raised at startup when required configuration is absent."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Invalid configuration: " + "; ".join(errors))


def load_config() -> dict:
    """Load configuration from environment variables."""

    # Helper function to resolve paths relative to project root
    def resolve_path(path: str | None, default_relative: str) -> str:
        if not path:
            return str(PROJECT_ROOT / default_relative)
        if Path(path).is_absolute():
            return path
        return str(PROJECT_ROOT / path)

    config = {
        # Required API key (text + video provider)
        "gemini_api_key": os.getenv("GEMINI_API_KEY"),
        # Model configurations
        "gemini_model": os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
        "video_model": os.getenv("VIDEO_MODEL", "veo-2.0-generate-001"),
        # Video job polling
        "video_poll_interval_seconds": float(
            os.getenv("VIDEO_POLL_INTERVAL_SECONDS", "10")
        ),
        # Wall-clock cap on a single video job, 0 disables the cap
        "video_max_wait_seconds": float(os.getenv("VIDEO_MAX_WAIT_SECONDS", "600")),
        # Caller-side timeouts for provider calls
        "provider_timeout_seconds": float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "60")),
        "download_timeout_seconds": float(os.getenv("DOWNLOAD_TIMEOUT_SECONDS", "120")),
        # Materialized videos
        "artifact_dir": resolve_path(os.getenv("ARTIFACT_DIR"), ".genius_chat/artifacts"),
        # How long the routing result is shown before the chat opens
        "routing_display_delay_seconds": float(
            os.getenv("ROUTING_DISPLAY_DELAY_SECONDS", "3")
        ),
        # Optional persona file replacing the built-in catalog
        "personas_file": os.getenv("PERSONAS_FILE"),
        # Logging
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "log_file": os.getenv("LOG_FILE"),
    }

    return config


def validate_config(config: dict) -> list[str]:
    """Validate configuration and return list of errors."""
    errors = []

    # Check required API key
    if not config.get("gemini_api_key"):
        errors.append("GEMINI_API_KEY is required")

    if config.get("video_poll_interval_seconds", 0) <= 0:
        errors.append("VIDEO_POLL_INTERVAL_SECONDS must be greater than 0")

    if config.get("video_max_wait_seconds", 0) < 0:
        errors.append("VIDEO_MAX_WAIT_SECONDS cannot be negative")

    if config.get("provider_timeout_seconds", 0) <= 0:
        errors.append("PROVIDER_TIMEOUT_SECONDS must be greater than 0")

    personas_file = config.get("personas_file")
    if personas_file and not Path(personas_file).is_file():
        errors.append(f"PERSONAS_FILE not found: {personas_file}")

    artifact_dir = config.get("artifact_dir")
    if artifact_dir:
        try:
            Path(artifact_dir).mkdir(parents=True, exist_ok=True)
        except Exception as e:
            errors.append(f"Cannot create artifact folder: {e}")

    return errors


def require_config(config: dict) -> dict:
    """Validate configuration, failing fast on any error.

    Raises:
        MissingConfiguration: If validation reports any error
    """
    errors = validate_config(config)
    if errors:
        raise MissingConfiguration(errors)
    return config


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Set up logging configuration with Rich for terminal output."""
    # Clear any existing handlers
    logging.root.handlers.clear()

    # Rich handler for console output
    handlers: list[logging.Handler] = [
        RichHandler(
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            markup=False,  # Disable markup to avoid conflicts
        )
    ]

    # Optional file handler for plain text logging
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        handlers.append(file_handler)

    # Configure root logger
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        handlers=handlers,
        format="%(message)s",
    )

    # Suppress noisy third-party loggers
    noisy_loggers = [
        "httpx",
        "httpcore",
        "google_genai",
        "google_genai.models",
        "urllib3.connectionpool",
    ]

    for logger_name in noisy_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
