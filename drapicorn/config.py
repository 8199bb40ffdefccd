"""
Configuration module for the Drapicorn Studio API
Contains logger setup, environment variables and Gemini settings
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


# -------------------------
# Logger Setup
# -------------------------
def setup_logger(name: str = __name__, log_file: Optional[str] = None) -> logging.Logger:
    """
    Set up and return a logger with both file and console handlers

    Args:
        name: Logger name (usually __name__)
        log_file: Path to log file, or None to log to the console only

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # Avoid adding duplicate handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="w")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


LOG_FILE = os.getenv("LOG_FILE")

# Create the main application logger
logger = setup_logger("drapicorn", LOG_FILE)

# -------------------------
# Environment Variables
# -------------------------
GEMINI_KEY = os.getenv("GEMINI_KEY")
GEMINI_TEXT_MODEL = os.getenv("GEMINI_TEXT_MODEL", "gemini-3-flash-preview")
GEMINI_IMAGE_MODEL = os.getenv("GEMINI_IMAGE_MODEL", "gemini-2.5-flash-image")
GEMINI_BRANCH_TIMEOUT_SECONDS = float(
    os.getenv("GEMINI_BRANCH_TIMEOUT_SECONDS", "120")
)

# supabase
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY")


@dataclass(frozen=True)
class GeminiSettings:
    """Explicit Gemini configuration handed to the generation services."""

    api_key: Optional[str] = None
    text_model: str = "gemini-3-flash-preview"
    image_model: str = "gemini-2.5-flash-image"
    branch_timeout_seconds: float = 120.0
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"


def load_gemini_settings() -> GeminiSettings:
    """Build GeminiSettings from the environment."""
    return GeminiSettings(
        api_key=GEMINI_KEY,
        text_model=GEMINI_TEXT_MODEL,
        image_model=GEMINI_IMAGE_MODEL,
        branch_timeout_seconds=GEMINI_BRANCH_TIMEOUT_SECONDS,
    )


# Log configuration status
logger.info("Configuration loaded successfully")
logger.debug(f"GEMINI_KEY configured: {bool(GEMINI_KEY)}")
logger.debug(f"GEMINI_TEXT_MODEL: {GEMINI_TEXT_MODEL}")
logger.debug(f"GEMINI_IMAGE_MODEL: {GEMINI_IMAGE_MODEL}")
logger.debug(f"SUPABASE_URL configured: {bool(SUPABASE_URL)}")
logger.debug(f"SUPABASE_KEY configured: {bool(SUPABASE_KEY)}")
logger.debug(f"SUPABASE_SERVICE_KEY configured: {bool(SUPABASE_SERVICE_KEY)}")
