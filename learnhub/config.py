"""
Configuration settings for the LearnHub backend.
"""

import os
from typing import Any, Dict, Optional
from pathlib import Path
from dotenv import load_dotenv


# Ensure environment variables are loaded
load_dotenv()


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


class Config:
    """Base configuration class."""

    # Application info
    APP_NAME = "LearnHub Learning Platform"
    APP_VERSION = "0.2.0"

    # Data directories
    BASE_DIR = Path(__file__).resolve().parent.parent.absolute()
    DATA_DIR = BASE_DIR / "data"

    # Gemini summarization
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    GEMINI_TIMEOUT_SEC = _float_env("GEMINI_TIMEOUT_SEC", 30.0)
    GEMINI_MAX_RETRIES = 2
    GEMINI_TEMPERATURE = 0.2
    GEMINI_MAX_OUTPUT_TOKENS = 1024
    MAX_TRANSCRIPT_CHARS = _int_env("MAX_TRANSCRIPT_CHARS", 120000)
    SUMMARY_CACHE_TTL_SEC = _int_env("SUMMARY_CACHE_TTL_SEC", 86400)

    # Rate limiting for the summarize endpoint
    RATE_LIMIT_REQUESTS = _int_env("RATE_LIMIT_REQUESTS", 10)
    RATE_LIMIT_WINDOW_SEC = _int_env("RATE_LIMIT_WINDOW_SEC", 60)
    RATE_LIMIT_SWEEP_INTERVAL_SEC = 60 * 60

    # n8n workflow engine
    N8N_WEBHOOK_URL = os.getenv("N8N_WEBHOOK_URL")
    N8N_EXTRA_WEBHOOK_URL = os.getenv("N8N_EXTRA_WEBHOOK_URL")
    N8N_TIMEOUT_SEC = _float_env("N8N_TIMEOUT_SEC", 60.0)
    LEARNING_DATA_TTL_SEC = _int_env("LEARNING_DATA_TTL_SEC", 30 * 60)

    # YouTube
    YOUTUBE_API_KEY = os.getenv("YOUTUBE_API_KEY")
    TRANSCRIPT_TIMEOUT_SEC = _float_env("TRANSCRIPT_TIMEOUT_SEC", 15.0)
    METADATA_TIMEOUT_SEC = 5.0
    SEARCH_TIMEOUT_SEC = 10.0
    SEARCH_MAX_RESULTS = 10

    # Storage backends (empty means in-memory)
    DATABASE_URL = os.getenv("DATABASE_URL", "")
    DB_INIT_RETRIES = _int_env("DB_INIT_RETRIES", 3)
    DB_INIT_RETRY_DELAY = _float_env("DB_INIT_RETRY_DELAY", 1.0)
    DB_INIT_BACKOFF = 2
    REDIS_URL = os.getenv("REDIS_URL", "")

    PUBLIC_URL = os.getenv("PUBLIC_URL", "http://localhost:8000")

    DEBUG = False
    LOG_LEVEL = "INFO"

    @classmethod
    def initialize(cls):
        """Initialize the application configuration."""
        cls.DATA_DIR.mkdir(parents=True, exist_ok=True)

        # Validate required environment variables
        if not cls.GEMINI_API_KEY:
            print("WARNING: GEMINI_API_KEY environment variable not set.")
            print("Please set it in the .env file or environment variables.")
        if not cls.N8N_WEBHOOK_URL:
            print("WARNING: N8N_WEBHOOK_URL environment variable not set.")

    @classmethod
    def summary(cls) -> Dict[str, Any]:
        """Non-secret settings, for diagnostics."""
        return {
            "gemini_model": cls.GEMINI_MODEL,
            "gemini_configured": bool(cls.GEMINI_API_KEY),
            "n8n_configured": bool(cls.N8N_WEBHOOK_URL),
            "max_transcript_chars": cls.MAX_TRANSCRIPT_CHARS,
            "summary_cache_ttl_sec": cls.SUMMARY_CACHE_TTL_SEC,
            "rate_limit": f"{cls.RATE_LIMIT_REQUESTS}/{cls.RATE_LIMIT_WINDOW_SEC}s",
            "learning_data_ttl_sec": cls.LEARNING_DATA_TTL_SEC,
        }


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True
    LOG_LEVEL = "DEBUG"


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False
    LOG_LEVEL = "INFO"


# Determine which configuration to use based on environment
def get_config(environment: Optional[str] = None):
    """
    Get the appropriate configuration based on environment.

    Development settings (debug output in error payloads) are only used when
    ENVIRONMENT is explicitly "development".
    """
    env = (environment if environment is not None else os.getenv("ENVIRONMENT", "production")).lower()
    if env == "development":
        return DevelopmentConfig
    else:
        return ProductionConfig


# Create a config instance
config = get_config()
