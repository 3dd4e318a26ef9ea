"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes"}


@dataclass(frozen=True)
class Settings:
    google_api_key: str
    server_port: int = 8080
    places_timeout: float = 10.0
    dedupe_clinics: bool = True


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    google_api_key = os.getenv("GOOGLE_API_KEY", "")
    server_port = int(os.getenv("PORT", "8080"))
    places_timeout = float(os.getenv("PLACES_TIMEOUT_SECONDS", "10"))
    dedupe_clinics = os.getenv("DEDUPE_CLINICS", "true").lower() in _TRUTHY

    # A missing key is reported per request, the process still starts.
    if not google_api_key:
        logger.warning("GOOGLE_API_KEY is not configured; clinic searches will be rejected.")

    return Settings(
        google_api_key=google_api_key,
        server_port=server_port,
        places_timeout=places_timeout,
        dedupe_clinics=dedupe_clinics,
    )
