"""Configuration constants, service endpoints, and .env loading.

WHY: Centralizes every configurable value (service URLs, model name,
sampling settings, timeouts) so they are easy to find and override
without touching pipeline logic.

HOW: python-dotenv loads the .env file on import. Constants are module
level and read from the environment with sensible defaults. The
load_api_key() function gives a clear error when the language-model key
is missing.

RULES:
- The language-model API key is loaded from .env, never hardcoded
- A missing key is a ConfigurationError, detected before any request
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

from cleantake.errors import ConfigurationError

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Language model (DeepSeek chat completions)
# ---------------------------------------------------------------------------

DEEPSEEK_API_URL = os.getenv(
    "DEEPSEEK_API_URL", "https://api.deepseek.com/v1/chat/completions"
)
DEEPSEEK_MODEL = os.getenv("DEEPSEEK_MODEL", "deepseek-chat")
DEEPSEEK_TEMPERATURE = float(os.getenv("DEEPSEEK_TEMPERATURE", "0.7"))
DEEPSEEK_MAX_TOKENS = int(os.getenv("DEEPSEEK_MAX_TOKENS", "2000"))
MODEL_TIMEOUT_S = float(os.getenv("CLEANTAKE_MODEL_TIMEOUT", "120"))

# ---------------------------------------------------------------------------
# Speech-to-text (Google Cloud synchronous recognize)
# ---------------------------------------------------------------------------

SPEECH_API_URL = os.getenv(
    "SPEECH_API_URL", "https://speech.googleapis.com/v1/speech:recognize"
)
DEFAULT_LANGUAGE_CODE = os.getenv("DEFAULT_LANGUAGE_CODE", "en-US")
SPEECH_TIMEOUT_S = float(os.getenv("CLEANTAKE_SPEECH_TIMEOUT", "120"))

SUPPORTED_AUDIO_FORMATS: set[str] = {
    ".flac", ".wav", ".mp3", ".ogg", ".opus", ".webm", ".amr", ".awb",
}
"""Audio file extensions the recognize endpoint accepts (lowercase, with dot)."""

# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

METADATA_TOKEN_URL = os.getenv(
    "METADATA_TOKEN_URL",
    "http://metadata.google.internal/computeMetadata/v1/instance/"
    "service-accounts/default/token",
)
METADATA_TIMEOUT_S = float(os.getenv("CLEANTAKE_METADATA_TIMEOUT", "2"))
GCLOUD_COMMAND = os.getenv("GCLOUD_COMMAND", "gcloud auth print-access-token")
GCLOUD_TIMEOUT_S = float(os.getenv("CLEANTAKE_GCLOUD_TIMEOUT", "15"))

STATIC_TOKEN_ENV = "CLEANTAKE_GOOGLE_ACCESS_TOKEN"
"""Environment variable holding a pre-fetched bearer token, if any."""


def load_api_key() -> str:
    """Load the language-model API key from the environment.

    WHY: Every model call needs the key. Checking it up front lets the
    orchestrator fail before spending a transcription round-trip.

    RULES:
    - Raises ConfigurationError if the key is missing or blank
    - Never returns a default/placeholder value
    """
    key = os.getenv("DEEPSEEK_API_KEY", "").strip()
    if not key:
        raise ConfigurationError(
            "Language model API key not configured. "
            "Add DEEPSEEK_API_KEY to the .env file or the environment."
        )
    return key


def load_static_token() -> str | None:
    """Return a bearer token pinned in the environment, or None."""
    token = os.getenv(STATIC_TOKEN_ENV, "").strip()
    return token or None
