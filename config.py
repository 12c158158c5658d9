"""
Production configuration via environment variables.
Load with python-dotenv; no hardcoded secrets.
"""
import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

from core.models import StreamingSessionConfig

# Load .env if present (in production the orchestrator sets the environment)
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


def _env_list(name: str, default: str) -> List[str]:
    return [v.strip() for v in os.environ.get(name, default).split(",") if v.strip()]


# ----- Server -----
PORT = int(os.environ.get("PORT", "8080"))
HOST = os.environ.get("HOST", "0.0.0.0")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "info").lower()
# development | production
ENVIRONMENT = os.environ.get("ENVIRONMENT", "development").lower()
IS_PRODUCTION = ENVIRONMENT == "production"

# ----- Transcription provider -----
# assemblyai | deepgram | mock
STT_PROVIDER = os.environ.get("STT_PROVIDER", "mock")
DEEPGRAM_API_KEY = os.environ.get("DEEPGRAM_API_KEY", "")
DEEPGRAM_MODEL = os.environ.get("DEEPGRAM_MODEL", "nova-2")
ASSEMBLYAI_API_KEY = os.environ.get("ASSEMBLYAI_API_KEY", "")
ASSEMBLYAI_POLL_INTERVAL = float(os.environ.get("ASSEMBLYAI_POLL_INTERVAL", "1.0"))
PROVIDER_REQUEST_TIMEOUT = float(os.environ.get("PROVIDER_REQUEST_TIMEOUT", "30"))
# Canned transcript for the mock backend (local development)
MOCK_TRANSCRIPT = os.environ.get("MOCK_TRANSCRIPT", "")

# ----- Streaming session -----
STT_LANGUAGE = os.environ.get("STT_LANGUAGE", "en-US")
STT_SAMPLE_RATE = int(os.environ.get("STT_SAMPLE_RATE", "16000"))
STT_CONFIDENCE_THRESHOLD = float(os.environ.get("STT_CONFIDENCE_THRESHOLD", "0.70"))
STT_CHILD_MODE = _env_bool("STT_CHILD_MODE", "true")

SESSION_IDLE_TIMEOUT_SECONDS = float(os.environ.get("SESSION_IDLE_TIMEOUT_SECONDS", "300"))
# Forward buffered audio to the provider every N bytes (6400 = 200 ms at 16 kHz)
RELAY_FORWARD_BYTES = int(os.environ.get("RELAY_FORWARD_BYTES", "6400"))
# positional | sequence
ALIGNMENT_MODE = os.environ.get("ALIGNMENT_MODE", "positional").lower()

# ----- Auth -----
# HMAC secret or PEM public key of the identity provider
AUTH_JWT_KEY = os.environ.get("AUTH_JWT_KEY", "")
AUTH_JWT_ALGORITHMS = _env_list("AUTH_JWT_ALGORITHMS", "RS256")
AUTH_JWT_AUDIENCE = os.environ.get("AUTH_JWT_AUDIENCE", "") or None
AUTH_JWT_ISSUER = os.environ.get("AUTH_JWT_ISSUER", "") or None

# ----- Stories -----
STORIES_DATA_PATH = os.environ.get("STORIES_DATA_PATH", "")


def get_stories_path() -> str:
    if STORIES_DATA_PATH and os.path.isfile(STORIES_DATA_PATH):
        return STORIES_DATA_PATH
    p = Path.cwd() / "stories.json"
    return str(p) if p.exists() else ""


def get_stream_config() -> StreamingSessionConfig:
    return StreamingSessionConfig(
        language=STT_LANGUAGE,
        sample_rate=STT_SAMPLE_RATE,
        confidence_threshold=STT_CONFIDENCE_THRESHOLD,
        child_mode=STT_CHILD_MODE,
    )


# ----- CORS (production: set to specific origins) -----
CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")


def get_cors_origins() -> list:
    """Return list of allowed CORS origins from env."""
    if CORS_ORIGINS == "*":
        return ["*"]
    return [o.strip() for o in CORS_ORIGINS.split(",") if o.strip()]
