"""
Pluggable transcription backends.

- base: provider interface and error types
- mock: deterministic backend, no network
- deepgram / assemblyai: vendor backends over REST
- factory: create_provider(name, ...) selects one from configuration
"""

from providers.base import (
    AlreadyOpen,
    ProviderConfigError,
    ProviderError,
    ProviderUnavailable,
    SessionNotOpen,
    TranscriptionProvider,
)
from providers.factory import PROVIDER_NAMES, create_provider
from providers.mock import MockTranscriptionProvider

__all__ = [
    "AlreadyOpen",
    "ProviderConfigError",
    "ProviderError",
    "ProviderUnavailable",
    "SessionNotOpen",
    "TranscriptionProvider",
    "PROVIDER_NAMES",
    "create_provider",
    "MockTranscriptionProvider",
]
