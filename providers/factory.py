"""
Provider factory: the one place that maps a configuration value to a backend.
Credentials are checked here, at selection time, not at first use.
"""
import logging
from typing import Optional

from providers.assemblyai import AssemblyAIProvider
from providers.base import ProviderConfigError, TranscriptionProvider
from providers.deepgram import DeepgramProvider
from providers.mock import MockTranscriptionProvider

logger = logging.getLogger(__name__)

PROVIDER_NAMES = ("assemblyai", "deepgram", "mock")


def create_provider(
    provider_name: Optional[str],
    deepgram_api_key: str = "",
    assemblyai_api_key: str = "",
    request_timeout: float = 30.0,
    assemblyai_poll_interval: float = 1.0,
    deepgram_model: str = "nova-2",
    mock_transcript: str = "",
) -> TranscriptionProvider:
    """
    Build the backend named by `provider_name`.

    Raises:
        ProviderConfigError: unknown name (message lists the allowed set) or the
            selected backend's credential is missing (message names it).
    """
    name = (provider_name or "").strip().lower()
    if name == "assemblyai":
        if not assemblyai_api_key:
            raise ProviderConfigError("ASSEMBLYAI_API_KEY is required when STT_PROVIDER=assemblyai")
        provider: TranscriptionProvider = AssemblyAIProvider(
            assemblyai_api_key,
            request_timeout=request_timeout,
            poll_interval=assemblyai_poll_interval,
        )
    elif name == "deepgram":
        if not deepgram_api_key:
            raise ProviderConfigError("DEEPGRAM_API_KEY is required when STT_PROVIDER=deepgram")
        provider = DeepgramProvider(deepgram_api_key, request_timeout=request_timeout, model=deepgram_model)
    elif name == "mock":
        provider = MockTranscriptionProvider(canned_transcript=mock_transcript)
    else:
        raise ProviderConfigError(
            f"Unknown STT_PROVIDER: {provider_name!r}. Must be {' | '.join(PROVIDER_NAMES)}"
        )
    logger.info("Transcription provider selected: %s", provider.name)
    return provider
