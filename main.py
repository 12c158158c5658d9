"""
Reading-practice relay API.

- WebSocket /session?token=...: live audio in, transcript events and a scored
  session summary out.
- GET /stories/{story_id}: expected words for a story.
- GET /metrics/streaming: relay counters.
"""
import functools
import logging

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

import config
from alignment.word_alignment import ALIGNMENT_MODES
from core.auth import verify_token
from core.stories import load_stories
from metrics.streaming_metrics import get_snapshot
from providers.factory import create_provider
from streaming.websocket_server import build_ws_session_handler

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger("relay")

if config.ALIGNMENT_MODE not in ALIGNMENT_MODES:
    raise ValueError(f"Unknown ALIGNMENT_MODE: {config.ALIGNMENT_MODE!r}. Must be one of: {', '.join(ALIGNMENT_MODES)}")

# Provider is selected once, at process start; bad config stops the process here.
provider = create_provider(
    config.STT_PROVIDER,
    deepgram_api_key=config.DEEPGRAM_API_KEY,
    assemblyai_api_key=config.ASSEMBLYAI_API_KEY,
    request_timeout=config.PROVIDER_REQUEST_TIMEOUT,
    assemblyai_poll_interval=config.ASSEMBLYAI_POLL_INTERVAL,
    deepgram_model=config.DEEPGRAM_MODEL,
    mock_transcript=config.MOCK_TRANSCRIPT,
)

story_catalog = load_stories(config.get_stories_path())
if not story_catalog:
    logger.warning("No stories loaded. Add stories.json or set STORIES_DATA_PATH")

app = FastAPI(title="Reading Relay API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def health_check():
    return {
        "status": "ok",
        "provider": provider.name,
        "stories_loaded": len(story_catalog),
    }


@app.get("/stories/{story_id}")
def get_story(story_id: str):
    words = story_catalog.get(story_id)
    if words is None:
        raise HTTPException(status_code=404, detail=f"Story {story_id} not found")
    return {
        "story_id": story_id,
        "word_count": len(words),
        "words": [w.to_dict() for w in words],
    }


@app.get("/metrics/streaming", include_in_schema=False)
def metrics_streaming():
    """JSON snapshot of relay counters: connections, sessions, auth/protocol/provider errors, idle timeouts."""
    return get_snapshot()


_verify = functools.partial(
    verify_token,
    key=config.AUTH_JWT_KEY,
    algorithms=config.AUTH_JWT_ALGORITHMS,
    audience=config.AUTH_JWT_AUDIENCE,
    issuer=config.AUTH_JWT_ISSUER,
    production=config.IS_PRODUCTION,
)

_ws_session_handler = build_ws_session_handler(
    provider=provider,
    verify_token=_verify,
    get_story_words=story_catalog.get,
    stream_config=config.get_stream_config(),
    idle_timeout_s=config.SESSION_IDLE_TIMEOUT_SECONDS,
    forward_bytes=config.RELAY_FORWARD_BYTES,
    alignment_mode=config.ALIGNMENT_MODE,
)
app.websocket("/session")(_ws_session_handler)


if __name__ == "__main__":
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL)
