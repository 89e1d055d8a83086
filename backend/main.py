import random
from datetime import datetime
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
try:
    from backend.app.config import Settings, configure_logging, load_settings
    from backend.app.services.random_video import RandomVideoHandler
    from backend.app.services.youtube_client import YouTubeClient
except ModuleNotFoundError:
    from app.config import Settings, configure_logging, load_settings
    from app.services.random_video import RandomVideoHandler
    from app.services.youtube_client import YouTubeClient


# ---------------------------
# App setup
# ---------------------------

def create_app(
    settings: Settings | None = None,
    client: YouTubeClient | None = None,
    rng: random.Random | None = None,
    clock: Callable[[], datetime] | None = None,
) -> FastAPI:
    """
    Build the API with explicit collaborators. Without a client one is built
    from the settings' API key; without a key every /api/random call is a 500.
    """
    if settings is None:
        settings = load_settings()
    configure_logging(settings.log_level)

    if client is None and settings.youtube_api_key:
        client = YouTubeClient(settings.youtube_api_key, timeout=settings.youtube_timeout_seconds)

    app = FastAPI(title="Random Video")
    app.state.settings = settings
    app.state.random_handler = RandomVideoHandler(
        api_key=settings.youtube_api_key,
        client=client,
        rng=rng,
        clock=clock,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.add_api_route("/health", health, methods=["GET"])
    # No method restriction: every verb reaches the handler, which answers 405 with Allow: GET itself.
    app.add_route("/api/random", random_video, include_in_schema=False)
    return app


def health():
    return {"ok": True}


def random_video(request: Request) -> Response:
    return request.app.state.random_handler.handle(request)


app = create_app()
