import logging
import math
import random
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel, Field
try:
    from backend.app.services.youtube_client import YouTubeQuotaExceededError
except ModuleNotFoundError:
    from app.services.youtube_client import YouTubeQuotaExceededError

logger = logging.getLogger(__name__)

MIN_VIEWS_FLOOR = 100_000
DEFAULT_WITHIN_DAYS = 365
MAX_WITHIN_DAYS = 365
MIN_WITHIN_DAYS = 1
MAX_ATTEMPTS = 2
MIN_DURATION_SECONDS = 180  # drops most Shorts
WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

SEED_KEYWORDS = [
    "the", "and", "music", "news", "funny", "review", "how", "game", "movie", "tech",
    "food", "travel", "sports", "science", "art", "history", "learning", "live",
    "best", "top", "guide", "vlog", "2024", "2025", "interview", "documentary",
]

RESPONSE_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Cache-Control": "no-store",
}

ISO_DURATION_RE = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")
DECIMAL_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
RADIX_RE = re.compile(r"0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)")


class RequestParams(BaseModel):
    min_views: int = Field(default=MIN_VIEWS_FLOOR, ge=MIN_VIEWS_FLOOR)
    within_days: int = Field(default=DEFAULT_WITHIN_DAYS, ge=MIN_WITHIN_DAYS, le=MAX_WITHIN_DAYS)

    def published_after(self, now: datetime) -> datetime:
        cutoff = now.astimezone(timezone.utc) - timedelta(days=self.within_days)
        # publishedAfter is sent with millisecond precision
        return cutoff.replace(microsecond=cutoff.microsecond // 1000 * 1000)


class CandidateItem(BaseModel):
    id: str
    title: str | None = None
    channel_title: str | None = None
    published_at: str | None = None
    published: datetime | None = None
    view_count: int = 0
    duration_seconds: int = 0


class ResultPayload(BaseModel):
    id: str
    title: str | None = None
    channelTitle: str | None = None
    publishedAt: str | None = None
    viewCount: int
    url: str


# ---------------------------
# Helpers
# ---------------------------

def coerce_number(raw: str | None) -> float | None:
    """
    Lenient numeric parse for query values: plain decimals, exponents and
    0x/0o/0b integers. Blank, non-numeric, zero and overflowing inputs all
    count as "not given".
    """
    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    if RADIX_RE.fullmatch(text):
        try:
            value = float(int(text, 0))
        except OverflowError:
            return None
    elif DECIMAL_RE.fullmatch(text):
        value = float(text)
    else:
        return None
    if not math.isfinite(value) or value == 0:
        return None
    return value


def normalize_params(min_views_raw: str | None, days_raw: str | None) -> RequestParams:
    min_views = coerce_number(min_views_raw) or MIN_VIEWS_FLOOR
    within_days = coerce_number(days_raw) or DEFAULT_WITHIN_DAYS
    return RequestParams(
        min_views=int(max(MIN_VIEWS_FLOOR, min_views)),
        within_days=int(min(MAX_WITHIN_DAYS, max(MIN_WITHIN_DAYS, within_days))),
    )


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso8601_datetime(value: str | None):
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def iso8601_duration_to_seconds(duration: str | None) -> int:
    match = ISO_DURATION_RE.match(duration or "")
    if not match:
        return 0
    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    seconds = int(match.group(3) or 0)
    return hours * 3600 + minutes * 60 + seconds


def _to_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def build_candidate(video: dict) -> CandidateItem | None:
    video_id = video.get("id")
    if not video_id or not isinstance(video_id, str):
        return None
    snip = video.get("snippet") or {}
    stats = video.get("statistics") or {}
    details = video.get("contentDetails") or {}
    return CandidateItem(
        id=video_id,
        title=snip.get("title"),
        channel_title=snip.get("channelTitle"),
        published_at=snip.get("publishedAt"),
        published=parse_iso8601_datetime(snip.get("publishedAt")),
        view_count=_to_int(stats.get("viewCount")),
        duration_seconds=iso8601_duration_to_seconds(details.get("duration")),
    )


def is_qualifying(
    candidate: CandidateItem,
    min_views: int,
    cutoff: datetime,
    min_duration_seconds: int = MIN_DURATION_SECONDS,
) -> bool:
    if candidate.view_count < min_views:
        return False
    if candidate.published is None or candidate.published < cutoff:
        return False
    return candidate.duration_seconds >= min_duration_seconds


def filter_candidates(
    videos: list[dict],
    min_views: int,
    cutoff: datetime,
    min_duration_seconds: int = MIN_DURATION_SECONDS,
) -> list[CandidateItem]:
    out = []
    for video in videos:
        candidate = build_candidate(video)
        if candidate and is_qualifying(candidate, min_views, cutoff, min_duration_seconds):
            out.append(candidate)
    return out


def build_payload(candidate: CandidateItem) -> ResultPayload:
    return ResultPayload(
        id=candidate.id,
        title=candidate.title,
        channelTitle=candidate.channel_title,
        publishedAt=candidate.published_at,
        viewCount=candidate.view_count,
        url=WATCH_URL.format(video_id=candidate.id),
    )


# ---------------------------
# Search -> hydrate -> filter
# ---------------------------

class RandomVideoFinder:
    """
    Runs up to `max_attempts` search/hydrate/filter cycles, each with a fresh
    seed keyword, and returns one random qualifying video or None.
    Upstream errors propagate; they are never retried.
    """

    def __init__(
        self,
        client,
        rng: random.Random | None = None,
        max_attempts: int = MAX_ATTEMPTS,
        min_duration_seconds: int = MIN_DURATION_SECONDS,
        seeds: list[str] | None = None,
    ):
        self.client = client
        self.rng = rng or random.Random()
        self.max_attempts = max_attempts
        self.min_duration_seconds = min_duration_seconds
        self.seeds = list(seeds or SEED_KEYWORDS)

    def find(self, params: RequestParams, now: datetime) -> ResultPayload | None:
        cutoff = params.published_after(now)
        published_after = format_timestamp(cutoff)

        for attempt in range(1, self.max_attempts + 1):
            keyword = self.rng.choice(self.seeds)
            video_ids = self.client.search_video_ids(keyword, published_after)
            if not video_ids:
                logger.info("attempt %d: no search results for %r", attempt, keyword)
                continue

            videos = self.client.hydrate_video_metadata(video_ids)
            qualifying = filter_candidates(videos, params.min_views, cutoff, self.min_duration_seconds)
            logger.info(
                "attempt %d: %r -> %d ids, %d hydrated, %d qualifying",
                attempt,
                keyword,
                len(video_ids),
                len(videos),
                len(qualifying),
            )
            if qualifying:
                return build_payload(self.rng.choice(qualifying))

        return None


class RandomVideoHandler:
    """GET /api/random: method and credential gates, then one RandomVideoFinder run."""

    def __init__(
        self,
        api_key: str | None,
        client=None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        if api_key and client is None:
            raise ValueError("client is required when an API key is configured")
        self.api_key = api_key
        self.finder = RandomVideoFinder(client, rng=rng) if client is not None else None
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def handle(self, request: Request) -> Response:
        if request.method != "GET":
            return PlainTextResponse(
                "Method Not Allowed",
                status_code=405,
                headers={**RESPONSE_HEADERS, "Allow": "GET"},
            )

        if not self.api_key or self.finder is None:
            logger.error("YOUTUBE_API_KEY is not configured")
            return PlainTextResponse(
                "Server is missing YOUTUBE_API_KEY",
                status_code=500,
                headers=RESPONSE_HEADERS,
            )

        params = normalize_params(
            request.query_params.get("minViews"),
            request.query_params.get("days"),
        )

        try:
            payload = self.finder.find(params, now=self.clock())
        except YouTubeQuotaExceededError as exc:
            logger.error("YouTube API quota exhausted (%s)", exc)
            return PlainTextResponse(
                "Unexpected error fetching videos.",
                status_code=500,
                headers=RESPONSE_HEADERS,
            )
        except Exception:
            logger.exception(
                "Unexpected error fetching videos (minViews=%d, days=%d)",
                params.min_views,
                params.within_days,
            )
            return PlainTextResponse(
                "Unexpected error fetching videos.",
                status_code=500,
                headers=RESPONSE_HEADERS,
            )

        if payload is None:
            return PlainTextResponse(
                "No qualifying video found. Try again.",
                status_code=404,
                headers=RESPONSE_HEADERS,
            )

        return JSONResponse(content=payload.model_dump(), headers=RESPONSE_HEADERS)
