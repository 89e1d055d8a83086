from __future__ import annotations

import json
import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

from starlette.requests import Request

ROOT_DIR = Path(__file__).resolve().parents[2]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import backend.main as main_module
from backend.app.config import Settings
from backend.app.services.youtube_client import YouTubeAPIError, YouTubeClient

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_request(app, method: str = "GET", query_string: bytes = b"") -> Request:
    return Request(
        {
            "type": "http",
            "method": method,
            "path": "/api/random",
            "headers": [],
            "client": ("127.0.0.1", 8000),
            "query_string": query_string,
            "server": ("test", 80),
            "scheme": "http",
            "http_version": "1.1",
            "app": app,
        }
    )


def make_video(video_id: str, days_ago: int, views: int, duration: str) -> dict:
    published_at = (NOW - timedelta(days=days_ago)).isoformat().replace("+00:00", "Z")
    return {
        "id": video_id,
        "snippet": {
            "title": f"Video {video_id}",
            "channelTitle": "Smoke Channel",
            "publishedAt": published_at,
        },
        "statistics": {"viewCount": str(views)},
        "contentDetails": {"duration": duration},
    }


def assert_true(condition: bool, message: str) -> None:
    if not condition:
        raise AssertionError(message)


def build_app(client: YouTubeClient):
    return main_module.create_app(
        settings=Settings(youtube_api_key="smoke-key"),
        client=client,
        rng=random.Random(0),
        clock=lambda: NOW,
    )


def fake_api(videos: list[dict], call_log: list[str]):
    def fake_api_get(endpoint: str, url: str, params: dict) -> dict:
        _ = url
        call_log.append(endpoint)
        if endpoint == "search.list":
            return {"items": [{"id": {"kind": "youtube#video", "videoId": v["id"]}} for v in videos]}
        requested = set(params["id"].split(","))
        return {"items": [v for v in videos if v["id"] in requested]}

    return fake_api_get


def test_health() -> None:
    payload = main_module.health()
    assert_true(payload.get("ok") is True, "/health should return ok=true")


def test_random_success() -> None:
    client = YouTubeClient("smoke-key")
    app = build_app(client)
    calls: list[str] = []
    videos = [make_video("long1", 3, 450_000, "PT12M"), make_video("short1", 3, 900_000, "PT40S")]

    with patch.object(client, "api_get", side_effect=fake_api(videos, calls)):
        response = main_module.random_video(make_request(app))

    assert_true(response.status_code == 200, "/api/random should return 200 when a video qualifies")
    payload = json.loads(response.body)
    assert_true(payload["id"] == "long1", "/api/random should skip videos under the minimum duration")
    assert_true(calls == ["search.list", "videos.list"], "/api/random should search then hydrate once")
    assert_true(response.headers.get("cache-control") == "no-store", "/api/random must not be cached")


def test_random_not_found() -> None:
    client = YouTubeClient("smoke-key")
    app = build_app(client)
    calls: list[str] = []
    videos = [make_video("tiny", 3, 500, "PT12M")]

    with patch.object(client, "api_get", side_effect=fake_api(videos, calls)):
        response = main_module.random_video(make_request(app, query_string=b"minViews=10&days=9999"))

    assert_true(response.status_code == 404, "/api/random should 404 when nothing qualifies")
    assert_true(calls.count("search.list") == 2, "/api/random should stop after two attempts")


def test_random_method_gate() -> None:
    client = YouTubeClient("smoke-key")
    app = build_app(client)

    with patch.object(client, "api_get") as api_get:
        response = main_module.random_video(make_request(app, method="POST"))

    assert_true(response.status_code == 405, "/api/random should reject POST")
    assert_true(response.headers.get("allow") == "GET", "/api/random should advertise Allow: GET")
    assert_true(api_get.call_count == 0, "/api/random should not call YouTube for POST")


def test_random_upstream_failure() -> None:
    client = YouTubeClient("smoke-key")
    app = build_app(client)

    with patch.object(client, "api_get", side_effect=YouTubeAPIError("search.list", 503)) as api_get:
        response = main_module.random_video(make_request(app))

    assert_true(response.status_code == 500, "/api/random should map upstream failures to 500")
    assert_true(api_get.call_count == 1, "/api/random should not retry upstream failures")


def run() -> int:
    checks = [
        ("health", test_health),
        ("random success", test_random_success),
        ("random not found", test_random_not_found),
        ("random method gate", test_random_method_gate),
        ("random upstream failure", test_random_upstream_failure),
    ]
    failures = []

    for check_name, check_fn in checks:
        try:
            check_fn()
            print(f"[PASS] {check_name}")
        except Exception as exc:  # pragma: no cover - smoke script output path
            failures.append((check_name, str(exc)))
            print(f"[FAIL] {check_name}: {exc}")

    if failures:
        print(f"\nSmoke checks failed: {len(failures)}")
        for check_name, message in failures:
            print(f"- {check_name}: {message}")
        return 1

    print("\nAll smoke checks passed.")
    return 0


if __name__ == "__main__":
    sys.exit(run())
