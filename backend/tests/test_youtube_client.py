import pytest
import requests

from backend.app.services.youtube_client import (
    YOUTUBE_SEARCH_LIST,
    YOUTUBE_VIDEOS_LIST,
    YouTubeAPIError,
    YouTubeClient,
    YouTubeQuotaExceededError,
)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = text

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def test_search_sends_expected_params_and_drops_items_without_ids():
    session = FakeSession([
        FakeResponse(payload={
            "items": [
                {"id": {"kind": "youtube#video", "videoId": "abc"}},
                {"id": {"kind": "youtube#video"}},
                {"snippet": {}},
                {"id": {"kind": "youtube#video", "videoId": "def"}},
            ]
        })
    ])
    client = YouTubeClient("secret", timeout=5, session=session)

    ids = client.search_video_ids("music", "2024-06-01T12:00:00.000Z")

    assert ids == ["abc", "def"]
    call = session.calls[0]
    assert call["url"] == YOUTUBE_SEARCH_LIST
    assert call["timeout"] == 5
    assert call["params"] == {
        "part": "id",
        "type": "video",
        "maxResults": 50,
        "order": "viewCount",
        "publishedAfter": "2024-06-01T12:00:00.000Z",
        "videoEmbeddable": "true",
        "safeSearch": "moderate",
        "q": "music",
        "key": "secret",
    }


def test_search_without_items_returns_empty_list():
    client = YouTubeClient("secret", session=FakeSession([FakeResponse(payload={})]))
    assert client.search_video_ids("news", "2024-06-01T12:00:00.000Z") == []


def test_hydrate_batches_ids_in_one_call():
    session = FakeSession([FakeResponse(payload={"items": [{"id": "a"}, {"id": "b"}]})])
    client = YouTubeClient("secret", session=session)

    items = client.hydrate_video_metadata(["a", "b"])

    assert [item["id"] for item in items] == ["a", "b"]
    assert len(session.calls) == 1
    assert session.calls[0]["url"] == YOUTUBE_VIDEOS_LIST
    assert session.calls[0]["params"] == {
        "part": "snippet,statistics,contentDetails",
        "id": "a,b",
        "key": "secret",
    }


def test_hydrate_skips_network_for_empty_batch():
    session = FakeSession([])
    client = YouTubeClient("secret", session=session)
    assert client.hydrate_video_metadata([]) == []
    assert session.calls == []


def test_non_200_raises_api_error():
    client = YouTubeClient("secret", session=FakeSession([FakeResponse(status_code=400, text="bad request")]))
    with pytest.raises(YouTubeAPIError) as excinfo:
        client.search_video_ids("art", "2024-06-01T12:00:00.000Z")
    assert excinfo.value.status_code == 400
    assert excinfo.value.endpoint == "search.list"
    assert not isinstance(excinfo.value, YouTubeQuotaExceededError)


def test_quota_exhaustion_is_reported():
    body = '{"error": {"errors": [{"reason": "quotaExceeded"}]}}'
    client = YouTubeClient("secret", session=FakeSession([FakeResponse(status_code=403, text=body)]))
    with pytest.raises(YouTubeQuotaExceededError) as excinfo:
        client.hydrate_video_metadata(["a"])
    assert excinfo.value.endpoint == "videos.list"


def test_transport_errors_propagate():
    client = YouTubeClient("secret", session=FakeSession([requests.ConnectionError("boom")]))
    with pytest.raises(requests.RequestException):
        client.search_video_ids("art", "2024-06-01T12:00:00.000Z")
