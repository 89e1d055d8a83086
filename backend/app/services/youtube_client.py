import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)

YOUTUBE_SEARCH_LIST = "https://www.googleapis.com/youtube/v3/search"
YOUTUBE_VIDEOS_LIST = "https://www.googleapis.com/youtube/v3/videos"
SEARCH_MAX_RESULTS = 50


class YouTubeAPIError(Exception):
    def __init__(self, endpoint: str, status_code: int):
        super().__init__(f"{endpoint} failed: {status_code}")
        self.endpoint = endpoint
        self.status_code = status_code


class YouTubeQuotaExceededError(YouTubeAPIError):
    pass


def is_quota_exceeded_body(body: str) -> bool:
    lowered = (body or "").lower()
    return "quotaexceeded" in lowered or "quota exceeded" in lowered or "youtube.quota" in lowered


class YouTubeClient:
    """
    Thin wrapper over search.list and videos.list.
    Every non-200 answer raises; nothing is retried here.
    """

    def __init__(self, api_key: str, timeout: float = 15.0, session: requests.Session | None = None):
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def api_get(self, endpoint: str, url: str, params: dict[str, Any]) -> dict[str, Any]:
        response = self.session.get(url, params={**params, "key": self.api_key}, timeout=self.timeout)
        if response.status_code == 200:
            return response.json()

        if response.status_code in {403, 429} and is_quota_exceeded_body(response.text):
            raise YouTubeQuotaExceededError(endpoint, response.status_code)
        raise YouTubeAPIError(endpoint, response.status_code)

    def search_video_ids(self, query: str, published_after: str) -> list[str]:
        payload = self.api_get(
            "search.list",
            YOUTUBE_SEARCH_LIST,
            {
                "part": "id",
                "type": "video",
                "maxResults": SEARCH_MAX_RESULTS,
                "order": "viewCount",
                "publishedAfter": published_after,
                "videoEmbeddable": "true",
                "safeSearch": "moderate",
                "q": query,
            },
        )
        ids = []
        for item in payload.get("items") or []:
            id_obj = item.get("id")
            video_id = id_obj.get("videoId") if isinstance(id_obj, dict) else None
            if video_id:
                ids.append(video_id)
        logger.debug("search.list q=%r returned %d ids", query, len(ids))
        return ids

    def hydrate_video_metadata(self, video_ids: list[str]) -> list[dict]:
        if not video_ids:
            return []
        payload = self.api_get(
            "videos.list",
            YOUTUBE_VIDEOS_LIST,
            {
                "part": "snippet,statistics,contentDetails",
                "id": ",".join(video_ids),
            },
        )
        return payload.get("items") or []
