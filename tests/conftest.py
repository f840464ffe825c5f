# tests/conftest.py
import functools
import importlib
import io
import json
import os
import threading
import urllib.error
import urllib.parse
from contextlib import contextmanager
from typing import Dict, List, Optional, Sequence, Tuple

import fakeredis
import pytest
from freezegun import freeze_time

from kidvid.models import SearchPage, VideoSummary
from kidvid.providers.base import VideoProvider


@pytest.fixture(autouse=True)
def patch_redis(monkeypatch):
    import redis
    server = fakeredis.FakeServer()
    monkeypatch.setattr(redis, "StrictRedis", functools.partial(fakeredis.FakeStrictRedis, server=server))
    yield


@pytest.fixture
def freeze():
    with freeze_time("2025-08-20 10:00:00") as fz:
        yield fz


class FakeProvider(VideoProvider):
    """In-memory upstream. ``pages`` maps (query, page_token) -> (ids, next_token)."""

    def __init__(self, pages: Optional[Dict[Tuple[str, Optional[str]], Tuple[List[str], Optional[str]]]] = None,
                 missing: Sequence[str] = (), error: Optional[Exception] = None):
        self.pages = pages or {}
        self.missing = set(missing)
        self.error = error
        self.search_calls: List[Tuple[str, Optional[str], int]] = []
        self.detail_calls: List[List[str]] = []

    def search(self, query, page_token, max_results):
        self.search_calls.append((query, page_token, max_results))
        if self.error:
            raise self.error
        ids, nxt = self.pages.get((query, page_token), ([], None))
        return SearchPage(items=[(i, {"title": i}) for i in ids], next_page_token=nxt)

    def batch_details(self, ids):
        self.detail_calls.append(list(ids))
        # upstream makes no ordering promise
        return [make_summary(i) for i in reversed(list(ids)) if i not in self.missing]

    @property
    def calls(self) -> int:
        return len(self.search_calls) + len(self.detail_calls)


def make_summary(vid: str) -> VideoSummary:
    return VideoSummary(
        id=vid, title=f"Video {vid}", channel="Kids TV",
        thumbnail_url=f"https://i.ytimg.com/vi/{vid}/mqdefault.jpg", duration="4:13",
    )


class FakeResp:
    def __init__(self, payload: dict): self._p = json.dumps(payload).encode("utf-8")
    def read(self): return self._p
    def __enter__(self): return self
    def __exit__(self, *a): return False


class FakeYouTube:
    """Stands in for urllib.request.urlopen against the YouTube Data API.

    ``search_results`` maps query -> list of ids (served in pages of
    ``page_size``); keys in ``denied`` answer with ``deny_status``.
    """

    def __init__(self, search_results: Optional[Dict[str, List[str]]] = None, page_size: int = 50,
                 denied: Sequence[str] = (), deny_status: int = 403, fail_status: Optional[int] = None):
        self.search_results = search_results or {}
        self.page_size = page_size
        self.denied = set(denied)
        self.deny_status = deny_status
        self.fail_status = fail_status
        self.requests: List[Tuple[str, Dict[str, str]]] = []
        # opaque page token -> offset; unknown tokens start from the top
        self.tokens: Dict[str, int] = {}

    def keys_used(self) -> List[str]:
        return [params.get("key") for _, params in self.requests]

    def __call__(self, url, timeout=None):
        parsed = urllib.parse.urlparse(url)
        params = {k: v[0] for k, v in urllib.parse.parse_qs(parsed.query).items()}
        endpoint = parsed.path.rsplit("/", 1)[-1]
        self.requests.append((endpoint, params))

        if params.get("key") in self.denied:
            raise urllib.error.HTTPError(url, self.deny_status, "Forbidden", {}, io.BytesIO(b"{}"))
        if self.fail_status:
            raise urllib.error.HTTPError(url, self.fail_status, "Error", {}, io.BytesIO(b"{}"))

        if endpoint == "search":
            ids = self.search_results.get(params.get("q"), [])
            start = self.tokens.get(params.get("pageToken") or "", 0)
            chunk = ids[start:start + self.page_size]
            body = {"items": [
                {"id": {"kind": "youtube#video", "videoId": i}, "snippet": {"title": f"Video {i}"}}
                for i in chunk
            ]}
            if start + self.page_size < len(ids):
                token = f"CAUQ{start + self.page_size:04d}"
                self.tokens[token] = start + self.page_size
                body["nextPageToken"] = token
            return FakeResp(body)

        ids = [i for i in (params.get("id") or "").split(",") if i]
        return FakeResp({"items": [
            {
                "id": i,
                "snippet": {
                    "title": f"Video {i}",
                    "channelTitle": "Kids TV",
                    "thumbnails": {"medium": {"url": f"https://i.ytimg.com/vi/{i}/mqdefault.jpg"}},
                },
                "contentDetails": {"duration": "PT4M13S"},
                "statistics": {"viewCount": "10"},
            }
            for i in ids
        ]})


@pytest.fixture
def youtube(monkeypatch):
    fake = FakeYouTube()
    monkeypatch.setattr("urllib.request.urlopen", fake)
    return fake


@contextmanager
def run_server(host="127.0.0.1", env=None):
    """
    Start the HTTP server on a free port with test-specific environment.
    kidvid.config reads the environment at import, so config and app are
    reloaded after the variables are set, and restored afterwards.
    """
    updates = {
        "YT_API_KEYS": "test-key-1,test-key-2",
        "CACHE_BACKEND": "memory",
        "RATE_LIMIT_PER_MINUTE": "1000",
        "HOST": host,
    }
    updates.update(env or {})
    saved = {k: os.environ.get(k) for k in updates}
    os.environ.update(updates)

    import kidvid.config as config
    try:
        importlib.reload(config)
        import kidvid.app as app
        importlib.reload(app)

        httpd = app.ThreadingHTTPServer((host, 0), app.Handler)
        t = threading.Thread(target=httpd.serve_forever, daemon=True)
        t.start()
        try:
            yield (httpd, f"http://{host}:{httpd.server_address[1]}")
        finally:
            httpd.shutdown()
            httpd.server_close()
            t.join()
    finally:
        for k, v in saved.items():
            if v is None:
                os.environ.pop(k, None)
            else:
                os.environ[k] = v
        importlib.reload(config)
