import http.client
import json
import socket
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, List, Optional, Sequence

import pybreaker
from tenacity import Retrying, RetryError, retry_if_exception_type, stop_after_attempt

from kidvid.config import UPSTREAM_TIMEOUT
from kidvid.errors import AllCredentialsExhausted, QuotaDenied, UpstreamError
from kidvid.models import SearchPage, VideoSummary
from kidvid.providers.base import VideoProvider
from kidvid.utils.circuit_breaker import make_breaker
from kidvid.utils.credentials import CredentialPool
from kidvid.utils.validation import normalize_details, normalize_search
from kidvid.utils.logging_setup import configure_logging_from_env

logger = configure_logging_from_env(__name__)

SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
VIDEOS_URL = "https://www.googleapis.com/youtube/v3/videos"

QUOTA_STATUSES = frozenset({401, 403, 429})
MAX_PAGE_SIZE = 50


class YouTubeProvider(VideoProvider):
    def __init__(
        self,
        pool: CredentialPool,
        timeout: float = UPSTREAM_TIMEOUT,
        breaker: Optional[pybreaker.CircuitBreaker] = None,
    ):
        self.pool = pool
        self.timeout = timeout
        self.breaker = breaker or make_breaker("youtube")
        logger.debug("YouTubeProvider initialized | keys=%d timeout=%s", len(pool), timeout)

    def _fetch_json(self, base: str, params: Dict[str, Any]) -> Dict[str, Any]:
        url = base + "?" + urllib.parse.urlencode(params)
        try:
            with urllib.request.urlopen(url, timeout=self.timeout) as r:
                body = r.read()
        except urllib.error.HTTPError as e:
            if e.code in QUOTA_STATUSES:
                raise QuotaDenied(e.code, f"YouTube API denied key ({e.code})") from e
            raise UpstreamError(e.code) from e
        except (socket.timeout, TimeoutError) as e:
            raise UpstreamError(504, "YouTube API timed out") from e
        except urllib.error.URLError as e:
            if isinstance(e.reason, (socket.timeout, TimeoutError)):
                raise UpstreamError(504, "YouTube API timed out") from e
            raise UpstreamError(502, f"YouTube API unreachable: {e.reason}") from e
        except (OSError, http.client.HTTPException) as e:
            raise UpstreamError(502, f"YouTube API connection failed: {e!r}") from e
        logger.debug("YouTube API response endpoint=%s bytes=%d", base.rsplit("/", 1)[-1], len(body))
        try:
            return json.loads(body.decode("utf-8"))
        except ValueError as e:
            raise UpstreamError(502, "YouTube API returned invalid JSON") from e

    def _attempt(self, base: str, params: Dict[str, Any]) -> Dict[str, Any]:
        key = self.pool.current()
        try:
            return self.breaker.call(self._fetch_json, base, {**params, "key": key})
        except pybreaker.CircuitBreakerError as e:
            raise UpstreamError(503, "YouTube API circuit open") from e

    def _on_denied(self, retry_state) -> None:
        exc = retry_state.outcome.exception()
        logger.warning(
            "credential_denied attempt=%d status=%s",
            retry_state.attempt_number, getattr(exc, "status", None),
        )
        self.pool.advance()

    def _call(self, base: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """One logical call: each key gets at most one try, and only quota
        denials move on to the next key."""
        retrying = Retrying(
            retry=retry_if_exception_type(QuotaDenied),
            stop=stop_after_attempt(len(self.pool)),
            after=self._on_denied,
        )
        try:
            return retrying(self._attempt, base, params)
        except RetryError as e:
            logger.error("credentials_exhausted endpoint=%s keys=%d", base.rsplit("/", 1)[-1], len(self.pool))
            raise AllCredentialsExhausted(len(self.pool)) from e.last_attempt.exception()

    @staticmethod
    def _search_params(query: str, max_results: int) -> Dict[str, Any]:
        return {
            "part": "snippet",
            "q": query,
            "type": "video",
            "safeSearch": "strict",
            "videoEmbeddable": "true",
            "videoSyndicated": "true",
            "maxResults": max(1, min(MAX_PAGE_SIZE, max_results)),
        }

    def search(self, query: str, page_token: Optional[str], max_results: int) -> SearchPage:
        logger.info("Search start | query=%r, page_token=%s, max_results=%s", query, page_token, max_results)
        params = self._search_params(query, max_results)
        if page_token:
            params["pageToken"] = page_token
        return normalize_search(self._call(SEARCH_URL, params))

    def batch_details(self, ids: Sequence[str]) -> List[VideoSummary]:
        ids = list(ids)
        out: List[VideoSummary] = []
        for i in range(0, len(ids), MAX_PAGE_SIZE):
            chunk = ids[i:i + MAX_PAGE_SIZE]
            logger.info("Details start | ids=%d", len(chunk))
            params = {
                "part": "snippet,contentDetails,statistics",
                "id": ",".join(chunk),
                "maxResults": len(chunk),
            }
            out.extend(normalize_details(self._call(VIDEOS_URL, params)))
        return out

    def probe(self, index: int, query: str, max_results: int = 3) -> Dict[str, Any]:
        """Try a single key directly, without failover. Used by /diag."""
        params = {**self._search_params(query, max_results), "key": self.pool.credentials[index]}
        try:
            page = normalize_search(self._fetch_json(SEARCH_URL, params))
            return {"keyIndex": index + 1, "ok": True, "status": 200, "count": len(page.items)}
        except UpstreamError as e:
            return {"keyIndex": index + 1, "ok": False, "status": e.status, "count": 0}
