import json
import re
import urllib.parse
from datetime import datetime, timezone
import redis
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from kidvid.config import (
    HOST, PORT, API_KEYS, ALLOWED_ORIGIN, DEFAULT_LIMIT, MAX_LIMIT, DIAG_QUERY,
    CACHE_BACKEND, CACHE_MAX_ENTRIES, CACHE_DIR,
    REDIS_HOST, REDIS_PORT, REDIS_DB, RATE_LIMIT_PER_MINUTE,
)
from kidvid.errors import AllCredentialsExhausted, NoCredentialsConfigured, UpstreamError
from kidvid.models import KIND_BUCKET, KIND_SEARCH, FeedRequest
from kidvid.providers.youtube import YouTubeProvider
from kidvid.services.aggregator import Aggregator, clamp
from kidvid.utils.cache import build_cache
from kidvid.utils.credentials import CredentialPool
from kidvid.utils.rate_limit import RateLimiter
from kidvid.utils.strategies import DailyRotation, VideoIdDedupe
from kidvid.utils.logging_setup import configure_logging_from_env

logger = configure_logging_from_env(__name__)

ENDPOINTS = ["/health", "/videos", "/search", "/api/search", "/diag"]
MAX_QUERY_LEN = 100

# ----- ingress rate limiter (Redis-backed), per client IP -----
_redis_rl = redis.StrictRedis(host=REDIS_HOST, port=REDIS_PORT, db=REDIS_DB, decode_responses=True)
INGRESS_LIMITER = RateLimiter(_redis_rl, "ingress", rate=RATE_LIMIT_PER_MINUTE, per_seconds=60)


def parse_limit(raw: str) -> int:
    try:
        n = int(raw)
    except (TypeError, ValueError):
        n = DEFAULT_LIMIT
    return clamp(n, 1, MAX_LIMIT)


def bootstrap():
    # raises NoCredentialsConfigured before the server ever binds
    provider = YouTubeProvider(CredentialPool(API_KEYS))
    cache = build_cache(
        CACHE_BACKEND, max_entries=CACHE_MAX_ENTRIES, directory=CACHE_DIR,
        redis_host=REDIS_HOST, redis_port=REDIS_PORT, redis_db=REDIS_DB,
    )
    logger.info("bootstrap keys=%d cache=%s", len(API_KEYS), CACHE_BACKEND)
    return Aggregator(provider, cache, VideoIdDedupe(), DailyRotation())


try:
    AGGREGATOR = bootstrap()  # single instance shared by handler threads
except NoCredentialsConfigured as e:
    logger.critical("startup_fail err=%s", e)
    raise


class Handler(BaseHTTPRequestHandler):
    def log_message(self, fmt, *args):
        pass  # suppress default stdout access logs

    def _cors_headers(self):
        origin = self.headers.get("Origin", "")
        allow_origin = origin if re.match(r"^http://localhost:\d+$", origin) else ALLOWED_ORIGIN
        self.send_header("Access-Control-Allow-Origin", allow_origin)
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.send_header("Access-Control-Allow-Methods", "GET, OPTIONS")

    def _send_json(self, status: int, payload: dict):
        try:
            body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json; charset=utf-8")
            self._cors_headers()
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
        except Exception as e:
            logger.error("http_send_fail status=%d err=%s", status, e, exc_info=True)

    def do_OPTIONS(self):
        try:
            self.send_response(204)
            self._cors_headers()
            self.end_headers()
        except Exception as e:
            logger.error("http_options_fail err=%s", e, exc_info=True)

    def do_GET(self):
        parsed = urllib.parse.urlparse(self.path)
        path = parsed.path.rstrip("/") or "/"
        qs = urllib.parse.parse_qs(parsed.query or "")

        try:
            if path == "/":
                return self._send_json(200, {"ok": True, "service": "kidvid-server", "endpoints": ENDPOINTS})

            if path == "/health":
                return self._send_json(200, {"ok": True, "time": datetime.now(timezone.utc).isoformat()})

            if path == "/diag":
                provider = AGGREGATOR.provider
                results = [provider.probe(i, DIAG_QUERY) for i in range(len(provider.pool))]
                return self._send_json(200, {"ok": True, "test": DIAG_QUERY, "results": results})

            if path in ("/videos", "/search", "/api/search"):
                if not INGRESS_LIMITER.allow(self.client_address[0]):
                    return self._send_json(429, {"ok": False, "error": "rate_limit_exceeded"})

                q = (qs.get("q", [""])[0]).strip()[:MAX_QUERY_LEN]
                limit = parse_limit(qs.get("limit", [str(DEFAULT_LIMIT)])[0])
                if path == "/videos" and not q:
                    request = FeedRequest(KIND_BUCKET, qs.get("age", ["all"])[0], limit)
                else:
                    request = FeedRequest(KIND_SEARCH, q, limit)
                return self._resolve(request)

            return self._send_json(404, {"ok": False, "error": "not_found"})
        except Exception as e:
            logger.error("request_unhandled_error path=%s err=%s", parsed.path, e, exc_info=True)
            return self._send_json(500, {"ok": False, "error": "internal_error"})

    def _resolve(self, request: FeedRequest):
        try:
            payload = AGGREGATOR.resolve(request)
        except AllCredentialsExhausted as e:
            logger.error("feed_fail kind=%s term=%r err=%s", request.kind, request.term, e)
            return self._send_json(503, {"ok": False, "error": "all_credentials_exhausted"})
        except UpstreamError as e:
            logger.error("feed_fail kind=%s term=%r status=%s err=%s", request.kind, request.term, e.status, e)
            return self._send_json(502, {"ok": False, "error": "upstream_error", "status": e.status})
        return self._send_json(200, {"ok": True, **payload})


def main():
    try:
        httpd = ThreadingHTTPServer((HOST, PORT), Handler)
    except Exception as e:
        logger.critical("server_bind_fail host=%s port=%s err=%s", HOST, PORT, e, exc_info=True)
        raise
    logger.info("kidvid server listening on %s:%d", HOST, PORT)
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        httpd.server_close()


if __name__ == "__main__":
    main()
