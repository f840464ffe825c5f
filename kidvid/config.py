# kidvid/config.py
import os
from pathlib import Path
from typing import List
from dotenv import load_dotenv, find_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Project .env first; values already in the process env win so tests and
# deployments can override without editing the file.
load_dotenv(PROJECT_ROOT / ".env", override=False)
load_dotenv(find_dotenv(usecwd=True), override=False)


def load_api_keys() -> List[str]:
    """Collect YouTube API keys from every supported variable, in order.

    ``YT_API_KEYS`` (comma separated) comes first, then the indexed
    ``YT_API_KEY_1..3`` / ``YOUTUBE_API_KEY_1..3`` and finally the single
    ``YT_API_KEY``. Blank entries and repeats are dropped.
    """
    keys = [k for k in os.getenv("YT_API_KEYS", "").split(",")]
    for prefix in ("YT_API_KEY_", "YOUTUBE_API_KEY_"):
        keys.extend(os.getenv(f"{prefix}{i}", "") for i in (1, 2, 3))
    keys.append(os.getenv("YT_API_KEY", ""))

    out: List[str] = []
    for k in keys:
        k = k.strip()
        if k and k not in out:
            out.append(k)
    return out


HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "10000"))

API_KEYS = load_api_keys()
UPSTREAM_TIMEOUT = float(os.getenv("UPSTREAM_TIMEOUT", "6"))

MAX_LIMIT = int(os.getenv("MAX_LIMIT", "50"))
DEFAULT_LIMIT = int(os.getenv("DEFAULT_LIMIT", "24"))
MAX_PAGES_PER_QUERY = int(os.getenv("MAX_PAGES_PER_QUERY", "5"))
PINNED_CANDIDATE_FACTOR = int(os.getenv("PINNED_CANDIDATE_FACTOR", "3"))

# seconds
TTL_SEARCH = int(os.getenv("TTL_SEARCH", str(30 * 60)))
TTL_AGE_FEED = int(os.getenv("TTL_AGE_FEED", str(6 * 60 * 60)))

CACHE_BACKEND = os.getenv("CACHE_BACKEND", "memory").lower()  # memory | file | redis
CACHE_MAX_ENTRIES = int(os.getenv("CACHE_MAX_ENTRIES", "512"))
CACHE_DIR = os.getenv("CACHE_DIR", str(PROJECT_ROOT / "cache"))

ALLOWED_ORIGIN = os.getenv("ALLOWED_ORIGIN", "*")

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB = int(os.getenv("REDIS_DB", "0"))

# requests per minute per client IP, 0 disables
RATE_LIMIT_PER_MINUTE = int(os.getenv("RATE_LIMIT_PER_MINUTE", "60"))

DIAG_QUERY = os.getenv("DIAG_QUERY", "numberblocks")
