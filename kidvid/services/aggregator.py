from __future__ import annotations
import hashlib
from typing import Dict, List, Optional

from kidvid.catalog import bucket_for
from kidvid.config import MAX_LIMIT, PINNED_CANDIDATE_FACTOR, TTL_AGE_FEED, TTL_SEARCH
from kidvid.models import KIND_BUCKET, KIND_SEARCH, Bucket, FeedRequest
from kidvid.providers.base import VideoProvider
from kidvid.services.paginator import Paginator
from kidvid.utils.cache import Cache
from kidvid.utils.strategies import DedupeStrategy, RotationStrategy, utc_today
from kidvid.utils.validation import normalize_query, slug
from kidvid.utils.logging_setup import configure_logging_from_env

logger = configure_logging_from_env(__name__)


def clamp(n, lo, hi): return max(lo, min(hi, n))


class Aggregator:
    def __init__(
        self,
        provider: VideoProvider,
        cache: Cache,
        dedupe: DedupeStrategy,
        rotation: RotationStrategy,
        paginator: Optional[Paginator] = None,
        ttl_search: int = TTL_SEARCH,
        ttl_feed: int = TTL_AGE_FEED,
        max_limit: int = MAX_LIMIT,
        candidate_factor: int = PINNED_CANDIDATE_FACTOR,
    ):
        self._provider = provider
        self._cache = cache
        self._dedupe = dedupe
        self._rotation = rotation
        self._paginator = paginator or Paginator(provider)
        self._ttls = {KIND_SEARCH: ttl_search, KIND_BUCKET: ttl_feed}
        self._max_limit = max_limit
        self._candidate_factor = max(1, candidate_factor)

    @property
    def provider(self) -> VideoProvider:
        return self._provider

    def cache_key(self, request: FeedRequest) -> str:
        if request.kind == KIND_SEARCH:
            query = normalize_query(request.term)
            # slug alone folds punctuation and non-latin text together
            digest = hashlib.sha1(query.encode("utf-8")).hexdigest()[:12]
            return f"feed:{KIND_SEARCH}:{slug(query)}-{digest}:{request.limit}"
        bucket = bucket_for(request.term)
        key = f"feed:{KIND_BUCKET}:{slug(bucket.name)}:{request.limit}"
        if bucket.pinned:
            # pinned picks rotate daily, so a new UTC day is a new entry
            key += f":{utc_today().isoformat()}"
        return key

    def resolve(self, request: FeedRequest) -> dict:
        if request.kind not in self._ttls:
            raise ValueError(f"unknown request kind: {request.kind!r}")
        request = FeedRequest(request.kind, request.term, clamp(request.limit, 1, self._max_limit))

        if request.kind == KIND_SEARCH and not normalize_query(request.term):
            return {"count": 0, "items": []}

        key = self.cache_key(request)
        cached = self._cache.get_json(key)
        if cached:
            logger.info("cache_hit key=%s", key)
            return cached
        logger.info("cache_miss key=%s", key)

        if request.kind == KIND_SEARCH:
            ids = self._paginator.collect([request.term], request.limit)
        else:
            ids = self._collect_bucket(bucket_for(request.term), request.limit)

        items = self._shape(ids, request.limit)
        out = {"count": len(items), "items": items}

        # an empty result is never cached so an outage doesn't stick for the TTL
        if items:
            self._cache.set_json(key, out, self._ttls[request.kind])
        else:
            logger.warning("empty_result key=%s", key)
        return out

    def _collect_bucket(self, bucket: Bucket, limit: int) -> List[str]:
        chosen: List[str] = []
        for group in bucket.pinned:
            room = min(group.target_count, limit - len(chosen))
            if room <= 0:
                break
            candidates = self._paginator.collect(
                group.queries, group.target_count * self._candidate_factor, exclude=chosen,
            )
            picked = self._rotation.pick(candidates, group.group_name, room)
            logger.debug("pinned_pick group=%r candidates=%d picked=%d", group.group_name, len(candidates), len(picked))
            chosen.extend(picked)

        remaining = limit - len(chosen)
        if remaining > 0:
            chosen.extend(self._paginator.collect(bucket.queries, remaining, exclude=chosen))
        return chosen

    def _shape(self, ids: List[str], limit: int) -> List[Dict]:
        if not ids:
            return []
        details = {v.id: v for v in self._provider.batch_details(ids)}
        dropped = [i for i in ids if i not in details]
        if dropped:
            logger.info("details_dropped count=%d", len(dropped))
        items = [details[i].to_dict() for i in ids if i in details]
        return self._dedupe.dedupe(items)[:limit]
