from __future__ import annotations
from typing import Iterable, List, Optional

from kidvid.config import MAX_PAGES_PER_QUERY
from kidvid.providers.base import VideoProvider
from kidvid.providers.youtube import MAX_PAGE_SIZE
from kidvid.utils.validation import normalize_query
from kidvid.utils.logging_setup import configure_logging_from_env

logger = configure_logging_from_env(__name__)


class Paginator:
    """Walks an ordered query group page by page, collecting unique video ids."""

    def __init__(self, provider: VideoProvider, max_pages: int = MAX_PAGES_PER_QUERY):
        self._provider = provider
        self._max_pages = max_pages

    def collect(self, queries: Iterable[str], target: int, exclude: Iterable[str] = ()) -> List[str]:
        """Return up to ``target`` ids in discovery order.

        Ids in ``exclude`` are treated as already seen and never returned.
        Running out of queries or pages before ``target`` yields a short list.
        """
        if target <= 0:
            return []
        seen = set(exclude)
        found: List[str] = []
        page_size = min(MAX_PAGE_SIZE, target)

        for raw in queries:
            query = normalize_query(raw)
            if not query:
                continue
            token: Optional[str] = None
            for page_no in range(1, self._max_pages + 1):
                page = self._provider.search(query, token, page_size)
                for vid, _snippet in page.items:
                    if vid in seen:
                        continue
                    seen.add(vid)
                    found.append(vid)
                    if len(found) >= target:
                        logger.info("collect_done query=%r pages=%d found=%d", query, page_no, len(found))
                        return found
                token = page.next_page_token
                if not token:
                    break
            logger.debug("query_exhausted query=%r found=%d", query, len(found))

        logger.info("collect_partial target=%d found=%d", target, len(found))
        return found
