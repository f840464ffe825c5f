from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

VideoId = str
QueryGroup = List[str]

KIND_BUCKET = "byBucket"
KIND_SEARCH = "search"


@dataclass
class VideoSummary:
    id: VideoId
    title: str
    channel: str
    thumbnail_url: str
    duration: Optional[str] = None

    @property
    def source_url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.id}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "channel": self.channel,
            "thumbnailUrl": self.thumbnail_url,
            "duration": self.duration,
            "sourceUrl": self.source_url,
        }


@dataclass
class SearchPage:
    """One page of upstream search results: (id, raw snippet) pairs."""

    items: List[Tuple[VideoId, Dict[str, Any]]] = field(default_factory=list)
    next_page_token: Optional[str] = None


@dataclass(frozen=True)
class PinnedGroupSpec:
    group_name: str
    target_count: int
    queries: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Bucket:
    name: str
    queries: Tuple[str, ...]
    pinned: Tuple[PinnedGroupSpec, ...] = ()


@dataclass
class FeedRequest:
    kind: str  # KIND_BUCKET | KIND_SEARCH
    term: str
    limit: int
