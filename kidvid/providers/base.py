from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from kidvid.models import SearchPage, VideoSummary


class VideoProvider(ABC):
    @abstractmethod
    def search(self, query: str, page_token: Optional[str], max_results: int) -> SearchPage:
        pass

    @abstractmethod
    def batch_details(self, ids: Sequence[str]) -> List[VideoSummary]:
        pass
