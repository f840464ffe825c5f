from __future__ import annotations
from datetime import date, datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Protocol

MASK32 = 0xFFFFFFFF


class DedupeStrategy(Protocol):
    def dedupe(self, items: List[Dict]) -> List[Dict]: ...


class RotationStrategy(Protocol):
    def pick(self, candidates: List[str], group_name: str, target_count: int,
             day: Optional[date] = None) -> List[str]: ...


class VideoIdDedupe(DedupeStrategy):
    def __init__(self, key_fn: Callable[[Dict], str] = lambda it: it.get("id") or ""):
        self._key = key_fn

    def dedupe(self, items: List[Dict]) -> List[Dict]:
        seen, out = set(), []
        for it in items:
            k = self._key(it)
            if not k or k in seen:
                continue
            seen.add(k); out.append(it)
        return out


def string_hash(s: str) -> int:
    h = 0
    for ch in s:
        h = (h * 31 + ord(ch)) & MASK32
    return h


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class DailyRotation(RotationStrategy):
    """Seeded Fisher-Yates shuffle that is stable for one UTC day per group."""

    MULTIPLIER = 1664525
    INCREMENT = 1013904223

    def seed_for(self, group_name: str, day: date) -> int:
        day_int = day.year * 10000 + day.month * 100 + day.day
        return (day_int ^ string_hash(group_name)) & MASK32

    def _step(self, seed: int) -> int:
        return (self.MULTIPLIER * seed + self.INCREMENT) & MASK32

    def shuffle(self, candidates: Iterable[str], seed: int) -> List[str]:
        out = list(dict.fromkeys(candidates))
        for i in range(len(out) - 1, 0, -1):
            seed = self._step(seed)
            j = seed % (i + 1)
            out[i], out[j] = out[j], out[i]
        return out

    def pick(self, candidates: List[str], group_name: str, target_count: int,
             day: Optional[date] = None) -> List[str]:
        if target_count <= 0:
            return []
        seed = self.seed_for(group_name, day or utc_today())
        return self.shuffle(candidates, seed)[:target_count]
