import re
from typing import Any, Dict, List, Optional

from kidvid.models import SearchPage, VideoSummary

_DURATION = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$")


def normalize_query(q: str) -> str:
    # trim and collapse inner whitespace; case is left alone for upstream
    return " ".join((q or "").split())


def slug(s: str) -> str:
    s = re.sub(r"[^a-z0-9]+", "-", str(s or "").lower())
    return s.strip("-")[:80]


def format_duration(iso: Optional[str]) -> Optional[str]:
    """PT1H2M3S -> 1:02:03, PT4M13S -> 4:13. Unparseable input gives None."""
    if not iso:
        return None
    m = _DURATION.match(iso)
    if not m:
        return None
    days, hours, minutes, seconds = (int(g or 0) for g in m.groups())
    hours += days * 24
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def pick_thumbnail(snippet: Dict[str, Any]) -> str:
    thumbs = snippet.get("thumbnails") or {}
    for size in ("medium", "high", "default"):
        url = (thumbs.get(size) or {}).get("url")
        if url:
            return url
    return ""


def normalize_search(data: Dict[str, Any]) -> SearchPage:
    items = []
    for it in data.get("items") or []:
        ident = it.get("id")
        vid = ident.get("videoId") if isinstance(ident, dict) else ident
        if vid:
            items.append((vid, it.get("snippet") or {}))
    return SearchPage(items=items, next_page_token=data.get("nextPageToken") or None)


def normalize_details(data: Dict[str, Any]) -> List[VideoSummary]:
    out = []
    for it in data.get("items") or []:
        vid = it.get("id")
        sn = it.get("snippet") or {}
        thumb = pick_thumbnail(sn)
        if not vid or not thumb:
            continue
        out.append(VideoSummary(
            id=vid,
            title=sn.get("title") or "",
            channel=sn.get("channelTitle") or "",
            thumbnail_url=thumb,
            duration=format_duration((it.get("contentDetails") or {}).get("duration")),
        ))
    return out
