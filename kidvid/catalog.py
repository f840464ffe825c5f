"""Static browsing catalog: age buckets, their rotation pools and pinned brands."""
from typing import Dict

from kidvid.models import Bucket, PinnedGroupSpec

DEFAULT_BUCKET = "all"

BUCKETS: Dict[str, Bucket] = {
    "1-2": Bucket(
        name="1-2",
        queries=(
            "toddler learning colors cartoons",
            "nursery rhymes for babies",
            "baby sensory videos",
        ),
        pinned=(
            PinnedGroupSpec("cocomelon", 3, ("cocomelon nursery rhymes",)),
            PinnedGroupSpec("super simple songs", 2, ("super simple songs kids",)),
        ),
    ),
    "3-5": Bucket(
        name="3-5",
        queries=(
            "preschool cartoons full episodes",
            "preschool learning songs",
            "kids cartoons for preschoolers",
        ),
        pinned=(
            PinnedGroupSpec("bluey", 4, ("bluey full episodes", "bluey official")),
            PinnedGroupSpec("peppa pig", 3, ("peppa pig official full episodes",)),
            PinnedGroupSpec("numberblocks", 2, ("numberblocks full episodes",)),
        ),
    ),
    "6-8": Bucket(
        name="6-8",
        queries=(
            "kids animated series",
            "science experiments for kids",
            "kids cartoons adventure",
        ),
        pinned=(
            PinnedGroupSpec("lego", 3, ("lego animated kids",)),
            PinnedGroupSpec("magic school bus", 2, ("magic school bus full episodes",)),
        ),
    ),
    "all": Bucket(name="all", queries=("kids cartoons",)),
}


def bucket_for(name: str) -> Bucket:
    """Unknown or blank bucket names fall back to the catch-all feed."""
    return BUCKETS.get((name or "").strip(), BUCKETS[DEFAULT_BUCKET])
