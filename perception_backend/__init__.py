"""
Perception Backend

Turns recognition events (scanned markers, detected images, geolocation
updates) into deltas of artifact content to show, fetching and caching page
metadata for content that only carries a URL.
"""

from .fetch_policy import FetchPolicy, check_is_fetchable_url, normalize_policy, url_origin
from .meaning_maker import MeaningMaker
from .page_metadata_cache import PageMetadataCache, PageMetadataResolver
from .settings import VERSION, Settings, get_settings

__version__ = VERSION

__all__ = [
    "FetchPolicy",
    "check_is_fetchable_url",
    "normalize_policy",
    "url_origin",
    "MeaningMaker",
    "PageMetadataCache",
    "PageMetadataResolver",
    "Settings",
    "get_settings",
]
