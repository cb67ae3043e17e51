"""Engine components: route → fetch → extract → dedup."""

from .dedup import SeenUrlSet
from .fetcher import Fetcher, ParsedDocument
from .router import SOURCE_ORIGINS, resolve_source, source_origin
from .thread_pool import WorkerPool

__all__ = [
    "Fetcher",
    "ParsedDocument",
    "SOURCE_ORIGINS",
    "SeenUrlSet",
    "WorkerPool",
    "resolve_source",
    "source_origin",
]
