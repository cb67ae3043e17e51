"""Per-source listing extractors."""

from __future__ import annotations

from typing import Callable, Iterator, Mapping

from ...errors import UnknownSourceError
from ...models import JobRecord, SourceName
from ..fetcher import ParsedDocument
from .habr import extract_habr
from .hh import extract_hh
from .superjob import extract_superjob

Extractor = Callable[[ParsedDocument], Iterator[JobRecord]]

EXTRACTORS: dict[SourceName, Extractor] = {
    SourceName.HH: extract_hh,
    SourceName.SUPERJOB: extract_superjob,
    SourceName.HABR: extract_habr,
}


def get_extractor(
    source: SourceName, registry: Mapping[SourceName, Extractor] | None = None, *, url: str | None = None
) -> Extractor:
    """Look up the extractor for ``source``; ``registry`` defaults to :data:`EXTRACTORS`."""

    try:
        return (EXTRACTORS if registry is None else registry)[source]
    except KeyError:
        raise UnknownSourceError(f"No extractor registered for source {source.value!r}", url=url) from None


__all__ = ["EXTRACTORS", "Extractor", "extract_habr", "extract_hh", "extract_superjob", "get_extractor"]
