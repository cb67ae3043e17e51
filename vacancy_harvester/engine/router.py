"""Map listing URLs onto the source whose extractor understands them."""

from __future__ import annotations

from ..models import SourceName

# Evaluated top to bottom; patterns overlap, so order is significant.
_ROUTES: tuple[tuple[SourceName, tuple[str, ...]], ...] = (
    (SourceName.HH, ("hh.ru", "hh.")),
    (SourceName.SUPERJOB, ("superjob.ru", "superjob.")),
    (SourceName.HABR, ("habr.com", "career.habr")),
)

SOURCE_ORIGINS: dict[SourceName, str] = {
    SourceName.HH: "https://hh.ru",
    SourceName.SUPERJOB: "https://www.superjob.ru",
    SourceName.HABR: "https://career.habr.com",
}


def resolve_source(url: str) -> SourceName:
    """Return the source for ``url`` by case-sensitive substring match."""

    for source, patterns in _ROUTES:
        if any(pattern in url for pattern in patterns):
            return source
    return SourceName.UNKNOWN


def source_origin(source: SourceName) -> str | None:
    return SOURCE_ORIGINS.get(source)


__all__ = ["SOURCE_ORIGINS", "resolve_source", "source_origin"]
