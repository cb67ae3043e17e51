"""HTTP fetching of listing pages with browser-like headers."""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx
import structlog
from selectolax.lexbor import LexborHTMLParser

from ..config import FetchSettings
from ..errors import FetchError
from .router import resolve_source, source_origin

_MARKUP_TYPES = ("text/html", "application/xhtml+xml", "application/xml", "text/xml")
_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


@dataclass(slots=True)
class ParsedDocument:
    """A fetched page ready for selector queries."""

    url: str
    tree: LexborHTMLParser = field(repr=False)
    status_code: int = 200

    @classmethod
    def from_html(cls, html: str, url: str) -> "ParsedDocument":
        return cls(url=url, tree=LexborHTMLParser(html))

    @property
    def title(self) -> str:
        node = self.tree.css_first("title")
        return node.text(strip=True) if node is not None else ""

    def body_preview(self, limit: int = 500) -> str:
        body = self.tree.body
        if body is None:
            return ""
        return body.text(separator=" ", strip=True)[:limit]


class Fetcher:
    """GET listing pages and hand back parsed documents or ``FetchError``."""

    def __init__(
        self,
        settings: FetchSettings,
        logger: structlog.BoundLogger | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger or structlog.get_logger("vacancy_harvester.fetcher")
        self._user_agent = settings.effective_user_agent()
        self._owns_client = client is None
        self._client = client or httpx.Client(
            follow_redirects=True,
            timeout=settings.timeout_ms / 1000,
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *_exc_info) -> None:
        self.close()

    def build_headers(self, url: str) -> dict[str, str]:
        headers = {
            "User-Agent": self._user_agent,
            "Accept": _ACCEPT,
            "Accept-Language": self.settings.accept_language,
        }
        origin = source_origin(resolve_source(url))
        if origin:
            headers["Referer"] = origin
        return headers

    def fetch(self, url: str, timeout_ms: int | None = None) -> ParsedDocument:
        timeout = (timeout_ms or self.settings.timeout_ms) / 1000
        try:
            response = self._client.get(
                url,
                headers=self.build_headers(url),
                timeout=timeout,
                follow_redirects=True,
            )
        except httpx.TimeoutException as exc:
            raise FetchError(f"Timed out after {timeout:g}s: {url}", url=url) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise FetchError(f"Request failed for {url}: {exc}", url=url) from exc

        if not response.is_success:
            raise FetchError(
                f"Unexpected status {response.status_code} for {url}",
                url=url,
                status_code=response.status_code,
            )
        content_type = response.headers.get("content-type", "")
        if content_type and not self._is_markup(content_type):
            raise FetchError(
                f"Unsupported content type {content_type!r} for {url}",
                url=url,
                status_code=response.status_code,
            )
        self.logger.debug(
            "page_fetched",
            url=url,
            final_url=str(response.url),
            status=response.status_code,
            bytes=len(response.content),
        )
        return ParsedDocument(
            url=str(response.url),
            tree=LexborHTMLParser(response.text),
            status_code=response.status_code,
        )

    @staticmethod
    def _is_markup(content_type: str) -> bool:
        media_type = content_type.split(";", 1)[0].strip().lower()
        return media_type in _MARKUP_TYPES


__all__ = ["Fetcher", "ParsedDocument"]
