"""Process-lifetime membership set of persisted source URLs."""

from __future__ import annotations

from threading import Lock
from typing import Iterable


class SeenUrlSet:
    """Seen-URL registry with an atomic claim/commit/release protocol.

    ``claim`` reserves URLs that are neither seen nor reserved by another
    task, in one critical section. A URL becomes *seen* only through
    ``commit``, after its records were stored; ``release`` hands reservations
    back when persistence failed so a later batch can retry them.
    """

    def __init__(self, urls: Iterable[str] | None = None) -> None:
        self._lock = Lock()
        self._seen: set[str] = set(urls or ())
        self._in_flight: set[str] = set()

    def claim(self, urls: Iterable[str]) -> list[str]:
        claimed: list[str] = []
        with self._lock:
            for url in urls:
                if url in self._seen or url in self._in_flight:
                    continue
                self._in_flight.add(url)
                claimed.append(url)
        return claimed

    def commit(self, urls: Iterable[str]) -> None:
        with self._lock:
            for url in urls:
                self._in_flight.discard(url)
                self._seen.add(url)

    def release(self, urls: Iterable[str]) -> None:
        with self._lock:
            for url in urls:
                self._in_flight.discard(url)

    def hydrate(self, urls: Iterable[str]) -> int:
        with self._lock:
            before = len(self._seen)
            self._seen.update(urls)
            return len(self._seen) - before

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)

    @property
    def in_flight(self) -> int:
        with self._lock:
            return len(self._in_flight)


__all__ = ["SeenUrlSet"]
