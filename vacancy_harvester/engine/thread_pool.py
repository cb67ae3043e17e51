"""Fixed-size worker pool running one ingestion task per URL."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from threading import Lock
from typing import Any, Callable, TypeVar

T = TypeVar("T")


class WorkerPool:
    """Lazily created shared executor; excess submissions queue."""

    def __init__(self, max_workers: int = 10, thread_name_prefix: str = "ingest") -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.max_workers = max_workers
        self.thread_name_prefix = thread_name_prefix
        self._executor: ThreadPoolExecutor | None = None
        self._lock = Lock()

    def executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers, thread_name_prefix=self.thread_name_prefix
                )
            return self._executor

    def submit(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> Future[T]:
        return self.executor().submit(fn, *args, **kwargs)

    def shutdown(self, wait: bool = False) -> None:
        # wait=False: orphaned tasks past their deadline must not block exit
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait, cancel_futures=True)


__all__ = ["WorkerPool"]
