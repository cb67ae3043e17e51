from __future__ import annotations

import threading
import time

import pytest

from vacancy_harvester.engine.thread_pool import WorkerPool


def test_pool_caps_concurrency_and_queues_excess() -> None:
    pool = WorkerPool(max_workers=2)
    active = 0
    peak = 0
    lock = threading.Lock()

    def task(value: int) -> int:
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.02)
        with lock:
            active -= 1
        return value * 2

    futures = [pool.submit(task, i) for i in range(6)]
    assert [f.result(timeout=5) for f in futures] == [0, 2, 4, 6, 8, 10]
    assert peak <= 2
    pool.shutdown(wait=True)


def test_thread_name_prefix() -> None:
    pool = WorkerPool(max_workers=1, thread_name_prefix="ingest")
    name = pool.submit(lambda: threading.current_thread().name).result(timeout=5)
    assert name.startswith("ingest")
    pool.shutdown()


def test_shutdown_then_submit_creates_new_executor() -> None:
    pool = WorkerPool(max_workers=1)
    assert pool.submit(lambda: 1).result(timeout=5) == 1
    pool.shutdown(wait=True)
    assert pool.submit(lambda: 2).result(timeout=5) == 2
    pool.shutdown(wait=True)


def test_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError):
        WorkerPool(max_workers=0)
