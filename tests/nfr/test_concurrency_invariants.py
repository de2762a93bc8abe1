"""
NFR: concurrent writers against the in-memory backend

Goal:
    Hammer one code from many threads and check that storage never loses an update:
      - N racing saves of the same code: exactly one wins, the rest get CodeExistsError
      - M racing record_click calls: M clicks and M unique IPs afterwards

How to run:
    pytest tests/nfr/test_concurrency_invariants.py -vv

Notes:
    - Runs by default (fast, no network). The barrier lines threads up so the
      critical sections really overlap.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest

from shortlink_platform.model import Click, Link
from shortlink_platform.storage.base import CodeExistsError
from shortlink_platform.storage.storage import Storage

pytestmark = pytest.mark.nfr

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)
WORKERS = 16


def _run_together(n, fn):
    barrier = threading.Barrier(min(n, WORKERS))

    def task(i):
        barrier.wait()
        return fn(i)

    with ThreadPoolExecutor(max_workers=min(n, WORKERS)) as ex:
        return list(ex.map(task, range(n)))


def test_racing_saves_single_winner():
    storage = Storage()

    def attempt(i):
        try:
            storage.save(Link(code="race", original_url=f"https://example.com/{i}", created_at=T0))
            return i
        except CodeExistsError:
            return None

    results = _run_together(WORKERS, attempt)
    winners = [r for r in results if r is not None]
    assert len(winners) == 1
    assert storage.get("race").original_url == f"https://example.com/{winners[0]}"


def test_racing_clicks_are_all_recorded():
    storage = Storage()
    storage.save(Link(code="hot", original_url="https://example.com", created_at=T0))
    rounds = 50

    def click_many(i):
        for r in range(rounds):
            storage.record_click("hot", Click(timestamp=T0, ip=f"10.0.{i}.{r}", country="US"))

    _run_together(WORKERS, click_many)

    link = storage.get("hot")
    assert link.total_clicks == WORKERS * rounds
    assert link.unique_visitors == WORKERS * rounds
