"""
Multi-threaded count tests.

Checks that the threadsafe tier keeps counts exact under contention and
that destruction happens once even when threads race to release the last
reference, or race an upgrade against the final release.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from sharedref import create_shared, from_shared

THREADS = 8


@pytest.mark.concurrency
class TestThreadsafeCounts:
    """Counts under concurrent clone/reset."""

    def test_concurrent_clone_and_release(self, recorder):
        """Net count returns to 1 after many concurrent clone/reset pairs."""
        root = create_shared("v", deleter=recorder, threadsafe=True)

        def work(_):
            local = root.clone()
            for _ in range(200):
                extra = local.clone()
                extra.reset()
            local.reset()

        with ThreadPoolExecutor(max_workers=THREADS) as executor:
            list(executor.map(work, range(THREADS * 4)))

        assert root.count() == 1
        assert recorder.total == 0
        root.reset()
        assert recorder.total == 1

    def test_race_to_release_last_reference(self, recorder, lifecycle):
        """Threads releasing the final clones destroy the payload once."""
        for _ in range(50):
            value = object()
            root = create_shared(value, deleter=recorder, threadsafe=True)
            clones = [root.clone() for _ in range(THREADS)]
            root.reset()
            barrier = threading.Barrier(THREADS)

            def release(handle, barrier=barrier):
                barrier.wait()
                handle.reset()

            threads = [threading.Thread(target=release, args=(c,)) for c in clones]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

            assert recorder.times(value) == 1

        lifecycle.assert_balanced()

    def test_upgrade_races_final_release(self, recorder, lifecycle):
        """An upgrade either wins (valid handle) or sees None; never a dead payload."""
        outcomes = {"upgraded": 0, "expired": 0}

        for _ in range(200):
            value = object()
            owner = create_shared(value, deleter=recorder, threadsafe=True)
            weak = from_shared(owner)
            barrier = threading.Barrier(2)
            seen = []
            errors = []

            def release(owner=owner, barrier=barrier, errors=errors):
                barrier.wait()
                try:
                    owner.reset()
                except Exception as exc:
                    errors.append(exc)

            def upgrade(weak=weak, barrier=barrier, seen=seen, value=value, errors=errors):
                barrier.wait()
                try:
                    strong = weak.upgrade()
                    if strong is None:
                        seen.append(("expired", None, None))
                        return
                    payload = strong.access()
                    destroyed_while_held = recorder.times(value)
                    strong.reset()
                    seen.append(("upgraded", payload, destroyed_while_held))
                except Exception as exc:
                    errors.append(exc)

            t1 = threading.Thread(target=release)
            t2 = threading.Thread(target=upgrade)
            t1.start()
            t2.start()
            t1.join()
            t2.join()

            assert errors == []
            assert len(seen) == 1
            outcome, payload, destroyed_while_held = seen[0]
            if outcome == "upgraded":
                assert payload is value
                assert destroyed_while_held == 0
            outcomes[outcome] += 1
            assert recorder.times(value) == 1
            assert weak.upgrade() is None
            weak.reset()

        assert sum(outcomes.values()) == 200
        lifecycle.assert_balanced()

    def test_concurrent_weak_observers(self, lifecycle):
        """Weak clones released from many threads reclaim the block once."""
        owner = create_shared("v", threadsafe=True)
        weaks = [from_shared(owner) for _ in range(THREADS * 4)]
        owner.reset()

        with ThreadPoolExecutor(max_workers=THREADS) as executor:
            list(executor.map(lambda w: w.reset(), weaks))

        lifecycle.assert_balanced()


@pytest.mark.slow
@pytest.mark.concurrency
class TestStress:
    """High-volume churn."""

    def test_churn_balanced(self, lifecycle):
        """Many short-lived blocks across threads all complete their lifecycle."""

        def work(i):
            for j in range(500):
                with create_shared((i, j)) as s:
                    w = s.downgrade()
                    again = w.upgrade()
                    again.reset()
                    w.reset()

        with ThreadPoolExecutor(max_workers=THREADS) as executor:
            list(executor.map(work, range(THREADS)))

        lifecycle.assert_balanced()
