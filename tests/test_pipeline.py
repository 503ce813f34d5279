"""
Tests for the worker pool, the aggregator and the complete pipeline.
"""

import os
import queue
import threading
import time

import pytest

from findimagedupes.cancellation import CancellationToken, OperationCancelled
from findimagedupes.database import FingerprintStore
from findimagedupes.models import Job, Result
from findimagedupes.scanner import (
    Aggregator,
    FingerprintError,
    PipelineStats,
    WorkerPool,
    find_duplicate_groups,
    run_pipeline,
)


FINGERPRINTS = {
    "a.jpg": 0x10,
    "b.jpg": 0x10,
    "c.jpg": 0x11,
    "d.jpg": 0xFF00,
    "e.jpg": 0x10,
}


@pytest.fixture
def photos(temp_dir, make_files):
    make_files("a.jpg", "b.jpg", "c.jpg", "d.jpg", "e.jpg", "readme.txt", "broken.jpg",
               base=temp_dir / "photos")
    return str(temp_dir / "photos")


class TestPipelineStats:
    """Test PipelineStats counters."""

    def test_hit_rate(self):
        stats = PipelineStats(cache_hits=3, cache_misses=1)
        assert stats.hit_rate == 75.0

    def test_hit_rate_no_lookups(self):
        assert PipelineStats().hit_rate == 0.0

    def test_increment(self):
        stats = PipelineStats()
        stats.increment('failures')
        stats.increment('failures')
        assert stats.failures == 2


class TestAggregator:
    """Test the result consumer."""

    def test_groups_and_deduplicates(self):
        results = queue.Queue()
        aggregator = Aggregator(results)
        aggregator.start()
        for result in (Result(1, "a"), Result(1, "b"), Result(2, "c"), Result(1, "a")):
            results.put(result)

        assert aggregator.finish() == {1: ["a", "b"], 2: ["c"]}
        assert aggregator.received == 4


class TestWorkerPool:
    """Test WorkerPool job resolution."""

    def _run(self, job_list, factory, **kwargs):
        results = queue.Queue()
        aggregator = Aggregator(results)
        pool = WorkerPool(results, oracle_factory=factory, **kwargs)
        aggregator.start()
        pool.start()
        for job in job_list:
            pool.submit(job)
        pool.close()
        return aggregator.finish(), pool

    def test_invalid_jobs(self):
        with pytest.raises(ValueError):
            WorkerPool(queue.Queue(), jobs=0)

    def test_one_oracle_per_worker(self, photos, oracle_factory):
        factory = oracle_factory(FINGERPRINTS)
        jobs = [Job(os.path.join(photos, n), 1) for n in ("a.jpg", "b.jpg")]

        self._run(jobs, factory, jobs=3)

        assert factory.created == 3
        assert factory.closed == 3

    def test_skips_non_images_and_failures(self, photos, oracle_factory):
        factory = oracle_factory(FINGERPRINTS)
        jobs = [Job(os.path.join(photos, n), 1) for n in ("a.jpg", "readme.txt", "broken.jpg")]

        groups, pool = self._run(jobs, factory, jobs=2)

        assert groups == {0x10: [os.path.join(photos, "a.jpg")]}
        assert pool.stats.not_images == 1
        assert pool.stats.failures == 1
        assert os.path.join(photos, "readme.txt") not in factory.computed

    def test_zero_fingerprint_dropped(self, photos, oracle_factory):
        factory = oracle_factory({"a.jpg": 0})
        groups, pool = self._run([Job(os.path.join(photos, "a.jpg"), 1)], factory, jobs=1)

        assert groups == {}
        assert pool.stats.failures == 1

    def test_backpressure(self, photos, oracle_factory):
        """Test submit blocks while the worker and the queue are full."""
        gate = threading.Event()
        factory = oracle_factory(FINGERPRINTS, on_compute=lambda path, n: gate.wait(5))
        results = queue.Queue()
        aggregator = Aggregator(results)
        pool = WorkerPool(results, jobs=1, oracle_factory=factory, queue_capacity=1)
        aggregator.start()
        pool.start()

        jobs = [Job(os.path.join(photos, n), 1) for n in ("a.jpg", "c.jpg", "d.jpg")]
        submitter = threading.Thread(target=lambda: [pool.submit(j) for j in jobs])
        submitter.start()

        time.sleep(0.5)
        assert submitter.is_alive()
        assert pool.stats.dispatched < 3

        gate.set()
        submitter.join(5)
        pool.close()
        groups = aggregator.finish()

        assert pool.stats.dispatched == 3
        assert sum(len(paths) for paths in groups.values()) == 3

    def test_unexpected_error_is_a_failure(self, photos, oracle_factory):
        """Test an unexpected exception skips the file and the worker carries on."""
        def on_compute(path, count):
            if path.endswith("c.jpg"):
                raise RuntimeError("decoder crashed")

        factory = oracle_factory(FINGERPRINTS, on_compute=on_compute)
        jobs = [Job(os.path.join(photos, n), 1) for n in ("a.jpg", "c.jpg", "b.jpg")]

        groups, pool = self._run(jobs, factory, jobs=1)

        assert groups == {0x10: [os.path.join(photos, "a.jpg"), os.path.join(photos, "b.jpg")]}
        assert pool.stats.failures == 1
        assert factory.closed == 1

    def test_oracle_startup_failure_cancels(self):
        token = CancellationToken()

        def factory():
            raise FingerprintError("cannot initialize libmagic")

        pool = WorkerPool(queue.Queue(), jobs=2, token=token, oracle_factory=factory)
        pool.start()
        pool.close()

        assert token.cancelled
        assert isinstance(pool.startup_error, FingerprintError)


class TestRunPipeline:
    """Test run_pipeline end to end with a fake oracle."""

    def test_groups(self, photos, oracle_factory):
        factory = oracle_factory(FINGERPRINTS)
        groups, stats = run_pipeline([photos], jobs=4, oracle_factory=factory)

        assert sorted(groups[0x10]) == [
            os.path.join(photos, n) for n in ("a.jpg", "b.jpg", "e.jpg")
        ]
        assert set(groups) == {0x10, 0x11, 0xFF00}
        assert stats.dispatched == 7
        assert stats.not_images == 1
        assert stats.failures == 1

    def test_deterministic_across_worker_counts(self, photos, oracle_factory):
        outputs = []
        for jobs in (1, 2, 8):
            groups, _ = run_pipeline([photos], jobs=jobs,
                                     oracle_factory=oracle_factory(FINGERPRINTS))
            outputs.append(find_duplicate_groups(groups, threshold=1))

        assert outputs[0] == outputs[1] == outputs[2]
        assert len(outputs[0]) == 1
        assert len(outputs[0][0].paths) == 4

    def test_second_run_uses_store(self, photos, temp_store_db, oracle_factory):
        """Test unchanged files are never fingerprinted twice."""
        with FingerprintStore(temp_store_db) as store:
            first = oracle_factory(FINGERPRINTS)
            groups1, _ = run_pipeline([photos], jobs=3, store=store, oracle_factory=first)

            second = oracle_factory(FINGERPRINTS)
            groups2, stats = run_pipeline([photos], jobs=3, store=store, oracle_factory=second)

        assert len(first.computed) == 6
        # Only the files that never produced a fingerprint are looked at again
        assert sorted(os.path.basename(p) for p in second.classified) == ["broken.jpg", "readme.txt"]
        assert second.computed == [os.path.join(photos, "broken.jpg")]
        assert stats.cache_hits == 5
        assert {h: sorted(p) for h, p in groups1.items()} == {h: sorted(p) for h, p in groups2.items()}

    def test_cached_run_needs_no_oracle(self, temp_dir, make_files, temp_store_db,
                                        oracle_factory):
        make_files("a.jpg", "b.jpg", "c.jpg", base=temp_dir / "images")
        root = str(temp_dir / "images")

        with FingerprintStore(temp_store_db) as store:
            first = oracle_factory(FINGERPRINTS)
            groups1, _ = run_pipeline([root], jobs=2, store=store, oracle_factory=first)
            second = oracle_factory(FINGERPRINTS)
            groups2, _ = run_pipeline([root], jobs=2, store=store, oracle_factory=second)

        assert first.calls == 6
        assert second.calls == 0
        assert find_duplicate_groups(groups1, 1) == find_duplicate_groups(groups2, 1)

    def test_store_keys_are_absolute(self, temp_dir, make_files, temp_store_db, oracle_factory,
                                     monkeypatch):
        make_files("rel/a.jpg")
        monkeypatch.chdir(temp_dir)

        with FingerprintStore(temp_store_db) as store:
            groups, _ = run_pipeline(["rel"], store=store,
                                     oracle_factory=oracle_factory(FINGERPRINTS))
            entries = store.entries()

        assert groups == {0x10: [os.path.join("rel", "a.jpg")]}
        assert [e.path for e in entries] == [os.path.join(os.getcwd(), "rel", "a.jpg")]

    def test_modified_file_recomputed(self, photos, temp_store_db, oracle_factory):
        path = os.path.join(photos, "a.jpg")
        with FingerprintStore(temp_store_db) as store:
            run_pipeline([path], store=store, oracle_factory=oracle_factory(FINGERPRINTS))

            st = os.stat(path)
            os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns + 1_000_000_000))

            factory = oracle_factory(FINGERPRINTS)
            run_pipeline([path], store=store, oracle_factory=factory)

        assert factory.computed == [path]

    def test_check_new_does_not_write(self, photos, temp_store_db, oracle_factory):
        with FingerprintStore(temp_store_db) as store:
            groups, _ = run_pipeline([photos], store=store, check_new_only=True,
                                     oracle_factory=oracle_factory(FINGERPRINTS))
            assert store.entries() == []
        assert groups

    def test_cancellation(self, photos, temp_store_db, oracle_factory):
        """Test a cancelled run raises and stops writing to the store."""
        token = CancellationToken()

        def on_compute(path, count):
            if count == 3:
                token.cancel()

        with FingerprintStore(temp_store_db) as store:
            with pytest.raises(OperationCancelled):
                run_pipeline([photos], jobs=1, store=store, token=token,
                             oracle_factory=oracle_factory(FINGERPRINTS, on_compute))
            assert len(store.entries()) == 2

    def test_undecodable_names_do_not_stall(self, temp_dir, make_files, temp_store_db,
                                            oracle_factory):
        """Test file names that are not valid UTF-8 are fingerprinted without the store."""
        odd = [os.fsdecode(b"\xff%d.jpg" % i) for i in range(1, 4)]
        try:
            make_files(*odd, base=temp_dir / "odd")
        except OSError:
            pytest.skip("filesystem rejects non-UTF-8 names")
        make_files("a.jpg", "b.jpg", base=temp_dir / "odd")
        root = str(temp_dir / "odd")
        fingerprints = dict(FINGERPRINTS, **{name: 0xFF00 for name in odd})
        outcome = {}

        def scan():
            with FingerprintStore(temp_store_db) as store:
                outcome['groups'], outcome['stats'] = run_pipeline(
                    [root], jobs=1, store=store, oracle_factory=oracle_factory(fingerprints))
                outcome['entries'] = store.entries()

        runner = threading.Thread(target=scan, daemon=True)
        runner.start()
        runner.join(10)

        assert not runner.is_alive()
        groups = outcome['groups']
        assert sorted(groups[0x10]) == [os.path.join(root, n) for n in ("a.jpg", "b.jpg")]
        assert sorted(groups[0xFF00]) == sorted(os.path.join(root, n) for n in odd)
        assert outcome['stats'].failures == 0
        assert [os.path.basename(e.path) for e in outcome['entries']] == ["a.jpg", "b.jpg"]

    def test_oracle_startup_failure(self, photos):
        def factory():
            raise FingerprintError("cannot initialize libmagic")

        with pytest.raises(FingerprintError):
            run_pipeline([photos], jobs=2, oracle_factory=factory)

    def test_multiple_roots(self, temp_dir, make_files, oracle_factory):
        first, second = make_files("one/a.jpg", "two/b.jpg")
        groups, _ = run_pipeline([str(temp_dir / "one"), str(temp_dir / "two")],
                                 oracle_factory=oracle_factory(FINGERPRINTS))
        assert sorted(groups[0x10]) == [first, second]
