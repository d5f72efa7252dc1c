"""
Unit tests for the reader/writer lock.
"""

import threading
import time

import pytest

from sentinel_agent.system import ReadWriteLock


@pytest.mark.unit
class TestReadWriteLock:
    """Test cases for ReadWriteLock."""

    def test_readers_share_the_lock(self):
        """Test several readers may hold the lock at once."""
        lock = ReadWriteLock()
        inside = threading.Barrier(3, timeout=5)

        def reader():
            with lock.read_locked():
                inside.wait()

        threads = [threading.Thread(target=reader) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)
        assert not any(t.is_alive() for t in threads)

    def test_writer_excludes_readers(self):
        """Test a reader waits while a writer holds the lock."""
        lock = ReadWriteLock()
        events = []
        lock.acquire_write()

        def reader():
            with lock.read_locked():
                events.append("read")

        t = threading.Thread(target=reader)
        t.start()
        time.sleep(0.05)
        events.append("write-done")
        lock.release_write()
        t.join(timeout=5)

        assert events == ["write-done", "read"]

    def test_waiting_writer_blocks_new_readers(self):
        """Test writer preference: new readers queue behind a waiting writer."""
        lock = ReadWriteLock()
        events = []
        lock.acquire_read()

        def writer():
            with lock.write_locked():
                events.append("write")

        def late_reader():
            with lock.read_locked():
                events.append("late-read")

        w = threading.Thread(target=writer)
        w.start()
        time.sleep(0.05)
        r = threading.Thread(target=late_reader)
        r.start()
        time.sleep(0.05)
        assert events == []

        lock.release_read()
        w.join(timeout=5)
        r.join(timeout=5)
        assert events == ["write", "late-read"]

    def test_unbalanced_release(self):
        """Test releasing without acquiring raises."""
        lock = ReadWriteLock()
        with pytest.raises(RuntimeError):
            lock.release_read()
        with pytest.raises(RuntimeError):
            lock.release_write()
