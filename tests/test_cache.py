"""Unit tests for paceline.cache (pytest)."""

import os
import shutil
import tempfile
import time
from pathlib import Path
from unittest.mock import patch

import pytest

from paceline.cache import FileCache, is_stale, read_json, try_lock, unlock


class TestFileCache:
    def setup_method(self):
        self.tmp = Path(tempfile.mkdtemp())
        self.store = FileCache()

    def teardown_method(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def test_atomic_write_replaces(self):
        p = self.tmp / "sub" / "f.json"
        self.store.atomic_write(p, b"one")
        self.store.atomic_write(p, b"two")
        assert p.read_bytes() == b"two"
        assert [x.name for x in p.parent.iterdir()] == ["f.json"]

    def test_atomic_write_cleans_temp_on_failure(self):
        p = self.tmp / "f.json"
        with patch("paceline.cache.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                self.store.atomic_write(p, b"x")
        assert list(self.tmp.iterdir()) == []

    def test_read_if_fresh(self):
        p = self.tmp / "f"
        p.write_bytes(b"data")
        assert self.store.read_if_fresh(p, 60) == (b"data", True)
        old = time.time() - 120
        os.utime(p, (old, old))
        assert self.store.read_if_fresh(p, 60) == (None, False)

    def test_read_if_fresh_missing(self):
        assert self.store.read_if_fresh(self.tmp / "nope", 60) == (None, False)

    def test_read_missing_raises(self):
        with pytest.raises(FileNotFoundError):
            self.store.read(self.tmp / "nope")

    def test_clean_old_keeps_current(self):
        for d in ("2026-01-01", "2026-01-02", "2026-01-03"):
            (self.tmp / f"claude_daily_cost_{d}.txt").write_text("x:1")
        (self.tmp / "other.txt").write_text("")
        self.store.clean_old(str(self.tmp), "claude_daily_cost_*.txt", "claude_daily_cost_2026-01-03.txt")
        assert sorted(p.name for p in self.tmp.iterdir()) == ["claude_daily_cost_2026-01-03.txt", "other.txt"]


class TestHelpers:
    def setup_method(self):
        self.tmp = Path(tempfile.mkdtemp())

    def teardown_method(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def test_is_stale(self):
        p = self.tmp / "f"
        assert is_stale(p, 10)
        p.write_text("x")
        assert not is_stale(p, 10)

    def test_read_json(self):
        p = self.tmp / "f.json"
        p.write_text('{"a": 1}')
        assert read_json(FileCache(), p) == {"a": 1}
        p.write_text("{bad")
        assert read_json(FileCache(), p) is None
        assert read_json(FileCache(), self.tmp / "missing") is None

    def test_lock_exclusive(self):
        lk = self.tmp / "x.lock"
        fd = try_lock(lk)
        assert fd is not None
        assert try_lock(lk) is None
        unlock(fd, lk)
        assert not lk.exists()
        fd2 = try_lock(lk)
        assert fd2 is not None
        unlock(fd2, lk)
