"""File-based cache store shared by the statusline and the daemon.

Readers may race writers at any time, so anything another process reads is
written via ``atomic_write``: temp file in the same directory, fsync, then
``os.replace`` over the destination.
"""

import fcntl
import glob
import json
import os
import time
from pathlib import Path


class FileCache:
    def atomic_write(self, path, data):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(f"{path.name}.tmp.{os.getpid()}")
        try:
            with open(tmp, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise

    def read_if_fresh(self, path, ttl):
        """(bytes, True) if modified within ttl seconds, else (None, False)."""
        if is_stale(Path(path), ttl):
            return None, False
        try:
            return Path(path).read_bytes(), True
        except OSError:
            return None, False

    def read(self, path):
        return Path(path).read_bytes()

    def write(self, path, data):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    def mtime(self, path):
        return Path(path).stat().st_mtime

    def clean_old(self, directory, pattern, keep):
        """Remove files matching pattern in directory, except the one named keep."""
        for m in glob.glob(os.path.join(directory, pattern)):
            if os.path.basename(m) == keep:
                continue
            try:
                os.remove(m)
            except OSError:
                pass

# ═══════════════════════ HELPERS ═══════════════════════

def is_stale(path, ttl):
    if not path.exists():
        return True
    return time.time() - path.stat().st_mtime > ttl

def read_json(store, path):
    """Decode JSON from the store. None on missing file or bad JSON."""
    try:
        raw = store.read(path)
    except OSError:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None

def try_lock(path):
    """Non-blocking exclusive lock. Returns fd or None."""
    try:
        fd = os.open(str(path), os.O_CREAT | os.O_RDWR, 0o644)
    except OSError:
        return None
    try:
        fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        return fd
    except (BlockingIOError, OSError):
        os.close(fd)
        return None

def unlock(fd, path):
    try:
        fcntl.flock(fd, fcntl.LOCK_UN)
        os.close(fd)
        Path(path).unlink(missing_ok=True)
    except OSError:
        pass
