"""Newer-release notice. Never blocks: a cache miss forks a fetch for the next call."""

import logging
import os
import signal
import time
from pathlib import Path

from . import render
from .errors import APIError

log = logging.getLogger(__name__)

CACHE_FILE = "claude_statusline_update.txt"
CACHE_TTL = 86_400  # 24h
REPO = "jobrad-gmbh/devex-claude-marketplace"


def greater_than(v1, v2):
    """Semantic version compare, 'v' prefix ignored, non-numeric parts read as 0."""
    p1 = v1.removeprefix("v").split(".")
    p2 = v2.removeprefix("v").split(".")
    if p1 == p2:
        return False
    for i in range(max(len(p1), len(p2))):
        n1 = _num(p1[i]) if i < len(p1) else 0
        n2 = _num(p2[i]) if i < len(p2) else 0
        if n1 != n2:
            return n1 > n2
    return False


def _num(s):
    return int(s) if s.isdigit() else 0


def fetch_latest(path, store, api):
    """Look up the latest release and write it to path (no 'v' prefix)."""
    try:
        latest = api.fetch_latest_release(REPO)
    except APIError as e:
        log.debug("release check failed: %s", e)
        return
    store.write(path, latest.removeprefix("v").encode())


def check(current, cache_dir, store, api):
    """(has_update, latest). A stale cache triggers a background refresh."""
    if not current or current == "dev":
        return False, ""

    path = os.path.join(cache_dir, CACHE_FILE)
    raw, fresh = store.read_if_fresh(path, CACHE_TTL)
    if fresh:
        latest = raw.decode(errors="replace").strip()
        if latest and greater_than(latest, current):
            return True, latest
        return False, ""

    _bg_refresh(path, lambda: fetch_latest(path, store, api))
    return False, ""


def _bg_refresh(path, fn):
    """Background refresh using fork. Child refreshes and exits."""
    lk = Path(f"{path}.bglock")
    # Skip if background refresh already running
    if lk.exists():
        try:
            if time.time() - lk.stat().st_mtime < 60:
                return
        except OSError:
            pass

    try:
        lk.write_text(str(os.getpid()))
    except OSError:
        return

    pid = os.fork()
    if pid == 0:
        # Child process with hard timeout
        try:
            os.setsid()
            signal.alarm(10)
            fn()
        except Exception:
            pass
        finally:
            lk.unlink(missing_ok=True)
            os._exit(0)
    # Parent continues immediately


def render_notice(current, cache_dir, store, api):
    has_update, _ = check(current, cache_dir, store, api)
    return " " + render.color("[Update]", render.YL) if has_update else ""
