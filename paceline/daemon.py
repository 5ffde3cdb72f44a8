"""Background daemon: keeps the rate-limit cache warm and estimates global burn rate.

The daemon only sees the 5h utilization percentage, not token counts, so it
converts percentage growth into tokens/min with a fixed 5000 tokens per 1%.
The estimate decays by half on every poll without growth and is smoothed
80/20 towards new samples otherwise.

One instance system-wide (flock on LOCK_FILE). Exits after MAX_IDLE_CHECKS
consecutive polls without a running Claude process.
"""

import json
import logging
import os
import time
from pathlib import Path

from .cache import try_lock, unlock
from .errors import APIError, DaemonRunningError
from .types import BurnState

log = logging.getLogger(__name__)

REFRESH_INTERVAL = 15  # seconds
MAX_IDLE_CHECKS = 4
LOCK_FILE = Path("/tmp/claude_statusline_daemon.lock")
PID_FILE = Path("/tmp/claude_statusline_daemon.pid")
LOG_FILE = Path("/tmp/claude_statusline_daemon.log")
RATE_CACHE_FILE = "claude_rate_limit_cache.json"
BURN_CACHE_FILE = "claude_global_burn.json"
# 1% of the 5h window ≈ 5000 tokens. Tuned for 200K-context models.
TOKENS_PER_PCT = 5000
DECAY = 0.5
SMOOTHING = 0.8  # weight of the new sample

# ═══════════════════════ BURN RATE ═══════════════════════

def transition(prev, current_pct, now):
    """Next BurnState from the previous one and a new (pct, unix time) sample."""
    now = int(now)
    if prev is None or prev.last_time == 0:
        return BurnState(tokens_per_min=0.0, last_pct=current_pct, last_time=now)

    delta_secs = now - prev.last_time
    if delta_secs <= 0:
        # Clock went backwards
        return BurnState(prev.tokens_per_min, current_pct, now)

    delta_pct = current_pct - prev.last_pct
    if delta_pct <= 0:
        # No growth, or the window reset
        return BurnState(prev.tokens_per_min * DECAY, current_pct, now)

    raw = delta_pct / delta_secs * 60 * TOKENS_PER_PCT
    if prev.tokens_per_min > 0:
        tpm = raw * SMOOTHING + prev.tokens_per_min * (1 - SMOOTHING)
    else:
        tpm = raw
    return BurnState(tpm, current_pct, now)


def load_state(store, path):
    try:
        data = json.loads(store.read(path))
    except (OSError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    try:
        return BurnState(
            tokens_per_min=float(data.get("tokens_per_min") or 0),
            last_pct=float(data.get("last_pct") or 0),
            last_time=int(data.get("last_time") or 0),
        )
    except (TypeError, ValueError):
        return None


def save_state(store, path, state):
    # The statusline only reads tokens_per_min
    store.atomic_write(path, json.dumps({
        "tokens_per_min": state.tokens_per_min,
        "last_pct": state.last_pct,
        "last_time": state.last_time,
    }).encode())

# ═══════════════════════ LOOP ═══════════════════════

def poll(cfg, creds, store, api, state, clock=time.time):
    """One active poll: fetch limits, cache them, advance the burn state."""
    if not creds.has_oauth:
        return state
    try:
        resp = api.fetch_rate_limits(creds.oauth_token)
    except APIError as e:
        log.info("Error fetching rate limits: %s", e)
        return state

    cache_dir = cfg.cache_dir
    try:
        store.atomic_write(os.path.join(cache_dir, RATE_CACHE_FILE), json.dumps(resp).encode())
    except OSError as e:
        log.info("Error writing rate limit cache: %s", e)

    five = resp.get("five_hour") or {}
    if not isinstance(five, dict):
        log.info("Unexpected five_hour window: %r", five)
        return state
    try:
        pct = float(five.get("utilization") or 0)
    except (TypeError, ValueError):
        return state
    state = transition(state, pct, clock())
    try:
        save_state(store, os.path.join(cache_dir, BURN_CACHE_FILE), state)
    except OSError as e:
        log.info("Error writing burn state: %s", e)
    return state


def run(cfg, creds, detector, store, api, sleep=time.sleep, clock=time.time):
    """Poll until no Claude process has been seen for MAX_IDLE_CHECKS intervals."""
    fd = try_lock(LOCK_FILE)
    if fd is None:
        raise DaemonRunningError("lock held by another process")
    try:
        PID_FILE.write_text(str(os.getpid()))
    except OSError:
        pass

    try:
        state = load_state(store, os.path.join(cfg.cache_dir, BURN_CACHE_FILE))
        idle = 0
        log.info("Daemon started (pid %d)", os.getpid())
        while True:
            if not detector.has_claude_processes():
                idle += 1
                if idle >= MAX_IDLE_CHECKS:
                    log.info("No Claude processes for %d checks, exiting", idle)
                    return
                sleep(REFRESH_INTERVAL)
                continue
            idle = 0
            state = poll(cfg, creds, store, api, state, clock)
            sleep(REFRESH_INTERVAL)
    finally:
        PID_FILE.unlink(missing_ok=True)
        unlock(fd, LOCK_FILE)


def setup_logging(path=LOG_FILE):
    """Append-only file log for the daemon process."""
    handler = logging.FileHandler(path)
    handler.setFormatter(logging.Formatter("[%(asctime)s] %(message)s", "%Y-%m-%d %H:%M:%S"))
    root = logging.getLogger("paceline")
    root.addHandler(handler)
    root.setLevel(logging.INFO)
    return handler

