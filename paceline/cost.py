"""Session and daily cost accounting for API-key users.

Claude Code reports a cumulative ``total_cost_usd`` per session. Today's
total is rebuilt on every call as the sum of a per-day tracker file
(``session_id:amount`` lines), never kept as a running counter.

Stable session ids use delta accounting: the last cumulative value is kept
per session and only the increase is added to the tracker. A decrease means
the upstream counter restarted, so the whole new value counts as the delta.
Unstable ids cannot be matched across calls, so their tracker entry is
simply replaced with the current cumulative cost.
"""

import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime

from . import render
from .burnrate import calculate_burn_rate
from .normalize import normalize_burn_rate, normalize_cost_per_hour
from .types import CostDisplay, SessionConfidence, SessionIdentity

log = logging.getLogger(__name__)

TRACKER_PREFIX = "claude_daily_cost_"
MIN_DURATION_MS = 60_000

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


@dataclass
class CostSections:
    session: str  # "💰 $0.50"
    daily: str    # "📅 $3.25"
    burn: str     # "🔥 1.2K t/m $1.20/h"


def tracker_path(cache_dir, day):
    return os.path.join(cache_dir, f"{TRACKER_PREFIX}{day}.txt")


def resolve_session(plat):
    ident = plat.get_stable_session_id()
    return SessionIdentity(_UNSAFE.sub("_", ident.id) or "unknown", ident.confidence)


def track(inp, cfg, plat, store, now=None):
    """Record this call's cost and return session/day totals."""
    ident = resolve_session(plat)
    cost = inp.total_cost_usd
    day = (now or datetime.now()).strftime("%Y-%m-%d")
    tracker = tracker_path(cfg.cache_dir, day)

    if ident.confidence is SessionConfidence.STABLE:
        marker = os.path.join(cfg.cache_dir, f"claude_session_total_{ident.id}.txt")
        delta_accounting(cost, ident.id, marker, tracker, store)
    elif ident.confidence is SessionConfidence.UNSTABLE:
        replace_accounting(cost, ident.id, tracker, store)
    else:
        raise ValueError(f"unknown session confidence {ident.confidence!r}")

    cph = 0.0
    if inp.total_duration_ms > MIN_DURATION_MS:
        cph = cost / (inp.total_duration_ms / 3_600_000)

    return CostDisplay(
        session_cost=cost,
        daily_cost=sum_tracker(tracker, store),
        cost_per_hour=cph,
        session_id=ident.id,
    )


def delta_accounting(cost, session_id, marker_path, tracker, store):
    """Add cost minus the last known cumulative value. Returns the recorded delta."""
    last = 0.0
    try:
        last = float(store.read(marker_path).decode().strip())
    except (OSError, ValueError):
        pass

    delta = cost - last
    if delta < 0:
        delta = cost  # counter restarted under the same id

    # Overwritten every call, a lost write self-corrects next time
    store.write(marker_path, f"{cost:.6f}".encode())
    update_tracker(tracker, session_id, delta, store, accumulate=True)
    return delta


def replace_accounting(cost, session_id, tracker, store):
    update_tracker(tracker, session_id, cost, store, accumulate=False)
    return cost

# ═══════════════════════ TRACKER FILE ═══════════════════════

def read_tracker(path, store):
    """{session_id: amount}. Missing file is empty, malformed lines are skipped."""
    entries = {}
    try:
        raw = store.read(path).decode(errors="replace")
    except OSError:
        return entries
    for line in raw.splitlines():
        key, sep, val = line.partition(":")
        if not sep or not key.strip():
            continue
        try:
            entries[key.strip()] = float(val.strip())
        except ValueError:
            continue
    return entries


def write_tracker(path, entries, store):
    body = "\n".join(f"{k}:{v:.6f}" for k, v in sorted(entries.items()))
    store.atomic_write(path, body.encode())


def update_tracker(path, session_id, value, store, accumulate):
    entries = read_tracker(path, store)
    if accumulate:
        entries[session_id] = entries.get(session_id, 0.0) + value
    else:
        entries[session_id] = value
    try:
        write_tracker(path, entries, store)
    except OSError as e:
        log.debug("tracker write failed for %s: %s", path, e)


def sum_tracker(path, store):
    return sum(read_tracker(path, store).values())

# ═══════════════════════ SECTIONS ═══════════════════════

def render_sections(inp, cfg, plat, store, tier, now=None):
    display = track(inp, cfg, plat, store, now)

    local_tpm = int(calculate_burn_rate(inp).local_tpm)

    session = "💰 " + render.color(f"${display.session_cost:.2f}", render.cost_color(display.session_cost, 0.50, 2.00))
    daily = "📅 " + render.color(f"${display.daily_cost:.2f}", render.cost_color(display.daily_cost, 5.00, 20.00))

    if local_tpm > 0:
        tpm, approx = normalize_burn_rate(float(local_tpm), tier, cfg)
        cph, _ = normalize_cost_per_hour(display.cost_per_hour, tier, cfg)
        prefix = "≈" if approx else ""
        burn = (f"🔥 {prefix}{render.color(render.fmt_tok_f(int(tpm)), render.MG)} {render.dim('t/m')} "
                f"{prefix}{render.color(f'${cph:.2f}', render.cost_color(cph, 1.00, 5.00))}{render.dim('/h')}")
    else:
        burn = "🔥 " + render.dim("--")

    return CostSections(session=session, daily=daily, burn=burn)
