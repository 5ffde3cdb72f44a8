"""OAuth rate-limit data: load with cache fallback, render 5h / burn / 7d sections."""

import json
import logging
import math
import os
from dataclasses import dataclass

from . import render
from .burnrate import calculate_burn_rate, load_burn_rate, merge_local_global
from .errors import APIError, RateLimitUnavailable
from .normalize import is_non_baseline, normalize_burn_rate, normalize_pace
from .pace import calculate_pace
from .platform import parse_iso
from .types import RateLimitData

log = logging.getLogger(__name__)

CACHE_NAME = "claude_rate_limit_cache.json"


@dataclass
class RateSections:
    five_hour: str
    burn: str
    seven_day: str


def cache_path(cfg):
    return os.path.join(cfg.cache_dir, CACHE_NAME)


def parse_response(resp):
    """Usage API dict -> RateLimitData. Missing windows read as 0% with no reset."""
    def window(key):
        w = resp.get(key)
        if not isinstance(w, dict):
            w = {}
        try:
            pct = float(w.get("utilization") or 0)
        except (TypeError, ValueError):
            pct = 0.0
        return pct, parse_iso(w.get("resets_at"))

    h5p, h5r = window("five_hour")
    w7p, w7r = window("seven_day")
    return RateLimitData(five_hour_percent=h5p, five_hour_reset=h5r,
                         seven_day_percent=w7p, seven_day_reset=w7r)


def _decode(raw):
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def load(creds, cfg, store, api):
    """Fresh cache, else API, else stale cache (flagged from_cache)."""
    path = cache_path(cfg)

    raw, fresh = store.read_if_fresh(path, cfg.rate_cache_ttl)
    if fresh:
        resp = _decode(raw)
        if resp is not None:
            return parse_response(resp)

    if not creds.has_oauth:
        raise RateLimitUnavailable("no OAuth credentials")

    try:
        resp = api.fetch_rate_limits(creds.oauth_token)
    except APIError as e:
        log.debug("rate limit fetch failed: %s", e)
        try:
            stale = _decode(store.read(path))
        except OSError:
            stale = None
        if stale is None:
            raise RateLimitUnavailable(str(e)) from e
        data = parse_response(stale)
        data.from_cache = True
        return data

    try:
        store.atomic_write(path, json.dumps(resp).encode())
    except OSError as e:
        log.debug("rate limit cache write failed: %s", e)
    return parse_response(resp)

# ═══════════════════════ SECTIONS ═══════════════════════

def render_sections(inp, creds, cfg, plat, store, api, tier, now=None):
    try:
        data = load(creds, cfg, store, api)
    except RateLimitUnavailable:
        return RateSections(
            five_hour="5h: " + render.dim("--"),
            burn="🔥 " + render.dim("--"),
            seven_day="7d: " + render.dim("--"),
        )

    pace = calculate_pace(data, cfg, plat, now)
    burn = merge_local_global(calculate_burn_rate(inp), load_burn_rate(cfg, store))

    pace.five_hour_pace, _ = normalize_pace(pace.five_hour_pace, tier, cfg)
    pace.seven_day_pace, _ = normalize_pace(pace.seven_day_pace, tier, cfg)
    approx = cfg.cost_normalize and is_non_baseline(tier)

    return RateSections(
        five_hour=render_five_hour(data, pace, approx),
        burn=render_burn(burn, tier, cfg),
        seven_day=render_seven_day(data, pace, approx),
    )


def display_pct(pct):
    """Utilization rounded half-up and clamped to 0-100 for display."""
    return max(0, min(100, int(math.floor(pct + 0.5))))


def _pace_str(pace, approx):
    return " " + ("≈" if approx else "") + render.pace_colorize(pace)


def render_five_hour(data, pace, approx):
    pct = display_pct(data.five_hour_percent)
    out = render.cpct(pct, f"{pct}%")
    if pace.five_hour_pace > 0:
        out += _pace_str(pace.five_hour_pace, approx)
    if pace.hitting_limit:
        out += " " + render.color("⚠️", render.RD)
    if pace.reset_info:
        out += " " + render.reset_countdown(pace.reset_info)
    return f"5h: {render.bar(pct)} {out}"


def render_burn(burn, tier, cfg):
    local_tpm = int(burn.local_tpm)
    bolt = " " + render.color("⚡", render.YL) if burn.is_high_activity else ""
    if local_tpm > 0:
        tpm, approx = normalize_burn_rate(float(local_tpm), tier, cfg)
        prefix = "≈" if approx else ""
        return f"🔥 {prefix}{render.color(render.fmt_tok_f(int(tpm)), render.MG)} {render.dim('t/m')}{bolt}"
    return "🔥 " + render.dim("--") + bolt


def render_seven_day(data, pace, approx):
    pct = display_pct(data.seven_day_percent)
    out = render.cpct(pct, f"{pct}%")
    if pace.seven_day_pace > 0:
        out += _pace_str(pace.seven_day_pace, approx)
    if pace.seven_day_pace > 1.0:
        out += " " + render.color("⚠️", render.RD)
    if pace.seven_day_reset_fmt:
        out += " " + render.arrow(pace.seven_day_reset_fmt)
    return f"7d: {render.bar(pct)} {out}"


def render_short(creds, cfg, store, api):
    """'5h: NN%' for the empty-input fallback, '' when unavailable."""
    try:
        data = load(creds, cfg, store, api)
    except RateLimitUnavailable:
        return ""
    pct = display_pct(data.five_hour_percent)
    return "5h: " + render.cpct(pct, f"{pct}%")
