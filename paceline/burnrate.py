"""Burn rate (tokens/min): local from the stdin snapshot, global from the daemon."""

import os

from .cache import read_json
from .types import BurnInfo

GLOBAL_BURN_FILE = "claude_global_burn.json"
MIN_DURATION_MS = 60_000  # need at least a minute of data
# Global/local noise slack before flagging activity elsewhere. Tuned for 200K windows.
HIGH_ACTIVITY_SLACK = 5000


def total_tokens(inp):
    """Current context tokens; falls back to cumulative in+out when current_usage is empty."""
    total = inp.input_tokens + inp.cache_creation_input_tokens + inp.cache_read_input_tokens
    if total == 0:
        total = inp.total_input_tokens + inp.total_output_tokens
    return total


def calculate_burn_rate(inp):
    info = BurnInfo()
    if inp.total_duration_ms > MIN_DURATION_MS:
        info.local_tpm = total_tokens(inp) / (inp.total_duration_ms / 60_000)
    return info


def load_burn_rate(cfg, store):
    """Global tokens/min from the daemon's cache file. 0 when missing or invalid."""
    info = BurnInfo()
    data = read_json(store, os.path.join(cfg.cache_dir, GLOBAL_BURN_FILE))
    if isinstance(data, dict):
        try:
            info.global_tpm = float(data.get("tokens_per_min") or 0)
        except (TypeError, ValueError):
            pass
    return info


def merge_local_global(local, global_):
    return BurnInfo(
        local_tpm=local.local_tpm,
        global_tpm=global_.global_tpm,
        is_high_activity=global_.global_tpm > local.local_tpm + HIGH_ACTIVITY_SLACK,
    )
