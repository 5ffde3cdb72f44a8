"""User configuration: defaults plus an optional TOML file."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)

# ═══════════════════════ DEFAULTS ═══════════════════════

@dataclass
class Config:
    context_warning_threshold: int = 0   # 0 = disabled, 1-100 = warn at this %
    rate_cache_ttl: int = 15             # seconds
    work_days_per_week: int = 5          # 1-7, scales 7-day pace
    cache_dir: str = "/tmp"
    version: str = "dev"
    cost_normalize: bool = True
    cost_weight_opus: float = 5.0
    cost_weight_sonnet: float = 1.0      # baseline
    cost_weight_haiku: float = 0.25

# ═══════════════════════ TOML CONFIG ═══════════════════════

def config_paths():
    """Candidate config files, highest priority first."""
    xdg = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
    return [
        Path(xdg) / "paceline" / "config.toml",
        Path("~/.claude/paceline.toml").expanduser(),
    ]

def _int_in(v, lo, hi):
    return isinstance(v, int) and not isinstance(v, bool) and lo <= v <= hi

def _positive(v):
    return isinstance(v, (int, float)) and not isinstance(v, bool) and v > 0

def _parse_bool(v):
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in ("true", "1", "yes")

def _table(data, name):
    """data[name] if it is a TOML table, else {}."""
    t = data.get(name)
    if t is None:
        return {}
    if not isinstance(t, dict):
        log.debug("ignoring [%s]: not a table", name)
        return {}
    return t

def apply(cfg, data):
    """Apply a parsed TOML mapping onto cfg. Invalid values keep the default."""
    c = _table(data, "cache")
    if isinstance(c.get("dir"), str) and c["dir"]:
        cfg.cache_dir = c["dir"]
    if "rate_ttl" in c:
        if _int_in(c["rate_ttl"], 10, 120):
            cfg.rate_cache_ttl = c["rate_ttl"]
        else:
            log.debug("ignoring cache.rate_ttl=%r", c["rate_ttl"])

    p = _table(data, "pace")
    if "work_days_per_week" in p:
        if _int_in(p["work_days_per_week"], 1, 7):
            cfg.work_days_per_week = p["work_days_per_week"]
        else:
            log.debug("ignoring pace.work_days_per_week=%r", p["work_days_per_week"])

    x = _table(data, "context")
    if _int_in(x.get("warning_threshold"), 1, 100):
        cfg.context_warning_threshold = x["warning_threshold"]

    w = _table(data, "cost")
    if "normalize" in w:
        cfg.cost_normalize = _parse_bool(w["normalize"])
    for key in ("opus", "sonnet", "haiku"):
        v = w.get(f"weight_{key}")
        if v is None:
            continue
        if _positive(v):
            setattr(cfg, f"cost_weight_{key}", float(v))
        else:
            log.debug("ignoring cost.weight_%s=%r", key, v)
    return cfg

def load_config(paths=None):
    """Load config from the first readable TOML file. Requires tomllib (3.11+) or tomli."""
    cfg = Config()

    for path in paths if paths is not None else config_paths():
        if not path.exists():
            continue
        try:
            try:
                import tomllib
            except ImportError:
                import tomli as tomllib  # type: ignore
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except Exception as e:
            log.debug("config %s unreadable: %s", path, e)
            continue
        apply(cfg, data)
        break

    # Env wins over the file
    if os.environ.get("CLAUDE_CODE_TMPDIR"):
        cfg.cache_dir = os.environ["CLAUDE_CODE_TMPDIR"]
    return cfg
