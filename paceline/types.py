"""Shared data types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class CostTier(str, Enum):
    """Pricing tier of a model. Sonnet is the 1.0 baseline."""

    BASELINE = "sonnet"
    HIGH = "opus"
    LOW = "haiku"


class SessionConfidence(str, Enum):
    STABLE = "stable"
    UNSTABLE = "unstable"


@dataclass(frozen=True)
class SessionIdentity:
    """Session id plus how far it can be trusted across invocations.

    STABLE ids come from ``CLAUDE_SESSION_ID`` or a ``claude`` ancestor process
    and survive repeated calls; UNSTABLE ids are a bare parent PID guess.
    """

    id: str
    confidence: SessionConfidence

    @property
    def stable(self) -> bool:
        return self.confidence is SessionConfidence.STABLE


@dataclass
class Credentials:
    oauth_token: str = ""
    api_key: str = ""

    @property
    def has_oauth(self) -> bool:
        return bool(self.oauth_token)


@dataclass
class Input:
    """Statusline snapshot from stdin, flattened."""

    model_id: str = ""
    display_name: str = ""
    context_window_size: int = 0
    used_percentage: Optional[float] = None
    input_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_cost_usd: float = 0.0
    total_duration_ms: int = 0
    total_lines_added: int = 0
    total_lines_removed: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "Input":
        m = data.get("model") or {}
        cw = data.get("context_window") or {}
        cu = cw.get("current_usage") or {}
        c = data.get("cost") or {}
        return cls(
            model_id=m.get("id") or m.get("model_id") or "",
            display_name=m.get("display_name") or "",
            context_window_size=int(cw.get("context_window_size") or 0),
            used_percentage=cw.get("used_percentage"),
            input_tokens=int(cu.get("input_tokens") or 0),
            cache_creation_input_tokens=int(cu.get("cache_creation_input_tokens") or 0),
            cache_read_input_tokens=int(cu.get("cache_read_input_tokens") or 0),
            total_input_tokens=int(cw.get("total_input_tokens") or 0),
            total_output_tokens=int(cw.get("total_output_tokens") or 0),
            total_cost_usd=float(c.get("total_cost_usd") or 0),
            total_duration_ms=int(c.get("total_duration_ms") or 0),
            total_lines_added=int(c.get("total_lines_added") or 0),
            total_lines_removed=int(c.get("total_lines_removed") or 0),
        )

    def is_empty(self) -> bool:
        return (not self.model_id and not self.display_name
                and self.context_window_size == 0 and self.total_duration_ms == 0)


@dataclass
class ModelInfo:
    short_name: str
    default_context: int
    is_local: bool = False
    cost_tier: CostTier = CostTier.BASELINE


@dataclass
class ContextDisplay:
    percent_used: int = 0
    tokens_used: int = 0
    tokens_total: int = 0
    is_initial: bool = False  # no tokens yet, show "--"
    lines_added: int = 0
    lines_removed: int = 0
    duration_min: int = 0


@dataclass
class RateLimitData:
    five_hour_percent: float = 0.0
    five_hour_reset: Optional[datetime] = None
    seven_day_percent: float = 0.0
    seven_day_reset: Optional[datetime] = None
    from_cache: bool = False


@dataclass
class PaceInfo:
    five_hour_pace: float = 0.0
    seven_day_pace: float = 0.0
    hitting_limit: bool = False
    reset_info: str = ""          # "25m @14:30", "45m" or ""
    seven_day_reset_fmt: str = ""  # "2d", "<1d" or ""


@dataclass
class BurnInfo:
    local_tpm: float = 0.0
    global_tpm: float = 0.0
    is_high_activity: bool = False


@dataclass(frozen=True)
class BurnState:
    """Daemon burn-rate record, persisted as claude_global_burn.json."""

    tokens_per_min: float = 0.0
    last_pct: float = 0.0
    last_time: int = 0  # unix seconds, 0 = never observed


@dataclass
class CostDisplay:
    session_cost: float = 0.0
    daily_cost: float = 0.0
    cost_per_hour: float = 0.0
    session_id: str = ""


@dataclass
class OllamaStats:
    """Usage written by the local-model agent to claude_ollama_stats.json."""

    requests: int = 0
    total_prompt_tokens: int = 0
    total_completion_tokens: int = 0
    last_updated: int = 0  # unix seconds
