"""Cost-tier normalization.

Burn rate, cost/hour and pace are scaled by the model's price relative to
Sonnet so an Opus session reads as the budget pressure it actually causes.
Every helper returns ``(value, approximate)``; ``approximate`` drives the
``≈`` marker and is never True while normalization is switched off.
"""

from .types import CostTier


def cost_multiplier(tier, cfg):
    if tier is CostTier.HIGH:
        return cfg.cost_weight_opus
    if tier is CostTier.LOW:
        return cfg.cost_weight_haiku
    return cfg.cost_weight_sonnet


def is_non_baseline(tier):
    return tier is not CostTier.BASELINE


def _normalize(value, tier, cfg):
    if not cfg.cost_normalize:
        return value, False
    return value * cost_multiplier(tier, cfg), is_non_baseline(tier)


def normalize_burn_rate(tpm, tier, cfg):
    """Tokens/min scaled by tier weight."""
    return _normalize(tpm, tier, cfg)


def normalize_pace(pace, tier, cfg):
    return _normalize(pace, tier, cfg)


def normalize_cost_per_hour(cph, tier, cfg):
    return _normalize(cph, tier, cfg)
