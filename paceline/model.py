"""Model id -> short label, default context size and cost tier."""

from .types import CostTier, ModelInfo

DEFAULT_CLAUDE_CONTEXT = 200_000
DEFAULT_LOCAL_CONTEXT = 32_768

# Checked in order; 3.5 patterns before the generic ones
CLAUDE_PATTERNS = (
    (("opus-4-5", "opus-4.5"), "Opus 4.5", CostTier.HIGH),
    (("opus-4-6", "opus-4.6"), "Opus 4.6", CostTier.HIGH),
    (("sonnet-4-5", "sonnet-4.5"), "Sonnet 4.5", CostTier.BASELINE),
    (("3-5-sonnet", "sonnet-3.5", "sonnet-3-5"), "Sonnet 3.5", CostTier.BASELINE),
    (("sonnet-4",), "Sonnet 4", CostTier.BASELINE),
    (("3-opus", "opus-3"), "Opus 3", CostTier.HIGH),
    (("3-5-haiku", "haiku-3.5", "haiku-3-5"), "Haiku 3.5", CostTier.LOW),
    (("3-haiku", "haiku-3"), "Haiku 3", CostTier.LOW),
    (("haiku-4",), "Haiku 4", CostTier.LOW),
)

OLLAMA_NAMES = (
    ("qwen3-coder", "Qwen3"),
    ("qwen2.5-coder", "Qwen2.5"),
    ("llama3", "Llama3"),
    ("llama2", "Llama2"),
    ("codellama", "CodeLlama"),
    ("mistral", "Mistral"),
    ("deepseek", "DeepSeek"),
    ("phi", "Phi"),
)


def resolve(model_id, display_name="", lookup=None):
    """ModelInfo for model_id. lookup (get_context_size) sizes Ollama models."""
    lower = model_id.lower()

    if lower.startswith(("ollama:", "ollama/")):
        name = model_id.split(":", 1)[-1] if lower.startswith("ollama:") else model_id
        name = name.split("/", 1)[-1]
        ctx = DEFAULT_LOCAL_CONTEXT
        if lookup is not None:
            ctx = lookup.get_context_size(name) or ctx
        return ModelInfo("🦙 " + shorten_ollama_name(name), ctx, is_local=True)

    if "local" in lower:
        return ModelInfo("🦙 Local", DEFAULT_LOCAL_CONTEXT, is_local=True)

    for needles, label, tier in CLAUDE_PATTERNS:
        if any(n in lower for n in needles):
            return ModelInfo(label, DEFAULT_CLAUDE_CONTEXT, cost_tier=tier)

    name = display_name
    if name.startswith("Claude "):
        name = name[len("Claude "):]
    return ModelInfo(name or model_id, DEFAULT_CLAUDE_CONTEXT, cost_tier=detect_cost_tier(display_name))


def detect_cost_tier(display_name):
    lower = display_name.lower()
    if "opus" in lower:
        return CostTier.HIGH
    if "haiku" in lower:
        return CostTier.LOW
    return CostTier.BASELINE


def shorten_ollama_name(name):
    lower = name.lower()
    for prefix, short in OLLAMA_NAMES:
        if lower.startswith(prefix):
            return short
    # Drop the tag: "gemma:7b" -> "gemma"
    idx = name.find(":")
    return name[:idx] if idx > 0 else name
