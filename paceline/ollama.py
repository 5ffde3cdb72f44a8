"""Local Ollama models: context size lookup and agent usage stats.

Context size comes from the running server (``/api/ps``, then
``/api/show``) and is cached for 30 seconds per model. Stats are written by
an external agent; the section only shows while they are fresh.
"""

import json
import logging
import os
import time

from .errors import APIError
from .types import OllamaStats

log = logging.getLogger(__name__)

BASE_URL = "http://localhost:11434"
CTX_CACHE_TTL = 30  # seconds
STATS_FILE = "claude_ollama_stats.json"
STATS_MAX_AGE = 300  # seconds
# Haiku list price per million tokens, used for the savings estimate
HAIKU_INPUT_PER_M = 0.25
HAIKU_OUTPUT_PER_M = 1.25

# ═══════════════════════ CONTEXT SIZE ═══════════════════════

class ContextLookup:
    def __init__(self, cache_dir, store, api, base_url=BASE_URL):
        self.cache_dir = cache_dir
        self.store = store
        self.api = api
        self.base_url = base_url

    def cache_path(self, model):
        key = model.replace("/", "_").replace(":", "_")
        return os.path.join(self.cache_dir, f"ollama_ctx_{key}.txt")

    def get_context_size(self, model):
        """Context length for model, 0 when the server cannot tell."""
        path = self.cache_path(model)
        raw, fresh = self.store.read_if_fresh(path, CTX_CACHE_TTL)
        if fresh:
            try:
                size = int(raw.decode().strip())
            except (UnicodeDecodeError, ValueError):
                size = 0
            if size > 0:
                return size

        for query in (self._query_ps, self._query_show):
            try:
                size = query(model)
            except APIError as e:
                log.debug("ollama %s: %s", query.__name__, e)
                continue
            if size > 0:
                try:
                    self.store.write(path, str(size).encode())
                except OSError as e:
                    log.debug("ollama ctx cache write failed: %s", e)
                return size
        return 0

    def _query_ps(self, model):
        models = self.api.fetch_ollama_ps(self.base_url).get("models")
        if not isinstance(models, list):
            return 0
        want = model.lower()
        for m in models:
            if isinstance(m, dict) and want in str(m.get("name", "")).lower():
                return _positive_int(m.get("context_length"))
        return 0

    def _query_show(self, model):
        info = self.api.fetch_ollama_show(self.base_url, model).get("model_info")
        if not isinstance(info, dict):
            return 0
        for key, val in info.items():
            if key.endswith(".context_length"):
                size = _positive_int(val)
                if size:
                    return size
        return 0


def _positive_int(v):
    if isinstance(v, bool) or not isinstance(v, (int, float)) or v <= 0:
        return 0
    return int(v)

# ═══════════════════════ STATS ═══════════════════════

def stats_path(cache_dir):
    return os.path.join(cache_dir, STATS_FILE)


def read_stats(store, path, now=None):
    """Fresh OllamaStats, or None when missing, invalid or older than STATS_MAX_AGE."""
    try:
        data = json.loads(store.read(path))
    except (OSError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    try:
        stats = OllamaStats(
            requests=int(data.get("requests") or 0),
            total_prompt_tokens=int(data.get("total_prompt_tokens") or 0),
            total_completion_tokens=int(data.get("total_completion_tokens") or 0),
            last_updated=int(data.get("last_updated") or 0),
        )
    except (TypeError, ValueError):
        return None
    if (now if now is not None else time.time()) - stats.last_updated > STATS_MAX_AGE:
        return None
    return stats


def savings(stats):
    """Estimated dollars saved by running these tokens locally instead of on Haiku."""
    if stats is None:
        return 0.0
    return (stats.total_prompt_tokens / 1_000_000 * HAIKU_INPUT_PER_M
            + stats.total_completion_tokens / 1_000_000 * HAIKU_OUTPUT_PER_M)


def render_stats(stats):
    """'12 req | saved ~$0.42', '12 req' below a cent, '' without requests."""
    if stats is None or stats.requests == 0:
        return ""
    saved = savings(stats)
    if saved < 0.01:
        return f"{stats.requests} req"
    return f"{stats.requests} req | saved ~${saved:.2f}"
