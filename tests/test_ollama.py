"""Unit tests for paceline.ollama (pytest)."""

import json

from fakes import FakeAPI, MemoryCache
from paceline.ollama import ContextLookup, read_stats, render_stats, savings, stats_path
from paceline.types import OllamaStats

PS = {"models": [
    {"name": "llama3:8b", "context_length": 8192},
    {"name": "qwen2.5-coder:7b", "context_length": 131072},
]}
SHOW = {"model_info": {"general.architecture": "qwen2", "qwen2.context_length": 32768}}

# ═══════════════════════ CONTEXT SIZE ═══════════════════════

class TestContextLookup:
    def test_running_model(self):
        store = MemoryCache()
        api = FakeAPI(ollama_ps=PS)
        assert ContextLookup("/c", store, api).get_context_size("qwen2.5-coder:7b") == 131072
        assert api.ollama_calls == ["ps"]
        assert store.files["/c/ollama_ctx_qwen2.5-coder_7b.txt"] == b"131072"

    def test_falls_back_to_show(self):
        api = FakeAPI(ollama_ps={"models": []}, ollama_show=SHOW)
        assert ContextLookup("/c", MemoryCache(), api).get_context_size("qwen2:7b") == 32768
        assert api.ollama_calls == ["ps", "show"]

    def test_ps_error_then_show(self):
        api = FakeAPI(ollama_show=SHOW)
        assert ContextLookup("/c", MemoryCache(), api).get_context_size("qwen2") == 32768

    def test_fresh_cache_skips_server(self):
        path = "/c/ollama_ctx_mistral.txt"
        api = FakeAPI(ollama_ps=PS)
        store = MemoryCache({path: b"65536"}, fresh=[path])
        assert ContextLookup("/c", store, api).get_context_size("mistral") == 65536
        assert api.ollama_calls == []

    def test_corrupt_cache_requeries(self):
        path = "/c/ollama_ctx_llama3_8b.txt"
        store = MemoryCache({path: b"nope"}, fresh=[path])
        assert ContextLookup("/c", store, FakeAPI(ollama_ps=PS)).get_context_size("llama3:8b") == 8192

    def test_server_down(self):
        store = MemoryCache()
        assert ContextLookup("/c", store, FakeAPI()).get_context_size("llama3") == 0
        assert store.files == {}

    def test_malformed_payloads(self):
        api = FakeAPI(ollama_ps={"models": "x"}, ollama_show={"model_info": {"a.context_length": "big"}})
        assert ContextLookup("/c", MemoryCache(), api).get_context_size("llama3") == 0

    def test_cache_key_sanitized(self):
        lookup = ContextLookup("/c", MemoryCache(), FakeAPI())
        assert lookup.cache_path("library/llama3:8b") == "/c/ollama_ctx_library_llama3_8b.txt"

# ═══════════════════════ STATS ═══════════════════════

class TestReadStats:
    def store(self, **fields):
        data = {"requests": 12, "total_prompt_tokens": 1_000_000, "total_completion_tokens": 200_000,
                "last_updated": 1000}
        data.update(fields)
        return MemoryCache({stats_path("/c"): json.dumps(data).encode()})

    def test_fresh(self):
        s = read_stats(self.store(), stats_path("/c"), now=1100)
        assert s == OllamaStats(12, 1_000_000, 200_000, 1000)

    def test_stale(self):
        assert read_stats(self.store(), stats_path("/c"), now=1000 + 301) is None

    def test_missing(self):
        assert read_stats(MemoryCache(), stats_path("/c"), now=0) is None

    def test_invalid(self):
        store = MemoryCache({stats_path("/c"): b"[1]"})
        assert read_stats(store, stats_path("/c"), now=0) is None
        store = MemoryCache({stats_path("/c"): b'{"requests": "many", "last_updated": 0}'})
        assert read_stats(store, stats_path("/c"), now=0) is None


class TestRenderStats:
    def test_with_savings(self):
        s = OllamaStats(12, 1_000_000, 200_000, 0)
        assert savings(s) == 0.5
        assert render_stats(s) == "12 req | saved ~$0.50"

    def test_below_a_cent(self):
        assert render_stats(OllamaStats(3, 100, 100, 0)) == "3 req"

    def test_empty(self):
        assert render_stats(None) == ""
        assert render_stats(OllamaStats()) == ""
        assert savings(None) == 0
