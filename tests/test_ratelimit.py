"""Unit tests for paceline.ratelimit (pytest)."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from fakes import OAUTH, FakeAPI, FakePlatform, MemoryCache
from paceline import ratelimit
from paceline.config import Config
from paceline.errors import RateLimitUnavailable
from paceline.types import BurnInfo, CostTier, Credentials, Input, PaceInfo, RateLimitData

NOW = datetime(2026, 3, 4, 12, 0, tzinfo=timezone.utc)
CACHE = "/c/claude_rate_limit_cache.json"


def iso(dt):
    return dt.strftime("%Y-%m-%dT%H:%M:%S.000000+00:00")


def response(h5=40.0, d7=20.0, h5_reset=timedelta(hours=3), d7_reset=timedelta(days=5)):
    return {
        "five_hour": {"utilization": h5, "resets_at": iso(NOW + h5_reset)},
        "seven_day": {"utilization": d7, "resets_at": iso(NOW + d7_reset)},
    }

# ═══════════════════════ PARSE ═══════════════════════

class TestParseResponse:
    def test_full(self):
        d = ratelimit.parse_response(response())
        assert d.five_hour_percent == 40.0
        assert d.five_hour_reset == NOW + timedelta(hours=3)
        assert d.seven_day_percent == 20.0
        assert d.from_cache is False

    def test_missing_windows(self):
        d = ratelimit.parse_response({})
        assert d.five_hour_percent == 0
        assert d.five_hour_reset is None
        assert d.seven_day_reset is None

    def test_null_reset(self):
        d = ratelimit.parse_response({"five_hour": {"utilization": 5, "resets_at": None}})
        assert d.five_hour_reset is None

# ═══════════════════════ LOAD ═══════════════════════

class TestLoad:
    def setup_method(self):
        self.cfg = Config(cache_dir="/c")

    def test_fresh_cache_skips_api(self):
        store = MemoryCache({CACHE: json.dumps(response(h5=12.0)).encode()}, fresh=[CACHE])
        api = FakeAPI(response=response(h5=99.0))
        assert ratelimit.load(OAUTH, self.cfg, store, api).five_hour_percent == 12.0
        assert api.calls == 0

    def test_api_result_cached(self):
        store = MemoryCache()
        api = FakeAPI(response=response(h5=33.0))
        d = ratelimit.load(OAUTH, self.cfg, store, api)
        assert d.five_hour_percent == 33.0
        assert CACHE in store.atomic
        assert json.loads(store.files[CACHE])["five_hour"]["utilization"] == 33.0

    def test_no_oauth(self):
        with pytest.raises(RateLimitUnavailable):
            ratelimit.load(Credentials(api_key="k"), self.cfg, MemoryCache(), FakeAPI(response={}))

    def test_no_oauth_still_reads_fresh_cache(self):
        store = MemoryCache({CACHE: json.dumps(response(h5=7.0)).encode()}, fresh=[CACHE])
        d = ratelimit.load(Credentials(api_key="k"), self.cfg, store, FakeAPI())
        assert d.five_hour_percent == 7.0

    def test_stale_fallback_flagged(self):
        store = MemoryCache({CACHE: json.dumps(response(h5=55.0)).encode()})
        d = ratelimit.load(OAUTH, self.cfg, store, FakeAPI(error="timeout"))
        assert d.five_hour_percent == 55.0
        assert d.from_cache is True

    def test_api_error_without_cache(self):
        with pytest.raises(RateLimitUnavailable):
            ratelimit.load(OAUTH, self.cfg, MemoryCache(), FakeAPI(error="timeout"))

    def test_corrupt_stale_cache(self):
        store = MemoryCache({CACHE: b"{broken"})
        with pytest.raises(RateLimitUnavailable):
            ratelimit.load(OAUTH, self.cfg, store, FakeAPI(error="timeout"))

# ═══════════════════════ DISPLAY ═══════════════════════

class TestDisplayPct:
    @pytest.mark.parametrize("pct,expected", [(0, 0), (49.5, 50), (49.4, 49), (100.4, 100), (-3, 0)])
    def test_rounding(self, pct, expected):
        assert ratelimit.display_pct(pct) == expected


class TestRenderBurn:
    def test_plain(self):
        out = ratelimit.render_burn(BurnInfo(local_tpm=1500), CostTier.BASELINE, Config())
        assert "1.5K" in out
        assert "≈" not in out
        assert "⚡" not in out

    def test_high_activity_bolt(self):
        out = ratelimit.render_burn(BurnInfo(local_tpm=1000, global_tpm=9000, is_high_activity=True),
                                    CostTier.BASELINE, Config())
        assert "⚡" in out

    def test_no_local(self):
        out = ratelimit.render_burn(BurnInfo(), CostTier.HIGH, Config())
        assert "--" in out
        assert "≈" not in out


class TestRenderSevenDay:
    def test_warning_over_budget(self):
        out = ratelimit.render_seven_day(RateLimitData(seven_day_percent=60),
                                         PaceInfo(seven_day_pace=1.4, seven_day_reset_fmt="2d"), False)
        assert "⚠️" in out
        assert "1.4x" in out
        assert "2d" in out

    def test_no_pace(self):
        out = ratelimit.render_seven_day(RateLimitData(seven_day_percent=3), PaceInfo(), False)
        assert "⚠️" not in out
        assert "3%" in out

# ═══════════════════════ SECTIONS ═══════════════════════

class TestRenderSections:
    def test_unavailable_placeholders(self):
        s = ratelimit.render_sections(Input(), Credentials(api_key="k"), Config(cache_dir="/c"),
                                      FakePlatform(), MemoryCache(), FakeAPI(), CostTier.BASELINE, NOW)
        assert s.five_hour.startswith("5h: ")
        assert "--" in s.five_hour
        assert "--" in s.burn
        assert "--" in s.seven_day

    def test_opus_session_end_to_end(self):
        inp = Input(model_id="claude-opus-4-6", input_tokens=80_000, cache_creation_input_tokens=5_000,
                    cache_read_input_tokens=5_000, total_duration_ms=300_000)
        api = FakeAPI(response=response(h5=40.0, h5_reset=timedelta(hours=3)))
        s = ratelimit.render_sections(inp, OAUTH, Config(cache_dir="/c"), FakePlatform(), MemoryCache(),
                                      api, CostTier.HIGH, NOW)
        # 18000 t/m local, x5 for Opus
        assert "≈" in s.burn
        assert "90.0K" in s.burn
        # 40% in 2h = 20%/h = 1.0x raw, x5 normalized
        assert "40%" in s.five_hour
        assert "≈" in s.five_hour
        assert "5.0x" in s.five_hour

    def test_sonnet_no_marker(self):
        inp = Input(input_tokens=30_000, total_duration_ms=600_000)
        api = FakeAPI(response=response())
        s = ratelimit.render_sections(inp, OAUTH, Config(cache_dir="/c"), FakePlatform(), MemoryCache(),
                                      api, CostTier.BASELINE, NOW)
        assert "≈" not in s.burn + s.five_hour + s.seven_day
        assert "3.0K" in s.burn


class TestRenderShort:
    def test_value(self):
        store = MemoryCache({CACHE: json.dumps(response(h5=42.4)).encode()}, fresh=[CACHE])
        assert "42%" in ratelimit.render_short(OAUTH, Config(cache_dir="/c"), store, FakeAPI())

    def test_unavailable(self):
        assert ratelimit.render_short(Credentials(), Config(cache_dir="/c"), MemoryCache(), FakeAPI()) == ""


class TestMalformedWindows:
    def test_non_object_windows_read_as_empty(self):
        d = ratelimit.parse_response({"five_hour": "garbage", "seven_day": 3})
        assert d.five_hour_percent == 0
        assert d.five_hour_reset is None
        assert d.seven_day_reset is None

    def test_bad_reset_type(self):
        d = ratelimit.parse_response({"five_hour": {"utilization": 10, "resets_at": 12345}})
        assert d.five_hour_percent == 10
        assert d.five_hour_reset is None

    def test_sections_render_from_garbage_cache(self):
        store = MemoryCache({CACHE: json.dumps({"five_hour": "garbage", "seven_day": 3}).encode()}, fresh=[CACHE])
        s = ratelimit.render_sections(Input(), OAUTH, Config(cache_dir="/c"), FakePlatform(), store,
                                      FakeAPI(), CostTier.BASELINE, NOW)
        assert "0%" in s.five_hour
        assert "0%" in s.seven_day
