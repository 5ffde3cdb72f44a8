"""Rate-limit pace projection for the 5-hour and 7-day windows.

Pace is the ratio of the observed consumption rate to the rate that would
use exactly 100% by the time the window resets: 1.0x is on budget, 2.0x
runs out halfway through. Values above 1 are expected and kept unclamped.

5h: 20%/h is the sustainable baseline. The reset instant is rounded to the
nearest 5 minutes so API jitter does not make the countdown flicker.

7d: the window is measured in work days (``work_days_per_week``, default 5)
so a Mon-Fri user is not told they are behind on Saturday.
"""

import math
from datetime import datetime, timedelta, timezone

from .types import PaceInfo

FIVE_HOUR_SECS = 18_000
SUSTAINABLE_PCT_PER_HOUR = 20.0
RESET_ROUNDING_SECS = 300
DAY_SECS = 86_400


def calculate_pace(data, cfg, plat, now=None):
    now = now or datetime.now(timezone.utc)
    pace = PaceInfo()
    pace.five_hour_pace, pace.hitting_limit, pace.reset_info = five_hour_pace(data, now)
    pace.seven_day_pace, pace.seven_day_reset_fmt = seven_day_pace(data, cfg, plat, now)
    return pace


def five_hour_pace(data, now):
    """(pace, hitting_limit, reset_info) for the 5-hour window."""
    reset = data.five_hour_reset
    if reset is None:
        return 0.0, False, ""

    # Reset in the past only happens through clock skew
    remaining = max(0.0, (reset - now).total_seconds())

    reset_rounded = (int(reset.timestamp()) + RESET_ROUNDING_SECS // 2) // RESET_ROUNDING_SECS * RESET_ROUNDING_SECS
    remaining_rounded = max(0, reset_rounded - int(now.timestamp()))

    since_start = FIVE_HOUR_SECS - remaining
    if since_start <= 0:
        return 0.0, False, ""

    pct_per_hour = data.five_hour_percent / (since_start / 3600)
    pace = pct_per_hour / SUSTAINABLE_PCT_PER_HOUR

    hitting = False
    if pct_per_hour > 0:
        runway_secs = (100.0 - data.five_hour_percent) / pct_per_hour * 60 * 60
        hitting = runway_secs < remaining

    return pace, hitting, _reset_info(reset_rounded, remaining_rounded)


def _reset_info(reset_rounded, remaining_rounded):
    """'25m @14:30' within 30 min, '45m' within the hour, '' beyond."""
    h, m = remaining_rounded // 3600, remaining_rounded % 3600 // 60
    countdown = f"{h}h{m}m" if h else f"{m}m"
    if remaining_rounded <= 30 * 60:
        clock = datetime.fromtimestamp(reset_rounded).strftime("%H:%M")
        return f"{countdown} @{clock}"
    if remaining_rounded <= 60 * 60:
        return countdown
    return ""


def seven_day_pace(data, cfg, plat, now):
    """(pace, reset_fmt) for the 7-day window, pace rounded to one decimal."""
    reset = data.seven_day_reset
    if reset is None:
        return 0.0, ""

    remaining = max(0.0, (reset - now).total_seconds())
    days_left = int(remaining // DAY_SECS)
    calendar_elapsed = 7 - days_left
    if calendar_elapsed <= 0:
        return 0.0, ""

    wdpw = cfg.work_days_per_week
    start = reset - timedelta(days=7)
    work_elapsed = plat.count_work_days(start, start + timedelta(days=calendar_elapsed), wdpw)
    if work_elapsed <= 0.1:
        return 0.0, ""

    sustainable_per_day = 100.0 / wdpw
    actual_per_day = data.seven_day_percent / work_elapsed
    pace = _round1(actual_per_day / sustainable_per_day)

    reset_fmt = ""
    if days_left <= 3:
        reset_fmt = f"{days_left}d" if days_left > 0 else "<1d"
    return pace, reset_fmt


def _round1(x):
    # half away from zero, not banker's rounding
    return math.copysign(math.floor(abs(x) * 10 + 0.5) / 10, x)


def pace_level(pace):
    """'ok' below 1.0x, 'caution' below 1.5x, 'over' from 1.5x."""
    if pace < 1.0:
        return "ok"
    if pace < 1.5:
        return "caution"
    return "over"
