"""ANSI rendering helpers. Core modules hand over plain numbers and strings."""

from .pace import pace_level

# ═══════════════════════ ANSI ═══════════════════════

R  = "\033[0m"    # Reset
GR = "\033[32m"   # Green
YL = "\033[33m"   # Yellow
RD = "\033[31m"   # Red
CY = "\033[36m"   # Cyan
MG = "\033[35m"   # Magenta
DM = "\033[2m"    # Dim

SYM_BAR = ("█", "░")  # (filled, empty)
SEP = f"  {DM}│{R}  "

def color(txt, code):
    return f"{code}{txt}{R}"

def dim(txt):
    return f"{DM}{txt}{R}"

def color_for_percent(pct):
    """Green <50, yellow 50-79, red >=80."""
    if pct >= 80: return RD
    if pct >= 50: return YL
    return GR

def cpct(pct, txt):
    """Colorize by percentage."""
    return color(txt, color_for_percent(pct))

def cost_color(cost, warn, crit):
    if cost >= crit: return RD
    if cost >= warn: return YL
    return GR

def pace_colorize(pace):
    """'1.4x' green/yellow/red by pace level."""
    code = {"ok": GR, "caution": YL, "over": RD}[pace_level(pace)]
    return color(f"{pace:.1f}x", code)

# ═══════════════════════ HELPERS ═══════════════════════

def bar(pct, w=8):
    """Progress bar colored by percentage, clamped to 0-100."""
    pct = max(0, min(100, int(pct)))
    f = pct * w // 100
    return f"{color_for_percent(pct)}{SYM_BAR[0] * f}{DM}{SYM_BAR[1] * (w - f)}{R}"

def fmt_tok(t):
    """Tokens with 0 decimals: 200000 -> 200K, 32768 -> 33K, 500 -> 500."""
    t = int(t)
    if t >= 1000:
        return f"{t / 1000:.0f}K"
    return str(t)

def fmt_tok_f(t):
    """Tokens with 1 decimal: 100000 -> 100.0K, 1500 -> 1.5K."""
    t = int(t)
    if t >= 1000:
        return f"{t / 1000:.1f}K"
    return str(t)

def arrow(txt):
    """Dim arrow + cyan text, as used for reset countdowns."""
    return f"{DM}→{R}{CY}{txt}{R}"

def reset_countdown(info):
    """'25m @14:30' -> colored '→25m @14:30'."""
    if not info:
        return ""
    countdown, _, clock = info.partition(" @")
    out = arrow(countdown)
    if clock:
        out += f" {DM}@{R}{CY}{clock}{R}"
    return out
