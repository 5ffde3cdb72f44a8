"""Context-window usage."""

from . import render
from .burnrate import total_tokens
from .types import ContextDisplay


def calculate(inp, model, cfg):
    size = inp.context_window_size if inp.context_window_size > 0 else model.default_context
    tokens = total_tokens(inp)
    shown = min(tokens, size)

    calc_pct = shown * 100 // size if size > 0 else 0
    pct = calc_pct
    if inp.used_percentage and inp.used_percentage > 0 and tokens > 0:
        api_pct = int(inp.used_percentage)
        # API value goes stale after /clear or /compact
        pct = calc_pct if api_pct > 50 and calc_pct < 5 else api_pct
    pct = min(pct, 100)

    return ContextDisplay(
        percent_used=pct,
        tokens_used=shown,
        tokens_total=size,
        is_initial=tokens == 0 or (pct == 0 and inp.total_duration_ms == 0),
        lines_added=inp.total_lines_added,
        lines_removed=inp.total_lines_removed,
        duration_min=inp.total_duration_ms // 60_000,
    )


def render_section(d, cfg):
    """'Ctx: <bar> 42% (84.0K/200K)'."""
    pct_txt = "--" if d.is_initial else f"{d.percent_used}%"
    warn = ""
    if not d.is_initial and cfg.context_warning_threshold > 0 and d.percent_used >= cfg.context_warning_threshold:
        warn = " ⚠️"
    tokens = render.dim(f"({render.fmt_tok_f(d.tokens_used)}/{render.fmt_tok(d.tokens_total)})")
    return f"Ctx: {render.bar(d.percent_used)} {render.cpct(d.percent_used, pct_txt)}{warn} {tokens}"
