"""Entry point: `paceline` (statusline), `paceline --daemon`, `paceline setup`."""

import argparse
import json
import logging
import os
import sys
from datetime import datetime

from . import __version__, context, cost, daemon, model, ollama, ratelimit, render, settings, update
from .api import CurlClient
from .cache import FileCache
from .config import load_config
from .errors import CredentialsError, DaemonRunningError, SetupError
from .platform import Platform
from .types import Credentials, Input

log = logging.getLogger(__name__)

# ═══════════════════════ STATUSLINE ═══════════════════════

def build_line(inp, cfg, plat, store, api, now=None):
    """Assemble the full statusline for a non-empty snapshot."""
    info = model.resolve(inp.model_id, inp.display_name, ollama.ContextLookup(cfg.cache_dir, store, api))
    ctx = context.calculate(inp, info, cfg)

    try:
        creds = plat.get_credentials()
    except CredentialsError as e:
        log.debug("no credentials: %s", e)
        creds = Credentials()

    # Model name colored by context pressure, agent count when subagents run
    model_sec = render.color(info.short_name, render.color_for_percent(ctx.percent_used))
    total, has_sub = plat.count_agents()
    if has_sub:
        model_sec += render.dim(f" ({total})")
    sections = [model_sec, context.render_section(ctx, cfg)]

    if creds.has_oauth:
        rs = ratelimit.render_sections(inp, creds, cfg, plat, store, api, info.cost_tier, now)
        sections += [rs.five_hour, rs.burn, rs.seven_day]
    else:
        today = (now or datetime.now()).strftime("%Y-%m-%d")
        store.clean_old(cfg.cache_dir, f"{cost.TRACKER_PREFIX}*.txt", f"{cost.TRACKER_PREFIX}{today}.txt")
        cs = cost.render_sections(inp, cfg, plat, store, info.cost_tier, now)
        sections += [cs.session, cs.daily, cs.burn]

    sections.append(render.dim(f"{ctx.duration_min}m"))

    lines = ""
    if ctx.lines_added or ctx.lines_removed:
        lines = f" {render.dim('│')} {render.color(f'+{ctx.lines_added}', render.GR)}/{render.color(f'-{ctx.lines_removed}', render.RD)}"

    local = ""
    stats = ollama.render_stats(ollama.read_stats(store, ollama.stats_path(cfg.cache_dir),
                                                  now.timestamp() if now else None))
    if stats:
        local = render.SEP + render.dim(stats)

    return render.SEP.join(sections) + lines + local + update.render_notice(cfg.version, cfg.cache_dir, store, api)


def build_starting(cfg, plat, store, api):
    """Placeholder for an empty snapshot: 'Starting...' plus cached 5h usage."""
    out = render.dim("Starting...")
    try:
        creds = plat.get_credentials()
    except CredentialsError:
        return out
    if creds.has_oauth:
        rate = ratelimit.render_short(creds, cfg, store, api)
        if rate:
            out += render.SEP + rate
    return out


def read_input(stream):
    """Input from the stdin JSON, or None when empty or malformed."""
    raw = stream.read()
    if not raw.strip():
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    return Input.from_dict(data)


def run_statusline():
    cfg = load_config()
    cfg.version = __version__
    if os.environ.get("PACELINE_DEBUG"):
        _debug_logging(cfg.cache_dir)

    plat, store, api = Platform(), FileCache(), CurlClient()
    try:
        inp = read_input(sys.stdin)
        if inp is None or inp.is_empty():
            out = build_starting(cfg, plat, store, api)
        else:
            out = build_line(inp, cfg, plat, store, api)
    except Exception:
        # Never break the host's statusline
        log.exception("statusline failed")
        out = render.dim("--")
    print(out)


def _debug_logging(cache_dir):
    handler = logging.FileHandler(os.path.join(cache_dir, "paceline.log"))
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root = logging.getLogger("paceline")
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)

# ═══════════════════════ DAEMON ═══════════════════════

def run_daemon():
    cfg = load_config()
    daemon.setup_logging()

    plat = Platform()
    try:
        creds = plat.get_credentials()
    except CredentialsError as e:
        print(f"daemon: no credentials: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        daemon.run(cfg, creds, plat, FileCache(), CurlClient())
    except DaemonRunningError:
        print("daemon: already running", file=sys.stderr)

# ═══════════════════════ SETUP ═══════════════════════

class _SetupParser(argparse.ArgumentParser):
    def error(self, message):
        raise SetupError(message)


def _print_json(key, value):
    print(json.dumps({key: value}))


def run_setup(argv):
    """Report via one JSON line. Always exits 0 so the host hook never fails."""
    parser = _SetupParser(prog="paceline setup", add_help=False)
    parser.add_argument("--binary", default="")
    parser.add_argument("--project-dir", default=".")
    parser.add_argument("--plugin-id", default=settings.DEFAULT_PLUGIN_ID)
    try:
        args = parser.parse_args(argv)
    except SetupError as e:
        _print_json("systemMessage", f"Statusline setup: {e}")
        return
    if not args.binary:
        _print_json("systemMessage", "Statusline setup: --binary is required.")
        return

    path = settings.find_settings_file(args.project_dir, args.plugin_id)
    try:
        result = settings.setup(path, args.binary, FileCache())
    except SetupError as e:
        _print_json("systemMessage", f"Statusline setup failed: {e}")
        return

    if result.action == "noop":
        _print_json("statusMessage", "Statusline ready.")
    elif result.action == "created":
        _print_json("statusMessage", "Statusline configured.")
    else:
        _print_json("statusMessage", result.message)

# ═══════════════════════ MAIN ═══════════════════════

def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if argv:
        if argv[0] in ("--version", "-v"):
            print(__version__)
            return
        if argv[0] == "--daemon":
            run_daemon()
            return
        if argv[0] == "setup":
            run_setup(argv[1:])
            return
    run_statusline()
