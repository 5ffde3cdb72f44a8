"""Claude Code statusline: model, context, 5h/7d pace, burn rate, cost.

Reads the statusline JSON snapshot from stdin and prints one ANSI line.
A background daemon (``paceline --daemon``) keeps the rate-limit cache and
a global burn-rate estimate warm while Claude Code processes are running.

Config: ~/.config/paceline/config.toml or ~/.claude/paceline.toml (optional)
Cache:  /tmp (or $CLAUDE_CODE_TMPDIR)
"""

import logging

__version__ = "0.4.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
