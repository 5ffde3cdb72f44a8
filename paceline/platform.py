"""OS adapter: credentials, process detection, session identity, calendar math."""

import json
import logging
import os
import shutil
import subprocess
import sys
from datetime import datetime, timezone
from pathlib import Path

from .errors import CredentialsError
from .types import Credentials, SessionConfidence, SessionIdentity

log = logging.getLogger(__name__)

KEYCHAIN_SERVICE = "Claude Code-credentials"
MAX_TREE_DEPTH = 10
AGENT_EXCLUDES = ("git", "pgrep", "rg ", "grep", "find ", "node_modules", "eslint", "prettier")


class Platform:
    def __init__(self, platform=None):
        self.platform = platform or sys.platform

    # ═══════════════════════ CREDENTIALS ═══════════════════════

    def get_credentials(self):
        """OAuth token from env, keychain or credentials file; API key from env."""
        api_key = os.environ.get("ANTHROPIC_API_KEY", "")
        for env in ("CLAUDE_CODE_OAUTH_TOKEN", "CLAUDE_OAUTH_TOKEN"):
            tok = os.environ.get(env)
            if tok:
                return Credentials(oauth_token=tok, api_key=api_key)

        tok = self._keyring_token()
        if not tok:
            tok = self._file_token()
        if tok:
            return Credentials(oauth_token=tok, api_key=api_key)
        if api_key:
            return Credentials(api_key=api_key)
        raise CredentialsError("no credentials found")

    def _keyring_token(self):
        if self.platform == "darwin":
            cmd = ["security", "find-generic-password", "-s", KEYCHAIN_SERVICE, "-w"]
        elif self.platform.startswith("linux"):
            # libsecret / GNOME Keyring via secret-tool
            if not shutil.which("secret-tool"):
                return None
            cmd = ["secret-tool", "lookup", "service", KEYCHAIN_SERVICE]
        else:
            return None
        try:
            r = subprocess.run(cmd, capture_output=True, text=True, timeout=5)
        except (OSError, subprocess.TimeoutExpired) as e:
            log.debug("keyring lookup failed: %s", e)
            return None
        if r.returncode != 0 or not r.stdout.strip():
            return None
        return _token_from(r.stdout.strip())

    def _file_token(self):
        home = Path.home()
        for p in (home / ".claude" / ".credentials.json", home / ".claude" / "credentials.json"):
            try:
                tok = _token_from(p.read_text())
            except OSError:
                continue
            if tok:
                return tok
        return None

    # ═══════════════════════ PROCESSES ═══════════════════════

    def has_claude_processes(self):
        try:
            r = subprocess.run(["pgrep", "-f", "[c]laude"], capture_output=True, text=True, timeout=5)
        except (OSError, subprocess.TimeoutExpired):
            return False
        return r.returncode == 0 and bool(r.stdout.strip())

    def count_agents(self):
        """(total, has_subagents) for running Claude Code main processes."""
        try:
            r = subprocess.run(["pgrep", "-af", "[c]laude"], capture_output=True, text=True, timeout=5)
        except (OSError, subprocess.TimeoutExpired):
            return 0, False
        if r.returncode != 0:
            return 0, False
        pids = set()
        for line in r.stdout.splitlines():
            fields = line.split()
            if len(fields) < 2 or not fields[0].isdigit():
                continue
            if is_claude_process(" ".join(fields[1:])):
                pids.add(int(fields[0]))
        return len(pids), len(pids) > 1

    # ═══════════════════════ SESSION ═══════════════════════

    def get_stable_session_id(self):
        sid = os.environ.get("CLAUDE_SESSION_ID")
        if sid:
            return SessionIdentity(sid, SessionConfidence.STABLE)
        pid = os.getppid()
        for _ in range(MAX_TREE_DEPTH):
            comm, ppid = self._proc_info(pid)
            if comm is None:
                break
            if "claude" in comm.lower():
                return SessionIdentity(str(pid), SessionConfidence.STABLE)
            if ppid <= 1:
                break
            pid = ppid
        # Bare parent PID changes between invocations
        return SessionIdentity(str(os.getppid()), SessionConfidence.UNSTABLE)

    def _proc_info(self, pid):
        """(comm, ppid) for pid, or (None, 0) when unavailable."""
        if self.platform.startswith("linux"):
            try:
                comm = Path(f"/proc/{pid}/comm").read_text().strip()
                status = Path(f"/proc/{pid}/status").read_text()
            except OSError:
                return None, 0
            for line in status.splitlines():
                if line.startswith("PPid:"):
                    fields = line.split()
                    if len(fields) >= 2 and fields[1].isdigit():
                        return comm, int(fields[1])
                    break
            return comm, 0
        try:
            r = subprocess.run(["ps", "-p", str(pid), "-o", "ppid=,comm="],
                               capture_output=True, text=True, timeout=5)
        except (OSError, subprocess.TimeoutExpired):
            return None, 0
        fields = r.stdout.split()
        if r.returncode != 0 or len(fields) < 2 or not fields[0].isdigit():
            return None, 0
        return " ".join(fields[1:]), int(fields[0])

    # ═══════════════════════ CALENDAR ═══════════════════════

    def count_work_days(self, start, end, work_days_per_week):
        """Days between start and end, scaled to work days (5 = Mon-Fri share)."""
        days = (end - start).total_seconds() / 86400
        if work_days_per_week >= 7:
            return days
        return days * work_days_per_week / 7


def _token_from(raw):
    """Access token from keytar/credentials JSON, or the raw string itself."""
    try:
        creds = json.loads(raw)
    except json.JSONDecodeError:
        # Might be raw token
        return raw.strip() or None
    if not isinstance(creds, dict):
        return None
    tok = creds.get("accessToken")
    if not tok:
        oauth = creds.get("claudeAiOauth") or {}
        tok = oauth.get("accessToken")
    return tok or None


def is_claude_process(cmdline):
    """Claude Code main process, not a helper child (git, rg, node_modules, ...)."""
    lower = cmdline.lower()
    if "claude" not in lower:
        return False
    return not any(ex in lower for ex in AGENT_EXCLUDES)


def parse_iso(s):
    """Parse ISO 8601 to datetime (UTC). Handles Z, +00:00, fractional sec."""
    if not s or s in ("null", ""):
        return None
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except (ValueError, AttributeError, TypeError):
        # Older Pythons reject 6+ digit fractions with offsets
        s2 = str(s).split(".")[0].rstrip("Z")
        for sep in ("+", "-"):
            idx = s2.rfind(sep)
            if idx > 10:
                s2 = s2[:idx]
                break
        try:
            return datetime.strptime(s2, "%Y-%m-%dT%H:%M:%S").replace(tzinfo=timezone.utc)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
