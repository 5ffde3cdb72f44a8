"""`paceline setup`: register the statusline command in Claude's settings.json."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import SetupError

log = logging.getLogger(__name__)

DEFAULT_PLUGIN_ID = "statusline@jobrad-claude-marketplace"


@dataclass
class SetupResult:
    action: str   # "noop", "created", "updated"
    path: str
    message: str


def desired_settings(binary):
    return {"statusLine": {"type": "command", "command": binary}}


def deep_merge(dst, src):
    """New dict: src merged into dst, nested dicts merged, everything else overwritten."""
    out = dict(dst)
    for k, v in src.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def needs_update(current, desired):
    """True unless current already contains every key/value of desired."""
    for k, dv in desired.items():
        if k not in current:
            return True
        cv = current[k]
        if isinstance(dv, dict) and isinstance(cv, dict):
            if needs_update(cv, dv):
                return True
        elif cv != dv:
            return True
    return False


def find_settings_file(project_dir, plugin_id=DEFAULT_PLUGIN_ID):
    """Settings file that enables the plugin (project, then user), else user scope."""
    home = Path.home()
    user = home / ".claude" / "settings.json"
    for f in (Path(project_dir) / ".claude" / "settings.json", user):
        try:
            if plugin_id in f.read_text():
                return f
        except OSError:
            continue
    return user


def _dump(data):
    return (json.dumps(data, indent=2) + "\n").encode()


def setup(settings_path, binary, store):
    """Idempotently ensure settings_path points statusLine at binary."""
    path = str(settings_path)
    desired = desired_settings(binary)

    try:
        raw = store.read(path)
    except FileNotFoundError:
        try:
            store.atomic_write(path, _dump(desired))
        except OSError as e:
            raise SetupError(f"write {path}: {e}") from e
        return SetupResult("created", path, f"Statusline configured in {path}.")
    except OSError as e:
        raise SetupError(f"read {path}: {e}") from e

    try:
        current = json.loads(raw)
    except ValueError as e:
        raise SetupError(f"parse {path}: {e}") from e
    if not isinstance(current, dict):
        raise SetupError(f"parse {path}: top level is not an object")

    if not needs_update(current, desired):
        return SetupResult("noop", path, "Statusline ready.")

    try:
        store.atomic_write(path, _dump(deep_merge(current, desired)))
    except OSError as e:
        raise SetupError(f"write {path}: {e}") from e
    log.debug("updated %s", path)
    return SetupResult("updated", path, f"Statusline updated in {path}.")
