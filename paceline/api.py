"""HTTP lookups via curl: OAuth usage limits, latest GitHub release, local Ollama server."""

import json
import logging
import subprocess

from .errors import APIError

log = logging.getLogger(__name__)

USAGE_URL = "https://api.anthropic.com/api/oauth/usage"
RELEASES_URL = "https://api.github.com/repos/{repo}/releases/latest"


class CurlClient:
    def __init__(self, curl="curl"):
        self.curl = curl

    def _request(self, url, timeout, headers=(), data=None):
        """GET (or POST when data is given) url, return (status, body). Raises APIError on transport failure."""
        args = [self.curl, "-s", "--connect-timeout", str(timeout), "--max-time", str(timeout),
                "-w", "\n%{http_code}"]
        for h in headers:
            args += ["-H", h]
        if data is not None:
            args += ["-X", "POST", "--data", data]
        args.append(url)
        try:
            r = subprocess.run(args, capture_output=True, text=True, timeout=timeout + 2)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise APIError(f"fetching {url}: {e}") from e
        if r.returncode != 0:
            raise APIError(f"fetching {url}: curl exit {r.returncode}")
        body, _, code = r.stdout.rpartition("\n")
        try:
            return int(code), body
        except ValueError:
            raise APIError(f"fetching {url}: no status in curl output") from None

    def fetch_rate_limits(self, token):
        """Usage API response dict: {"five_hour": {...}, "seven_day": {...}, ...}."""
        status, body = self._request(USAGE_URL, 3, (
            f"Authorization: Bearer {token}",
            "anthropic-beta: oauth-2025-04-20",
            "Content-Type: application/json",
        ))
        if status != 200:
            raise APIError(f"API returned {status}: {body[:200]}")
        try:
            data = json.loads(body)
        except ValueError as e:
            raise APIError(f"decoding response: {e}") from e
        if not isinstance(data, dict):
            raise APIError("decoding response: not an object")
        return data

    def fetch_latest_release(self, repo):
        status, body = self._request(RELEASES_URL.format(repo=repo), 2,
                                 ("Accept: application/vnd.github+json",))
        if status != 200:
            raise APIError(f"GitHub API returned {status}")
        try:
            tag = json.loads(body).get("tag_name")
        except (ValueError, AttributeError) as e:
            raise APIError(f"decoding release: {e}") from e
        if not tag:
            raise APIError("release has no tag_name")
        log.debug("latest release of %s is %s", repo, tag)
        return tag

    # ═══════════════════════ OLLAMA ═══════════════════════

    def _ollama_json(self, url, data=None):
        headers = ("Content-Type: application/json",) if data is not None else ()
        status, body = self._request(url, 2, headers, data)
        if status != 200:
            raise APIError(f"Ollama returned {status}")
        try:
            result = json.loads(body)
        except ValueError as e:
            raise APIError(f"decoding Ollama response: {e}") from e
        if not isinstance(result, dict):
            raise APIError("decoding Ollama response: not an object")
        return result

    def fetch_ollama_ps(self, base_url):
        """Running models: {"models": [{"name": ..., "context_length": ...}, ...]}."""
        return self._ollama_json(f"{base_url}/api/ps")

    def fetch_ollama_show(self, base_url, model):
        """Model details, including ``model_info["<arch>.context_length"]``."""
        return self._ollama_json(f"{base_url}/api/show", json.dumps({"name": model}))
