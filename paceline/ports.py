"""Collaborator protocols.

Production wiring uses ``Platform``, ``FileCache`` and ``CurlClient``; tests
pass in-memory fakes. Anything with matching methods works via duck typing.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Tuple, runtime_checkable

from .types import Credentials, SessionIdentity


@runtime_checkable
class CredentialProvider(Protocol):
    def get_credentials(self) -> Credentials: ...


@runtime_checkable
class CacheStore(Protocol):
    def atomic_write(self, path: str, data: bytes) -> None: ...

    def read_if_fresh(self, path: str, ttl: float) -> Tuple[Optional[bytes], bool]: ...

    def read(self, path: str) -> bytes: ...

    def write(self, path: str, data: bytes) -> None: ...

    def mtime(self, path: str) -> float: ...

    def clean_old(self, directory: str, pattern: str, keep: str) -> None: ...


@runtime_checkable
class APIClient(Protocol):
    def fetch_rate_limits(self, token: str) -> dict: ...

    def fetch_latest_release(self, repo: str) -> str: ...


@runtime_checkable
class ProcessDetector(Protocol):
    def has_claude_processes(self) -> bool: ...


@runtime_checkable
class PlatformInfo(Protocol):
    def get_stable_session_id(self) -> SessionIdentity: ...

    def count_work_days(self, start: datetime, end: datetime, work_days_per_week: int) -> float: ...


@runtime_checkable
class AgentCounter(Protocol):
    def count_agents(self) -> Tuple[int, bool]: ...


@runtime_checkable
class LocalModelAPI(Protocol):
    def fetch_ollama_ps(self, base_url: str) -> dict: ...

    def fetch_ollama_show(self, base_url: str, model: str) -> dict: ...


@runtime_checkable
class ContextSizeLookup(Protocol):
    def get_context_size(self, model: str) -> int: ...
