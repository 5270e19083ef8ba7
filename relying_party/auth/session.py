"""
Server-side sessions.

The browser only holds a signed, opaque session id; the record behind it (including the
provider token set) lives in a `SessionStore`. The in-memory store is process-local and
lost on restart.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from itsdangerous import BadSignature, BadTimeSignature, URLSafeTimedSerializer

from relying_party.auth.config import AuthConfig
from relying_party.auth.util import random_hex_token

SESSION_COOKIE_NAME = "rp_session"
SESSION_SALT = "relying-party-session-v1"


@dataclass
class SessionRecord:
    token_set: Optional[Dict[str, Any]] = None
    created_at: float = field(default_factory=time.time)
    # Set when a handler changes the record; only modified records are written back.
    modified: bool = field(default=False, compare=False)

    def establish(self, token_set: Dict[str, Any]) -> None:
        """Store the token set and restart the session lifetime from login."""
        self.token_set = token_set
        self.created_at = time.time()
        self.modified = True

    @property
    def authenticated(self) -> bool:
        return bool(self.token_set)


class SessionStore(Protocol):
    """
    Minimal session storage interface. Implementations can be in-process, Redis, etc.
    """

    def get(self, sid: str) -> Optional[SessionRecord]:
        """Return the record for `sid`, or None if unknown/expired."""

    def set(self, sid: str, record: SessionRecord) -> None:
        """Create or replace the record for `sid`."""

    def destroy(self, sid: str) -> None:
        """Remove the record for `sid` (no-op if absent)."""


class InMemorySessionStore:
    """
    Thread-safe dict-backed store.

    Records older than `ttl_seconds` are dropped on read, and `set` sweeps all expired
    records at most once per `sweep_interval_seconds`.
    """

    def __init__(self, ttl_seconds: int = 43200, sweep_interval_seconds: float = 60.0):
        self._records: Dict[str, SessionRecord] = {}
        self._lock = threading.Lock()
        self._ttl = ttl_seconds
        self._sweep_interval = sweep_interval_seconds
        self._last_sweep = time.time()

    def _expired(self, record: SessionRecord, now: float) -> bool:
        return now - record.created_at >= self._ttl

    def get(self, sid: str) -> Optional[SessionRecord]:
        with self._lock:
            record = self._records.get(sid)
            if record is None:
                return None
            if self._expired(record, time.time()):
                del self._records[sid]
                return None
            return record

    def set(self, sid: str, record: SessionRecord) -> None:
        with self._lock:
            now = time.time()
            if now - self._last_sweep >= self._sweep_interval:
                self._sweep_locked(now)
            self._records[sid] = record

    def sweep(self) -> int:
        """Drop every expired record; returns how many were removed."""
        with self._lock:
            return self._sweep_locked(time.time())

    def _sweep_locked(self, now: float) -> int:
        expired = [sid for sid, rec in self._records.items() if self._expired(rec, now)]
        for sid in expired:
            del self._records[sid]
        self._last_sweep = now
        return len(expired)

    def destroy(self, sid: str) -> None:
        with self._lock:
            self._records.pop(sid, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


def new_session_id() -> str:
    return random_hex_token(32)


def _serializer(cfg: AuthConfig) -> Optional[URLSafeTimedSerializer]:
    if not cfg.session_secret:
        return None
    return URLSafeTimedSerializer(secret_key=cfg.session_secret, salt=SESSION_SALT)


def sign_session_id(cfg: AuthConfig, sid: str) -> Optional[str]:
    s = _serializer(cfg)
    if s is None:
        return None
    return s.dumps(sid)


def unsign_session_id(cfg: AuthConfig, value: str | None) -> Optional[str]:
    if not value:
        return None
    s = _serializer(cfg)
    if s is None:
        return None
    try:
        sid = s.loads(value, max_age=cfg.session_ttl_seconds)
    except (BadSignature, BadTimeSignature, ValueError):
        return None
    return sid if isinstance(sid, str) and sid else None


def session_cookie_kwargs(cfg: AuthConfig, value: str) -> dict:
    return {
        "key": SESSION_COOKIE_NAME,
        "value": value,
        "max_age": cfg.session_ttl_seconds,
        "httponly": True,
        "secure": cfg.cookie_secure,
        "samesite": "lax",
        "path": "/",
    }


def clear_session_cookie_kwargs(cfg: AuthConfig) -> dict:
    kw = session_cookie_kwargs(cfg, "")
    kw["max_age"] = 0
    return kw
