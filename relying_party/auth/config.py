"""
Relying-party configuration.

Client credentials and signing secrets come from the environment; the redirect URI and
the requested scopes are fixed for this deployment.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

REDIRECT_URI = "http://localhost:3000/auth/callback"
SCOPE: Tuple[str, ...] = ("openid", "email", "profile")
DEFAULT_AUTHORITY = "https://login.microsoftonline.com/common"
DEFAULT_PORT = 3000


@dataclass(frozen=True)
class AuthConfig:
    # Provider client registration
    client_id: Optional[str]
    client_secret: Optional[str]
    redirect_uri: str = REDIRECT_URI
    scope: Tuple[str, ...] = SCOPE
    authority: str = DEFAULT_AUTHORITY

    # Cookie signing
    session_secret: Optional[str] = None  # session id cookie
    cookie_secret: Optional[str] = None  # stateParam cookie
    session_ttl_seconds: int = 43200
    cookie_secure: bool = False

    # Outbound token request; None waits indefinitely.
    token_timeout_seconds: Optional[float] = None

    port: int = DEFAULT_PORT

    @property
    def authorize_endpoint(self) -> str:
        return f"{self.authority.rstrip('/')}/oauth2/v2.0/authorize"

    @property
    def token_endpoint(self) -> str:
        return f"{self.authority.rstrip('/')}/oauth2/v2.0/token"

    @property
    def scope_string(self) -> str:
        return " ".join(self.scope)

    def public_summary(self) -> dict:
        """Non-secret view of the configuration, safe to print or log."""
        return {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": list(self.scope),
            "authority": self.authority,
            "session_ttl_seconds": self.session_ttl_seconds,
            "cookie_secure": self.cookie_secure,
            "token_timeout_seconds": self.token_timeout_seconds,
            "port": self.port,
            "client_secret_set": bool(self.client_secret),
            "session_secret_set": bool(self.session_secret),
            "cookie_secret_set": bool(self.cookie_secret),
        }


def _env(name: str) -> Optional[str]:
    return (os.getenv(name, "") or "").strip() or None


def _parse_bool(value: Optional[str]) -> Optional[bool]:
    v = (value or "").strip().lower()
    if v in ("1", "true", "yes", "on"):
        return True
    if v in ("0", "false", "no", "off"):
        return False
    return None


@lru_cache(maxsize=1)
def load_auth_config() -> AuthConfig:
    """
    Load relying-party configuration from environment variables.

    CLIENT_ID / CLIENT_SECRET_VALUE identify the app registration; SECRET signs the
    session cookie and COOKIE_SECRET signs the stateParam cookie.
    """
    cookie_secure = _parse_bool(_env("AUTH_COOKIE_SECURE"))
    if cookie_secure is None:
        # Default: secure cookies when the redirect target is https; otherwise allow local dev.
        cookie_secure = REDIRECT_URI.startswith("https://")

    ttl = int(float(_env("AUTH_SESSION_TTL_SECONDS") or "43200"))  # 12h default
    if ttl <= 60:
        ttl = 60

    timeout_raw = _env("AUTH_TOKEN_TIMEOUT_SECONDS")
    token_timeout = float(timeout_raw) if timeout_raw else None
    if token_timeout is not None and token_timeout <= 0:
        token_timeout = None

    return AuthConfig(
        client_id=_env("CLIENT_ID"),
        client_secret=_env("CLIENT_SECRET_VALUE"),
        authority=_env("AUTH_AUTHORITY") or DEFAULT_AUTHORITY,
        session_secret=_env("SECRET"),
        cookie_secret=_env("COOKIE_SECRET"),
        session_ttl_seconds=ttl,
        cookie_secure=cookie_secure,
        token_timeout_seconds=token_timeout,
        port=int(_env("PORT") or DEFAULT_PORT),
    )
