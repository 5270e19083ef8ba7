from __future__ import annotations

from typing import Optional

from itsdangerous import BadSignature, BadTimeSignature, URLSafeTimedSerializer

from relying_party.auth.config import AuthConfig

STATE_COOKIE_NAME = "stateParam"
STATE_COOKIE_PATH = "/auth"
STATE_TTL_SECONDS = 5 * 60
STATE_SALT = "relying-party-state-v1"


def _serializer(cfg: AuthConfig) -> Optional[URLSafeTimedSerializer]:
    if not cfg.cookie_secret:
        return None
    return URLSafeTimedSerializer(secret_key=cfg.cookie_secret, salt=STATE_SALT)


def sign_state(cfg: AuthConfig, nonce: str) -> Optional[str]:
    s = _serializer(cfg)
    if s is None:
        return None
    return s.dumps(nonce)


def unsign_state(cfg: AuthConfig, value: str | None) -> Optional[str]:
    """
    Return the nonce from a signed stateParam cookie.

    Tampered, expired, or unsigned values yield None.
    """
    if not value:
        return None
    s = _serializer(cfg)
    if s is None:
        return None
    try:
        nonce = s.loads(value, max_age=STATE_TTL_SECONDS)
    except (BadSignature, BadTimeSignature, ValueError):
        return None
    if not isinstance(nonce, str) or not nonce:
        return None
    return nonce


def state_cookie_kwargs(cfg: AuthConfig, value: str) -> dict:
    return {
        "key": STATE_COOKIE_NAME,
        "value": value,
        "max_age": STATE_TTL_SECONDS,
        "httponly": True,
        "secure": cfg.cookie_secure,
        "samesite": "lax",
        "path": STATE_COOKIE_PATH,
    }


def clear_state_cookie_kwargs(cfg: AuthConfig) -> dict:
    kw = state_cookie_kwargs(cfg, "")
    kw["max_age"] = 0
    return kw
