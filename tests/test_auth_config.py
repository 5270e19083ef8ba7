from __future__ import annotations

from relying_party.auth.config import DEFAULT_AUTHORITY, REDIRECT_URI, SCOPE, AuthConfig, load_auth_config


def _clear_env(monkeypatch) -> None:
    for name in (
        "CLIENT_ID",
        "CLIENT_SECRET_VALUE",
        "SECRET",
        "COOKIE_SECRET",
        "PORT",
        "AUTH_AUTHORITY",
        "AUTH_COOKIE_SECURE",
        "AUTH_SESSION_TTL_SECONDS",
        "AUTH_TOKEN_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    load_auth_config.cache_clear()


def test_defaults(monkeypatch) -> None:
    _clear_env(monkeypatch)
    cfg = load_auth_config()
    assert cfg.client_id is None
    assert cfg.redirect_uri == REDIRECT_URI
    assert cfg.scope == SCOPE
    assert cfg.authority == DEFAULT_AUTHORITY
    assert cfg.port == 3000
    assert cfg.session_ttl_seconds == 43200
    assert cfg.token_timeout_seconds is None
    # http redirect target -> non-secure cookies for local dev
    assert cfg.cookie_secure is False


def test_env_overrides(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("CLIENT_ID", " abc ")
    monkeypatch.setenv("CLIENT_SECRET_VALUE", "shh")
    monkeypatch.setenv("SECRET", "s1")
    monkeypatch.setenv("COOKIE_SECRET", "c1")
    monkeypatch.setenv("PORT", "8081")
    monkeypatch.setenv("AUTH_COOKIE_SECURE", "yes")
    monkeypatch.setenv("AUTH_TOKEN_TIMEOUT_SECONDS", "7.5")
    monkeypatch.setenv("AUTH_AUTHORITY", "http://localhost:18400/common")
    load_auth_config.cache_clear()

    cfg = load_auth_config()
    assert cfg.client_id == "abc"
    assert cfg.client_secret == "shh"
    assert cfg.session_secret == "s1"
    assert cfg.cookie_secret == "c1"
    assert cfg.port == 8081
    assert cfg.cookie_secure is True
    assert cfg.token_timeout_seconds == 7.5
    assert cfg.token_endpoint == "http://localhost:18400/common/oauth2/v2.0/token"


def test_session_ttl_has_floor(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("AUTH_SESSION_TTL_SECONDS", "5")
    load_auth_config.cache_clear()
    assert load_auth_config().session_ttl_seconds == 60


def test_endpoints_and_scope_string() -> None:
    cfg = AuthConfig(client_id="x", client_secret="y", authority="https://login.microsoftonline.com/common/")
    assert cfg.authorize_endpoint == "https://login.microsoftonline.com/common/oauth2/v2.0/authorize"
    assert cfg.token_endpoint == "https://login.microsoftonline.com/common/oauth2/v2.0/token"
    assert cfg.scope_string == "openid email profile"


def test_public_summary_hides_secrets() -> None:
    cfg = AuthConfig(client_id="x", client_secret="top-secret", session_secret="s", cookie_secret="c")
    summary = cfg.public_summary()
    assert "top-secret" not in str(summary)
    assert summary["client_secret_set"] is True
    assert summary["scope"] == ["openid", "email", "profile"]
