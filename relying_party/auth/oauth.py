from __future__ import annotations

from typing import Any, Dict
from urllib.parse import urlencode

import requests
from pydantic import ValidationError

from relying_party.auth.config import AuthConfig
from relying_party.auth.models import TokenResponse
from relying_party.auth.util import b64url_decode


class TokenExchangeError(ValueError):
    """The token endpoint could not be reached or returned an unusable response."""


def build_authorize_url(cfg: AuthConfig, *, state: str) -> str:
    """
    Build the provider authorization URL for the code flow.
    """
    if not cfg.client_id:
        raise ValueError("Client ID not configured (CLIENT_ID)")
    if not state:
        raise ValueError("state is required")

    params = {
        "client_id": cfg.client_id,
        "response_type": "code",
        "redirect_uri": cfg.redirect_uri,
        "response_mode": "query",
        "scope": cfg.scope_string,
        "state": state,
    }
    return f"{cfg.authorize_endpoint}?{urlencode(params)}"


def exchange_code_for_tokens(cfg: AuthConfig, *, code: str) -> Dict[str, Any]:
    """
    Exchange an authorization code for the provider token set.

    Returns the full response body. Raises TokenExchangeError on transport errors,
    non-2xx responses, and bodies without an `id_token`.
    """
    if not cfg.client_id or not cfg.client_secret:
        raise TokenExchangeError("Client ID/secret not configured")

    payload = {
        "client_id": cfg.client_id,
        "scope": cfg.scope_string,
        "code": code,
        "redirect_uri": cfg.redirect_uri,
        "grant_type": "authorization_code",
        "client_secret": cfg.client_secret,
    }
    try:
        r = requests.post(
            cfg.token_endpoint,
            data=payload,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=cfg.token_timeout_seconds,
        )
    except requests.RequestException as e:
        raise TokenExchangeError(f"Token request failed ({type(e).__name__})") from e

    if not 200 <= r.status_code < 300:
        # Provider error bodies can echo the code; keep only the status.
        raise TokenExchangeError(f"Token exchange failed (status={r.status_code})")
    try:
        data = r.json()
    except ValueError as e:
        raise TokenExchangeError("Token response is not JSON") from e
    if not isinstance(data, dict):
        raise TokenExchangeError("Invalid token response")
    try:
        TokenResponse.model_validate(data)
    except ValidationError as e:
        raise TokenExchangeError("Token response missing id_token") from e
    return data


def decode_id_token_payload(id_token: str) -> str:
    """
    Return the payload segment of a compact JWT as UTF-8 text.

    The signature is NOT verified; this is for display only.
    """
    parts = (id_token or "").split(".")
    if len(parts) < 2 or not parts[1]:
        raise ValueError("Malformed id_token")
    try:
        return b64url_decode(parts[1]).decode("utf-8")
    except (ValueError, UnicodeDecodeError) as e:
        raise ValueError("Malformed id_token payload") from e
