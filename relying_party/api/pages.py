"""HTML for the browser-facing pages. Deliberately bare markup."""

from __future__ import annotations

LOGIN_LINK_TEXT = "Login with Microsoft Entra ID"


def render_index() -> str:
    return f'<a href="/auth">{LOGIN_LINK_TEXT}</a>'


def render_profile(claims_text: str) -> str:
    # Claims text is inserted as decoded, without escaping.
    return f'<h1>Profile</h1><span>{claims_text}</span><br><br><a href="/logout">logout</a>'
