"""
Relying-party helpers for the OAuth2 Authorization Code flow.

Design goals:
- Single provider (Microsoft Entra ID by default, any v2.0-style authority works).
- Signed cookies only; tokens stay server-side in the session store.
- Configuration is an explicit value handed to the app, not ambient state.
"""
