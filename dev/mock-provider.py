#!/usr/bin/env python3
"""Mock identity provider (authorize + token endpoints) for local development.

Run the app with AUTH_AUTHORITY=http://localhost:18400/common to use it.
"""

import base64
import json
import sys
import time
from urllib.parse import urlencode

from flask import Flask, jsonify, redirect, request

app = Flask(__name__)

MOCK_CODE = "mock-authorization-code"


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _unsigned_id_token(client_id: str) -> str:
    now = int(time.time())
    header = {"alg": "none", "typ": "JWT"}
    claims = {
        "sub": "mock-user-1",
        "email": "dev@example.com",
        "name": "Dev User",
        "iss": "http://localhost:18400/common/v2.0",
        "aud": client_id,
        "iat": now,
        "exp": now + 3600,
    }
    return ".".join(
        [
            _b64url(json.dumps(header, separators=(",", ":")).encode("utf-8")),
            _b64url(json.dumps(claims, separators=(",", ":")).encode("utf-8")),
            "",
        ]
    )


@app.route("/<tenant>/oauth2/v2.0/authorize", methods=["GET"])
def authorize(tenant):
    """Skip the login UI: send the browser straight back with a code."""
    params = {"code": MOCK_CODE, "state": request.args.get("state", "")}
    return redirect(f"{request.args['redirect_uri']}?{urlencode(params)}", code=302)


@app.route("/<tenant>/oauth2/v2.0/token", methods=["POST"])
def token(tenant):
    """Return a token set for the mock code."""
    if request.form.get("grant_type") != "authorization_code" or request.form.get("code") != MOCK_CODE:
        return jsonify({"error": "invalid_grant"}), 400
    client_id = request.form.get("client_id", "")
    return jsonify(
        {
            "token_type": "Bearer",
            "scope": request.form.get("scope", ""),
            "expires_in": 3600,
            "access_token": "mock-access-token",
            "id_token": _unsigned_id_token(client_id),
        }
    )


@app.route("/healthz")
def health():
    """Health check endpoint."""
    return jsonify({"status": "ok"})


if __name__ == "__main__":
    print("Mock identity provider starting on http://0.0.0.0:18400", file=sys.stderr)
    app.run(host="0.0.0.0", port=18400, debug=False)
