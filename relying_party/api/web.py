"""
Relying-party web app.

Five browser routes implement the OAuth2 Authorization Code flow against one identity
provider: `/` links to `/auth`, which redirects to the provider; the provider returns to
`/auth/callback`, which exchanges the code and stores the token set in the server-side
session; `/profile` shows the (unverified) identity-token claims; `/logout` ends the session.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse

from relying_party.api.pages import render_index, render_profile
from relying_party.auth.callback import CallbackFlow
from relying_party.auth.config import AuthConfig, load_auth_config
from relying_party.auth.oauth import build_authorize_url, decode_id_token_payload
from relying_party.auth.session import (
    SESSION_COOKIE_NAME,
    InMemorySessionStore,
    SessionRecord,
    SessionStore,
    clear_session_cookie_kwargs,
    new_session_id,
    session_cookie_kwargs,
    sign_session_id,
    unsign_session_id,
)
from relying_party.auth.state import (
    STATE_COOKIE_NAME,
    clear_state_cookie_kwargs,
    sign_state,
    state_cookie_kwargs,
    unsign_state,
)
from relying_party.auth.util import random_hex_token

logger = logging.getLogger(__name__)

router = APIRouter()


def get_config(request: Request) -> AuthConfig:
    return request.app.state.config


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def _is_sessionless_path(path: str) -> bool:
    # Probes should not mint a session per hit.
    return path == "/healthz"


def _redirect(url: str) -> RedirectResponse:
    resp = RedirectResponse(url=url, status_code=302)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/healthz")
def healthz() -> Dict[str, Any]:
    return {"ok": True}


@router.get("/", response_class=HTMLResponse)
async def index() -> HTMLResponse:
    return HTMLResponse(render_index())


@router.get("/auth")
async def auth_start(cfg: AuthConfig = Depends(get_config)) -> RedirectResponse:
    """Start the code flow: mint a state nonce, pin it in a signed cookie, go to the provider."""
    # No fallback: if the CSPRNG fails the request fails.
    nonce = random_hex_token(24)
    signed = sign_state(cfg, nonce)
    if not signed:
        raise HTTPException(status_code=500, detail="Cookie signing is not configured (COOKIE_SECRET)")
    try:
        url = build_authorize_url(cfg, state=nonce)
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))

    resp = _redirect(url)
    resp.set_cookie(**state_cookie_kwargs(cfg, signed))
    return resp


@router.get("/auth/callback")
def auth_callback(
    request: Request,
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    error_description: Optional[str] = Query(None),
    cfg: AuthConfig = Depends(get_config),
):
    """
    Provider redirect target.

    Runs in the threadpool: the token POST is blocking and is the only I/O here.
    """
    flow = CallbackFlow(cfg)
    cookie_nonce = unsign_state(cfg, request.cookies.get(STATE_COOKIE_NAME))

    if not flow.validate_state(cookie_nonce=cookie_nonce, query_state=state):
        logger.warning("Rejected callback: state mismatch (cookie_present=%s)", cookie_nonce is not None)
        resp = PlainTextResponse("Invalid State", status_code=422)
        resp.headers["Cache-Control"] = "no-store"
    elif not flow.exchange(code, provider_error=" - ".join(x for x in (error, error_description) if x) or None):
        resp = _redirect("/")
    else:
        flow.establish(request.state.session)
        logger.info("Session established")
        resp = _redirect("/profile")

    # The nonce is single-use whatever the outcome.
    resp.set_cookie(**clear_state_cookie_kwargs(cfg))
    return resp


@router.get("/profile")
async def profile(request: Request):
    session: SessionRecord = request.state.session
    if not session.authenticated:
        return _redirect("/")

    id_token = str((session.token_set or {}).get("id_token") or "")
    try:
        claims_text = decode_id_token_payload(id_token)
    except ValueError as e:
        logger.warning("Stored id_token could not be decoded: %s", str(e))
        return _redirect("/")

    resp = HTMLResponse(render_profile(claims_text))
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/logout")
async def logout(
    request: Request,
    cfg: AuthConfig = Depends(get_config),
    store: SessionStore = Depends(get_session_store),
) -> RedirectResponse:
    try:
        store.destroy(request.state.session_id)
    except Exception as e:
        # Logout always completes from the browser's point of view.
        logger.error("Session destroy failed: %s", str(e))
    request.state.session_destroyed = True

    resp = _redirect("/")
    resp.set_cookie(**clear_session_cookie_kwargs(cfg))
    return resp


def create_app(cfg: Optional[AuthConfig] = None, store: Optional[SessionStore] = None) -> FastAPI:
    """
    Build the app around an explicit config and session store.

    Both default to the environment config and a process-local in-memory store.
    """
    cfg = cfg if cfg is not None else load_auth_config()
    if not cfg.session_secret:
        raise ValueError("Session signing is not configured (SECRET)")
    if store is None:
        store = InMemorySessionStore(ttl_seconds=cfg.session_ttl_seconds)

    app = FastAPI(title="Relying-party login demo")
    app.state.config = cfg
    app.state.session_store = store

    @app.middleware("http")
    async def sessions(request: Request, call_next):
        """Attach the server-side session and log each request."""
        start_time = time.time()
        path = request.url.path or ""
        try:
            if _is_sessionless_path(path):
                response = await call_next(request)
                process_time = time.time() - start_time
                logger.debug("%s %s - %d (%.3fs)", request.method, path, response.status_code, process_time)
                return response

            sid = unsign_session_id(cfg, request.cookies.get(SESSION_COOKIE_NAME))
            record = store.get(sid) if sid else None
            is_new = record is None
            if record is None:
                sid = new_session_id()
                record = SessionRecord()
            request.state.session_id = sid
            request.state.session = record
            request.state.session_destroyed = False

            response = await call_next(request)

            # Unmodified records are not written back, so a concurrent logout sticks.
            if not request.state.session_destroyed and (is_new or record.modified):
                store.set(sid, record)
                # Re-issue on login so the cookie lifetime restarts with the record's.
                response.set_cookie(**session_cookie_kwargs(cfg, sign_session_id(cfg, sid)))
            record.modified = False

            process_time = time.time() - start_time
            logger.debug("%s %s - %d (%.3fs)", request.method, path, response.status_code, process_time)
            return response
        except Exception as e:
            process_time = time.time() - start_time
            logger.exception("%s %s - ERROR after %.3fs: %s", request.method, path, process_time, str(e))
            raise

    app.include_router(router)
    return app


def run(host: str = "0.0.0.0", port: Optional[int] = None) -> None:
    import uvicorn

    # Configure logging for the application
    log_level = os.getenv("LOG_LEVEL", "info").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Map Python logging levels to uvicorn log levels
    uvicorn_log_level = (
        log_level.lower() if log_level.lower() in ["critical", "error", "warning", "info", "debug", "trace"] else "info"
    )

    cfg = load_auth_config()
    port = port if port is not None else cfg.port
    app = create_app(cfg)

    logger.info("Server is running on %s:%d (log_level=%s)", host, port, log_level)
    uvicorn.run(app, host=host, port=port, log_level=uvicorn_log_level)
