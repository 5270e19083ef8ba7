from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from relying_party.auth.callback import CallbackFlow, CallbackState, InvalidTransition, RejectReason
from relying_party.auth.oauth import TokenExchangeError
from relying_party.auth.session import SessionRecord


def test_happy_path_walks_all_states(cfg) -> None:
    exchange = MagicMock(return_value={"id_token": "h.p.s"})
    flow = CallbackFlow(cfg)
    assert flow.state is CallbackState.AWAITING_CODE

    assert flow.validate_state(cookie_nonce="abc123", query_state="abc123") is True
    assert flow.state is CallbackState.STATE_VALIDATED

    assert flow.exchange("code-1", exchange=exchange) is True
    assert flow.state is CallbackState.TOKEN_EXCHANGED
    exchange.assert_called_once_with(cfg, code="code-1")

    session = SessionRecord()
    flow.establish(session)
    assert flow.state is CallbackState.SESSION_ESTABLISHED
    assert session.token_set == {"id_token": "h.p.s"}
    assert session.modified is True


@pytest.mark.parametrize(
    "cookie_nonce,query_state",
    [("abc123", "xyz999"), (None, "abc123"), ("abc123", None), ("", ""), ("abc123", "ABC123"), ("abc123", "abc123 ")],
)
def test_state_mismatch_rejects(cfg, cookie_nonce, query_state) -> None:
    flow = CallbackFlow(cfg)
    assert flow.validate_state(cookie_nonce=cookie_nonce, query_state=query_state) is False
    assert flow.state is CallbackState.REJECTED
    assert flow.reason is RejectReason.INVALID_STATE


def test_exchange_cannot_run_before_state_check(cfg) -> None:
    exchange = MagicMock()
    flow = CallbackFlow(cfg)
    with pytest.raises(InvalidTransition):
        flow.exchange("code", exchange=exchange)
    exchange.assert_not_called()


def test_rejected_flow_cannot_continue(cfg) -> None:
    exchange = MagicMock()
    flow = CallbackFlow(cfg)
    flow.validate_state(cookie_nonce="abc123", query_state="xyz999")
    with pytest.raises(InvalidTransition):
        flow.exchange("code", exchange=exchange)
    with pytest.raises(InvalidTransition):
        flow.establish(SessionRecord())
    exchange.assert_not_called()


def test_missing_code_rejects_without_exchange(cfg) -> None:
    exchange = MagicMock()
    flow = CallbackFlow(cfg)
    flow.validate_state(cookie_nonce="abc123", query_state="abc123")
    assert flow.exchange(None, provider_error="access_denied", exchange=exchange) is False
    assert flow.reason is RejectReason.MISSING_CODE
    exchange.assert_not_called()


def test_exchange_failure_rejects_and_leaves_session_alone(cfg) -> None:
    exchange = MagicMock(side_effect=TokenExchangeError("Token exchange failed (status=400)"))
    flow = CallbackFlow(cfg)
    flow.validate_state(cookie_nonce="abc123", query_state="abc123")
    assert flow.exchange("code", exchange=exchange) is False
    assert flow.state is CallbackState.REJECTED
    assert flow.reason is RejectReason.EXCHANGE_FAILED
    assert flow.token_set is None
    with pytest.raises(InvalidTransition):
        flow.establish(SessionRecord())
