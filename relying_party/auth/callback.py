"""
Authorization-code callback as an explicit state machine.

    awaiting_code -> state_validated -> token_exchanged -> session_established
          \\                \\                  \\
           +----------------+------------------+--> rejected

Every transition checks the current state, so a token exchange can only ever follow a
successful state check.
"""
from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from relying_party.auth import oauth
from relying_party.auth.config import AuthConfig
from relying_party.auth.session import SessionRecord

logger = logging.getLogger(__name__)


class CallbackState(str, Enum):
    AWAITING_CODE = "awaiting_code"
    STATE_VALIDATED = "state_validated"
    TOKEN_EXCHANGED = "token_exchanged"
    SESSION_ESTABLISHED = "session_established"
    REJECTED = "rejected"


class RejectReason(str, Enum):
    INVALID_STATE = "invalid_state"
    MISSING_CODE = "missing_code"
    EXCHANGE_FAILED = "exchange_failed"


class InvalidTransition(RuntimeError):
    pass


@dataclass
class CallbackFlow:
    cfg: AuthConfig
    state: CallbackState = CallbackState.AWAITING_CODE
    reason: Optional[RejectReason] = None
    token_set: Optional[Dict[str, Any]] = None

    def _require(self, expected: CallbackState) -> None:
        if self.state != expected:
            raise InvalidTransition(f"expected {expected.value}, flow is {self.state.value}")

    def _reject(self, reason: RejectReason) -> bool:
        self.state = CallbackState.REJECTED
        self.reason = reason
        return False

    def validate_state(self, *, cookie_nonce: Optional[str], query_state: Optional[str]) -> bool:
        """Compare the signed cookie nonce with the provider-echoed `state`."""
        self._require(CallbackState.AWAITING_CODE)
        if not cookie_nonce or query_state is None:
            return self._reject(RejectReason.INVALID_STATE)
        if not hmac.compare_digest(cookie_nonce.encode("utf-8"), query_state.encode("utf-8")):
            return self._reject(RejectReason.INVALID_STATE)
        self.state = CallbackState.STATE_VALIDATED
        return True

    def exchange(
        self,
        code: Optional[str],
        *,
        provider_error: Optional[str] = None,
        exchange: Optional[Callable[..., Dict[str, Any]]] = None,
    ) -> bool:
        self._require(CallbackState.STATE_VALIDATED)
        if not code:
            logger.warning("Callback without authorization code (provider error=%s)", provider_error or "none")
            return self._reject(RejectReason.MISSING_CODE)

        fn = exchange or oauth.exchange_code_for_tokens
        try:
            self.token_set = fn(self.cfg, code=code)
        except oauth.TokenExchangeError as e:
            logger.error("Token exchange error: %s", str(e))
            return self._reject(RejectReason.EXCHANGE_FAILED)
        self.state = CallbackState.TOKEN_EXCHANGED
        return True

    def establish(self, session: SessionRecord) -> None:
        self._require(CallbackState.TOKEN_EXCHANGED)
        session.establish(self.token_set or {})
        self.state = CallbackState.SESSION_ESTABLISHED
