from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger("cvs.status_machine")

STATE_ATTEMPTING = "ATTEMPTING"
STATE_SUCCEEDED = "SUCCEEDED"
STATE_FAILED = "FAILED"
STATE_EXHAUSTED = "EXHAUSTED"
STATE_CANCELLED = "CANCELLED"

TERMINAL_STATES = {STATE_SUCCEEDED, STATE_FAILED, STATE_EXHAUSTED, STATE_CANCELLED}

_ALLOWED = {
    None: {STATE_ATTEMPTING},
    STATE_ATTEMPTING: {
        STATE_ATTEMPTING,
        STATE_SUCCEEDED,
        STATE_FAILED,
        STATE_EXHAUSTED,
        STATE_CANCELLED,
    },
    STATE_SUCCEEDED: {STATE_SUCCEEDED},
    STATE_FAILED: {STATE_FAILED},
    STATE_EXHAUSTED: {STATE_EXHAUSTED},
    STATE_CANCELLED: {STATE_CANCELLED},
}


def _norm(state: Optional[str]) -> Optional[str]:
    if state is None:
        return None
    s = str(state).strip().upper()
    return s or None


def is_terminal(state: Optional[str]) -> bool:
    return _norm(state) in TERMINAL_STATES


def is_allowed_transition(current: Optional[str], target: Optional[str]) -> bool:
    target_n = _norm(target)
    if not target_n:
        return False
    current_n = _norm(current)
    allowed = _ALLOWED.get(current_n, set())
    return target_n in allowed


class OperationState:
    """Tracks one lifecycle operation from its first attempt to a terminal state."""

    def __init__(self, operation: str):
        self.operation = operation
        self.state: Optional[str] = None
        self.attempts = 0

    def advance(self, target: str) -> bool:
        target_n = _norm(target)
        if not is_allowed_transition(self.state, target_n):
            logger.warning(
                "operation_transition_blocked operation=%s current=%s target=%s",
                self.operation,
                self.state,
                target_n,
            )
            return False
        if target_n == STATE_ATTEMPTING:
            self.attempts += 1
        self.state = target_n
        return True

    @property
    def finished(self) -> bool:
        return is_terminal(self.state)
