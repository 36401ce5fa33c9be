# User value: This module makes retry/fail-fast decisions explicit so every volume failure is explainable.
from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Mapping

from cvs_client.error_catalog import OUTCOME_FATAL, OUTCOME_SUCCESS, Outcome

if TYPE_CHECKING:
    from cvs_client.utils.retry_policy import TransientRetryPolicy

ACTION_COMPLETE = "complete"
ACTION_FAIL_FAST = "fail_fast"
ACTION_RETRY = "retry_with_backoff"
ACTION_EXHAUSTED = "exhausted"

REASON_SUCCESS = "SUCCESS"
REASON_FATAL = "FATAL_API_ERROR"
REASON_NOT_RETRYABLE = "TRANSIENT_NOT_RETRYABLE_HERE"
REASON_BACKEND_BUSY = "TRANSIENT_BACKEND_BUSY"


# User value: classifies retry reason so callers see whether failure is transient or a real rejection.
def classify_recovery_reason(outcome: Outcome, policies: Mapping[str, "TransientRetryPolicy"]) -> str:
    if outcome.kind == OUTCOME_SUCCESS:
        return REASON_SUCCESS
    if outcome.kind == OUTCOME_FATAL:
        return REASON_FATAL
    if outcome.transient_kind not in policies:
        return REASON_NOT_RETRYABLE
    return REASON_BACKEND_BUSY


# User value: computes deterministic recovery action so retry behavior is predictable and testable.
def decide_recovery_action(
    *,
    outcome: Outcome,
    attempts_by_kind: Mapping[str, int],
    policies: Mapping[str, "TransientRetryPolicy"],
) -> Dict[str, object]:
    """
    ``attempts_by_kind`` counts attempts already finished per transient kind,
    including the one that produced ``outcome``.
    """
    reason = classify_recovery_reason(outcome, policies)

    if reason == REASON_SUCCESS:
        return {
            "recovery_action": ACTION_COMPLETE,
            "recovery_reason": reason,
            "recovery_attempt": 0,
            "recovery_max_attempts": 0,
            "retry_allowed": False,
        }
    if reason in (REASON_FATAL, REASON_NOT_RETRYABLE):
        return {
            "recovery_action": ACTION_FAIL_FAST,
            "recovery_reason": reason,
            "recovery_attempt": 0,
            "recovery_max_attempts": 0,
            "retry_allowed": False,
        }

    kind = outcome.transient_kind
    budget = max(0, int(policies[kind].max_attempts))
    attempt_now = max(0, int(attempts_by_kind.get(kind, 0)))
    retry_allowed = attempt_now < budget
    next_attempt = attempt_now + 1 if retry_allowed else attempt_now

    return {
        "recovery_action": ACTION_RETRY if retry_allowed else ACTION_EXHAUSTED,
        "recovery_reason": reason,
        "recovery_attempt": next_attempt,
        "recovery_max_attempts": budget,
        "retry_allowed": retry_allowed,
    }
