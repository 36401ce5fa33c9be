# User value: This file keeps volume create/delete moving while the control plane is saturated.
import logging
import os
import random
import time
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Tuple

from cvs_client.cancel import ensure_not_cancelled
from cvs_client.error_catalog import (
    CREATE_JOBS_EXHAUSTED,
    DEADLINE_EXCEEDED,
    DELETE_JOBS_EXHAUSTED,
    Outcome,
    classify_response,
    raise_for_outcome,
    transient_error_from,
)
from cvs_client.errors import CvsError, RetryExhausted, TransientAPIError
from cvs_client.recovery_policy import (
    ACTION_COMPLETE,
    ACTION_EXHAUSTED,
    ACTION_FAIL_FAST,
    decide_recovery_action,
)
from cvs_client.status_machine import (
    STATE_ATTEMPTING,
    STATE_CANCELLED,
    STATE_EXHAUSTED,
    STATE_FAILED,
    STATE_SUCCEEDED,
    OperationState,
)

logger = logging.getLogger("cvs.retry")

SendFn = Callable[[], Tuple[int, bytes]]
ClassifyFn = Callable[[int, bytes, str], Outcome]


# User value: supports _env_int so operators can tune retry budgets without a release.
def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return max(1, int(raw))
    except ValueError:
        logger.warning("Invalid %s=%s, using default=%s", name, raw, default)
        return default


# User value: supports _env_float so operators can tune backoff windows without a release.
def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return max(0.0, float(raw))
    except ValueError:
        logger.warning("Invalid %s=%s, using default=%s", name, raw, default)
        return default


@dataclass(frozen=True)
class TransientRetryPolicy:
    kind: str
    max_attempts: int
    min_delay_sec: float
    max_delay_sec: float


def _policy_from_env(kind: str, prefix: str, attempts: int, min_delay: float, max_delay: float) -> TransientRetryPolicy:
    low = _env_float(f"{prefix}_MIN_DELAY_SEC", min_delay)
    high = _env_float(f"{prefix}_MAX_DELAY_SEC", max_delay)
    return TransientRetryPolicy(
        kind=kind,
        max_attempts=_env_int(f"{prefix}_MAX_ATTEMPTS", attempts),
        min_delay_sec=min(low, high),
        max_delay_sec=max(low, high),
    )


CREATE_BUSY_POLICY = _policy_from_env(CREATE_JOBS_EXHAUSTED, "CVS_CREATE_BUSY", 10, 30.0, 50.0)
DEADLINE_POLICY = _policy_from_env(DEADLINE_EXCEEDED, "CVS_DEADLINE", 5, 5.0, 10.0)
DELETE_BUSY_POLICY = _policy_from_env(DELETE_JOBS_EXHAUSTED, "CVS_DELETE_BUSY", 10, 30.0, 50.0)

CREATE_POLICIES: Dict[str, TransientRetryPolicy] = {
    CREATE_BUSY_POLICY.kind: CREATE_BUSY_POLICY,
    DEADLINE_POLICY.kind: DEADLINE_POLICY,
}
DELETE_POLICIES: Dict[str, TransientRetryPolicy] = {
    DELETE_BUSY_POLICY.kind: DELETE_BUSY_POLICY,
}


def _compute_delay(policy: TransientRetryPolicy, rng: random.Random) -> float:
    return rng.uniform(policy.min_delay_sec, policy.max_delay_sec)


# User value: improves reliability when the control plane reports it is temporarily busy.
def run_with_transient_retry(
    *,
    operation: str,
    send: SendFn,
    policies: Mapping[str, TransientRetryPolicy],
    classify: ClassifyFn = classify_response,
    rng: Optional[random.Random] = None,
    sleep: Callable[[float], None] = time.sleep,
    should_cancel: Optional[Callable[[], bool]] = None,
    deadline: Optional[float] = None,
    on_retry: Optional[Callable[[int, TransientAPIError], None]] = None,
) -> Outcome:
    """
    Issue ``send`` until it succeeds, fails for good, or a transient budget runs out.

    ``send`` must replay the exact same request on every call. Each transient
    kind keeps its own attempt count against its policy.
    """
    rng = rng or random.Random()
    state = OperationState(operation)
    attempts_by_kind: Dict[str, int] = {}

    while True:
        state.advance(STATE_ATTEMPTING)
        try:
            status_code, body = send()
        except CvsError:
            state.advance(STATE_FAILED)
            raise

        outcome = classify(status_code, body, operation)
        if outcome.transient_kind:
            attempts_by_kind[outcome.transient_kind] = attempts_by_kind.get(outcome.transient_kind, 0) + 1

        decision = decide_recovery_action(
            outcome=outcome,
            attempts_by_kind=attempts_by_kind,
            policies=policies,
        )
        action = decision["recovery_action"]

        if action == ACTION_COMPLETE:
            state.advance(STATE_SUCCEEDED)
            if state.attempts > 1:
                logger.info(
                    "retry_recovered operation=%s attempts=%s",
                    operation,
                    state.attempts,
                    extra={"operation": operation, "total_attempts": state.attempts},
                )
            return outcome

        if action == ACTION_FAIL_FAST:
            state.advance(STATE_FAILED)
            raise_for_outcome(outcome, operation)

        kind = outcome.transient_kind
        last_error = transient_error_from(outcome, operation)

        if action == ACTION_EXHAUSTED:
            state.advance(STATE_EXHAUSTED)
            logger.error(
                "retry_exhausted operation=%s kind=%s attempts=%s/%s total_attempts=%s",
                operation,
                kind,
                attempts_by_kind[kind],
                decision["recovery_max_attempts"],
                state.attempts,
                extra={
                    "operation": operation,
                    "transient_kind": kind,
                    "attempt": attempts_by_kind[kind],
                    "max_attempts": decision["recovery_max_attempts"],
                    "total_attempts": state.attempts,
                },
            )
            raise RetryExhausted(operation, kind, attempts_by_kind[kind], last_error)

        policy = policies[kind]
        delay = _compute_delay(policy, rng)
        logger.warning(
            "retry_scheduled operation=%s kind=%s attempt=%s/%s delay_sec=%.3f",
            operation,
            kind,
            decision["recovery_attempt"],
            policy.max_attempts,
            delay,
            extra={
                "operation": operation,
                "transient_kind": kind,
                "attempt": decision["recovery_attempt"],
                "max_attempts": policy.max_attempts,
                "delay_sec": round(delay, 3),
            },
        )
        if on_retry:
            on_retry(state.attempts, last_error)
        sleep(delay)

        try:
            ensure_not_cancelled(
                operation,
                should_cancel=should_cancel,
                deadline=deadline,
                last_error=last_error,
            )
        except CvsError:
            state.advance(STATE_CANCELLED)
            raise
