# User value: tells callers whether the control plane is just busy or has really rejected the volume request.
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from cvs_client.contract import INTERNAL_ERROR_CODE
from cvs_client.errors import FatalAPIError, NotFoundError, TransientAPIError
from cvs_client.models import ApiErrorResponse

logger = logging.getLogger("cvs.error_catalog")

OUTCOME_SUCCESS = "SUCCESS"
OUTCOME_FATAL = "FATAL"
OUTCOME_TRANSIENT = "TRANSIENT"

CREATE_JOBS_EXHAUSTED = "CREATE_JOBS_EXHAUSTED"
DELETE_JOBS_EXHAUSTED = "DELETE_JOBS_EXHAUSTED"
DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"

SPAWN_JOB_CREATION_MESSAGE = (
    "Error creating volume - Cannot spawn additional jobs. "
    "Please wait for the ongoing jobs to finish and try again"
)
SPAWN_JOB_DELETION_MESSAGE = (
    "Error deleting volume - Cannot spawn additional jobs. "
    "Please wait for the ongoing jobs to finish and try again"
)
CONTEXT_DEADLINE_EXCEEDED_MESSAGE = (
    "Post http://cloud-volumes-service.sde.svc.cluster.local/v2/Volumes: "
    "context deadline exceeded"
)

# Exact (code, message) pairs the backend uses to mean "retry later".
TRANSIENT_ERRORS: Dict[Tuple[int, str], str] = {
    (INTERNAL_ERROR_CODE, SPAWN_JOB_CREATION_MESSAGE): CREATE_JOBS_EXHAUSTED,
    (INTERNAL_ERROR_CODE, SPAWN_JOB_DELETION_MESSAGE): DELETE_JOBS_EXHAUSTED,
    (INTERNAL_ERROR_CODE, CONTEXT_DEADLINE_EXCEEDED_MESSAGE): DEADLINE_EXCEEDED,
}


@dataclass(frozen=True)
class Outcome:
    kind: str
    status_code: int
    body: Any = None
    error: Optional[ApiErrorResponse] = None
    transient_kind: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.kind == OUTCOME_SUCCESS


def _raw_text(raw_body: Any) -> str:
    if raw_body is None:
        return ""
    if isinstance(raw_body, (bytes, bytearray)):
        return bytes(raw_body).decode("utf-8", errors="replace")
    return str(raw_body)


def is_success_status(status_code: int) -> bool:
    return 200 <= int(status_code) < 300


def is_client_error_status(status_code: int) -> bool:
    return 400 <= int(status_code) < 500


def decode_error_envelope(raw_body: Any) -> Optional[ApiErrorResponse]:
    """Return the ``{"code", "message"}`` envelope, or None if the body is not one."""
    try:
        data = json.loads(_raw_text(raw_body))
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    code = data.get("code")
    if isinstance(code, bool) or not isinstance(code, int):
        return None
    message = data.get("message")
    if message is None:
        message = ""
    if not isinstance(message, str):
        return None
    return ApiErrorResponse(code=code, message=message)


def transient_kind_for(error: ApiErrorResponse) -> Optional[str]:
    return TRANSIENT_ERRORS.get((error.code, error.message))


# User value: 4xx replies, unknown 500s and garbled bodies fail fast instead of retrying forever.
def classify_response(status_code: int, raw_body: Any, operation: str) -> Outcome:
    text = _raw_text(raw_body)

    if is_success_status(status_code):
        if not text.strip():
            return Outcome(kind=OUTCOME_SUCCESS, status_code=status_code, body=None)
        try:
            body = json.loads(text)
        except ValueError:
            logger.warning("response_undecodable operation=%s status=%s", operation, status_code)
            return Outcome(
                kind=OUTCOME_FATAL,
                status_code=status_code,
                error=ApiErrorResponse(code=status_code, message=text),
            )
        return Outcome(kind=OUTCOME_SUCCESS, status_code=status_code, body=body)

    envelope = decode_error_envelope(text)
    if envelope is None:
        logger.warning("error_envelope_undecodable operation=%s status=%s", operation, status_code)
        return Outcome(
            kind=OUTCOME_FATAL,
            status_code=status_code,
            error=ApiErrorResponse(code=status_code, message=text),
        )

    if is_client_error_status(status_code):
        logger.info(
            "response_fatal operation=%s status=%s code=%s message=%s",
            operation,
            status_code,
            envelope.code,
            envelope.message,
        )
        return Outcome(kind=OUTCOME_FATAL, status_code=status_code, error=envelope)

    if envelope.signals_success:
        # Retried calls can come back in the error framing with code 0; that is the real result.
        return Outcome(kind=OUTCOME_SUCCESS, status_code=status_code, body=json.loads(text))

    kind = transient_kind_for(envelope)
    if kind is not None:
        logger.info(
            "response_transient operation=%s status=%s kind=%s", operation, status_code, kind
        )
        return Outcome(
            kind=OUTCOME_TRANSIENT,
            status_code=status_code,
            error=envelope,
            transient_kind=kind,
        )

    logger.info(
        "response_fatal operation=%s status=%s code=%s message=%s",
        operation,
        status_code,
        envelope.code,
        envelope.message,
    )
    return Outcome(kind=OUTCOME_FATAL, status_code=status_code, error=envelope)


def transient_error_from(outcome: Outcome, operation: str) -> TransientAPIError:
    error = outcome.error or ApiErrorResponse()
    return TransientAPIError(
        operation=operation,
        kind=outcome.transient_kind or "",
        status_code=outcome.status_code,
        code=error.code,
        message=error.message,
    )


def raise_for_outcome(outcome: Outcome, operation: str) -> None:
    if outcome.is_success:
        return
    if outcome.kind == OUTCOME_TRANSIENT:
        raise transient_error_from(outcome, operation)
    error = outcome.error or ApiErrorResponse(code=outcome.status_code)
    exc_type = NotFoundError if outcome.status_code == 404 else FatalAPIError
    raise exc_type(
        operation=operation,
        status_code=outcome.status_code,
        code=error.code,
        message=error.message,
    )
