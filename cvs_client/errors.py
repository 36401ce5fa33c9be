# User value: gives callers one error vocabulary so "backend busy" never looks like "backend rejected".
from __future__ import annotations

from typing import Optional


class CvsError(Exception):
    pass


class CredentialError(CvsError):
    def __init__(self, reason: str, detail: str = ""):
        self.reason = reason
        self.detail = detail
        super().__init__(f"{reason}: {detail}" if detail else reason)


class EncodingError(CvsError):
    pass


class TransportError(CvsError):
    pass


class FatalAPIError(CvsError):
    def __init__(self, operation: str, status_code: int, code: int, message: str):
        self.operation = operation
        self.status_code = status_code
        self.code = code
        self.message = message
        super().__init__(
            f"{operation} failed status={status_code} code={code} message={message}"
        )


class NotFoundError(FatalAPIError):
    pass


class ConflictError(CvsError):
    pass


class AmbiguousMatchError(CvsError):
    pass


class TransientAPIError(CvsError):
    def __init__(self, operation: str, kind: str, status_code: int, code: int, message: str):
        self.operation = operation
        self.kind = kind
        self.status_code = status_code
        self.code = code
        self.message = message
        super().__init__(
            f"{operation} transient kind={kind} status={status_code} code={code} message={message}"
        )


class RetryExhausted(CvsError):
    def __init__(self, operation: str, kind: str, attempts: int, last_error: TransientAPIError):
        self.operation = operation
        self.kind = kind
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{operation} still failing after {attempts} attempts kind={kind}: {last_error.message}"
        )


class OperationCancelledError(CvsError):
    def __init__(self, operation: str, last_error: Optional[CvsError] = None):
        self.operation = operation
        self.last_error = last_error
        suffix = f" last_error={last_error}" if last_error is not None else ""
        super().__init__(f"{operation} cancelled before next attempt{suffix}")
