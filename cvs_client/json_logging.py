# User value: This file gives operators structured logs for every volume call without leaking credentials.
import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Optional


# Attributes every LogRecord carries; anything else on a record came in through ``extra=``.
_RESERVED_FIELDS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime", "taskName"}

_SENSITIVE_MARKERS = ("authorization", "token", "private_key", "credentials", "secret")
REDACTED = "[redacted]"

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _is_sensitive(key: str) -> bool:
    low = str(key).lower()
    return any(marker in low for marker in _SENSITIVE_MARKERS)


def _normalize(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, dict):
        out = {}
        for k, v in value.items():
            if _is_sensitive(k):
                out[str(k)] = REDACTED
                continue
            norm = _normalize(v)
            if norm is not None:
                out[str(k)] = norm
        return out
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    return str(value)


class JsonLogFormatter(logging.Formatter):
    def __init__(self, service: str):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = {k: v for k, v in vars(record).items() if k not in _RESERVED_FIELDS}
        for key, value in _normalize(extras).items():
            payload.setdefault(key, value)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False)


# User value: one call sets up logging for scripts and hosts embedding the client.
def configure_logging(service: str = "cvs-client", level: Optional[int] = None, fmt: Optional[str] = None) -> None:
    if level is None:
        level_name = os.getenv("LOG_LEVEL", "INFO").upper()
        level = getattr(logging, level_name, logging.INFO)
    fmt = (fmt or os.getenv("LOG_FORMAT", "json")).strip().lower()

    handler = logging.StreamHandler()
    if fmt == "text":
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    else:
        handler.setFormatter(JsonLogFormatter(service=service))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
