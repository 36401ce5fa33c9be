# User value: This file makes sure the client is fully configured before it touches any volume.
import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

from cvs_client.contract import DEFAULT_API_HOST, DEFAULT_API_VERSION

logger = logging.getLogger("cvs.config")

DEFAULT_HTTP_TIMEOUT_SEC = 60


@dataclass(frozen=True)
class ClientConfig:
    project_number: str
    host: str = DEFAULT_API_HOST
    audience: str = DEFAULT_API_HOST
    api_version: str = DEFAULT_API_VERSION
    service_account_file: Optional[str] = None
    credentials: Optional[str] = None
    http_timeout_sec: float = DEFAULT_HTTP_TIMEOUT_SEC

    @property
    def base_url(self) -> str:
        return f"{self.host.rstrip('/')}/{self.api_version}/projects/{self.project_number}/locations/"


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _require_keys(keys: List[str], errors: List[str]) -> None:
    for key in keys:
        if _is_blank(os.getenv(key)):
            errors.append(f"{key} is required")


def _validate_int_range(
    key: str,
    errors: List[str],
    *,
    min_value: Optional[int] = None,
    max_value: Optional[int] = None,
) -> None:
    raw = os.getenv(key)
    if _is_blank(raw):
        return

    try:
        value = int(str(raw).strip())
    except ValueError:
        errors.append(f"{key} must be an integer")
        return

    if min_value is not None and value < min_value:
        errors.append(f"{key} must be >= {min_value}")
    if max_value is not None and value > max_value:
        errors.append(f"{key} must be <= {max_value}")


def _validate_url(key: str, errors: List[str]) -> None:
    value = os.getenv(key)
    if _is_blank(value):
        return
    if not (value.startswith("https://") or value.startswith("http://")):
        errors.append(f"{key} must start with http:// or https://")


# User value: reports every config problem at once instead of failing one key at a time.
def validate_config_env() -> None:
    errors: List[str] = []

    _require_keys(["CVS_PROJECT_NUMBER"], errors)
    if _is_blank(os.getenv("CVS_SERVICE_ACCOUNT_FILE")) and _is_blank(os.getenv("CVS_CREDENTIALS_JSON")):
        errors.append("one of CVS_SERVICE_ACCOUNT_FILE or CVS_CREDENTIALS_JSON is required")

    _validate_url("CVS_API_HOST", errors)
    _validate_int_range("CVS_HTTP_TIMEOUT_SEC", errors, min_value=1, max_value=600)

    if errors:
        for err in errors:
            logger.error("config_env_invalid %s", err)
        raise RuntimeError("Config env validation failed: " + "; ".join(errors))


def load_config(env_file: Optional[str] = None) -> ClientConfig:
    # .env is only a local-run convenience; real environment variables win.
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()
    validate_config_env()

    host = (os.getenv("CVS_API_HOST") or DEFAULT_API_HOST).strip()
    timeout_raw = os.getenv("CVS_HTTP_TIMEOUT_SEC")
    config = ClientConfig(
        project_number=os.environ["CVS_PROJECT_NUMBER"].strip(),
        host=host,
        audience=(os.getenv("CVS_AUDIENCE") or host).strip(),
        api_version=(os.getenv("CVS_API_VERSION") or DEFAULT_API_VERSION).strip(),
        service_account_file=os.getenv("CVS_SERVICE_ACCOUNT_FILE") or None,
        credentials=os.getenv("CVS_CREDENTIALS_JSON") or None,
        http_timeout_sec=float(int(timeout_raw)) if not _is_blank(timeout_raw) else DEFAULT_HTTP_TIMEOUT_SEC,
    )

    logger.info(
        "config_loaded project=%s host=%s api_version=%s credential_source=%s",
        config.project_number,
        config.host,
        config.api_version,
        "inline" if config.credentials else "file",
    )
    return config
