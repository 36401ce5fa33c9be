# User value: lets operators confirm config, credentials and API reachability before running volume jobs.
import json
import os
import sys
from typing import Optional

from cvs_client.api_client import CvsApiClient
from cvs_client.config import ClientConfig, load_config
from cvs_client.credentials import mint_token
from cvs_client.json_logging import configure_logging
from cvs_client.volumes import get_volumes_by_region


def _error(exc: Exception) -> str:
    return f"error:{exc.__class__.__name__}"


def check(config: Optional[ClientConfig] = None, region: Optional[str] = None, api: Optional[CvsApiClient] = None) -> dict:
    checks = {"config": "unknown", "credentials": "skipped", "api": "skipped"}

    if config is None:
        try:
            config = load_config()
        except RuntimeError as exc:
            checks["config"] = _error(exc)
            return {"status": "degraded", "checks": checks}
    checks["config"] = "ok"

    try:
        mint_token(
            credentials=config.credentials,
            key_file=config.service_account_file,
            audience=config.audience,
        )
        checks["credentials"] = "ok"
    except Exception as exc:
        checks["credentials"] = _error(exc)

    region = region or os.getenv("CVS_REGION")
    if region and checks["credentials"] == "ok":
        try:
            get_volumes_by_region(api or CvsApiClient(config), region)
            checks["api"] = "ok"
        except Exception as exc:
            checks["api"] = _error(exc)

    healthy = all(v in ("ok", "skipped") for v in checks.values())
    return {"status": "ok" if healthy else "degraded", "checks": checks}


if __name__ == "__main__":
    configure_logging(service="cvs-client-readiness")
    payload = check()
    print(json.dumps(payload, ensure_ascii=False))
    sys.exit(0 if payload["status"] == "ok" else 1)
