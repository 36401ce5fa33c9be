# User value: builds every API request the same way so the control plane always sees valid JSON and auth.
from __future__ import annotations

import json
from typing import Any, Optional

import requests

from cvs_client.contract import BODYLESS_VERBS, SUPPORTED_VERBS
from cvs_client.errors import EncodingError


def build_headers(token: str) -> dict:
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {token}",
    }


def encode_body(body: Any) -> str:
    try:
        return json.dumps(body)
    except (TypeError, ValueError) as exc:
        raise EncodingError(f"Request body is not JSON serializable: {exc}") from exc


# User value: fetch/remove calls stay bodyless even when a caller passes parameters along.
def build_http_request(verb: str, url: str, body: Optional[Any], token: str) -> requests.PreparedRequest:
    method = str(verb or "").upper()
    if method not in SUPPORTED_VERBS:
        raise ValueError(f"Unsupported HTTP verb: {verb}")

    data = None
    if method not in BODYLESS_VERBS and body is not None:
        data = encode_body(body)

    return requests.Request(
        method=method,
        url=url,
        data=data,
        headers=build_headers(token),
    ).prepare()
