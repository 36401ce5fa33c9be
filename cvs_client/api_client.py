# -*- coding: utf-8 -*-
"""
HTTP transport for the Cloud Volumes Service API.

One call to ``call_api_method`` is one HTTP exchange: a freshly minted
bearer token, a JSON request, and the raw ``(status_code, body)`` back.
Classification and retries live above this layer.

Without an injected session each call opens and closes its own
``requests.Session``, so one client can be shared across threads. A caller
that injects a session owns it and its thread-safety.
"""

import logging
import time
from typing import Any, Callable, Optional, Tuple

import requests

from cvs_client.config import ClientConfig
from cvs_client.credentials import mint_token
from cvs_client.errors import TransportError
from cvs_client.request_builder import build_http_request

logger = logging.getLogger("cvs.api")

TokenMinter = Callable[..., str]


class CvsApiClient:
    def __init__(
        self,
        config: ClientConfig,
        session: Optional[requests.Session] = None,
        minter: TokenMinter = mint_token,
    ):
        self.config = config
        self._session = session
        self._minter = minter

    def url_for(self, path: str) -> str:
        return self.config.base_url + path.lstrip("/")

    def _mint(self) -> str:
        # Never cached: every request pays for its own token.
        return self._minter(
            credentials=self.config.credentials,
            key_file=self.config.service_account_file,
            audience=self.config.audience,
        )

    def _send(self, prepared: requests.PreparedRequest) -> requests.Response:
        if self._session is not None:
            return self._session.send(prepared, timeout=self.config.http_timeout_sec)
        with requests.Session() as session:
            return session.send(prepared, timeout=self.config.http_timeout_sec)

    def call_api_method(
        self,
        verb: str,
        path: str,
        params: Optional[Any] = None,
        *,
        operation: str = "",
    ) -> Tuple[int, bytes]:
        token = self._mint()
        prepared = build_http_request(verb, self.url_for(path), params, token)
        fields = {"operation": operation, "verb": prepared.method, "path": path}

        # Params only as a structured field; the JSON formatter redacts them.
        logger.debug("api_request operation=%s verb=%s path=%s", operation, prepared.method, path, extra={**fields, "params": params})
        t0 = time.monotonic()
        try:
            response = self._send(prepared)
        except requests.RequestException as exc:
            logger.error(
                "api_transport_failed operation=%s verb=%s path=%s error=%s",
                operation,
                prepared.method,
                path,
                exc,
                extra=fields,
            )
            raise TransportError(f"{operation or prepared.method} {path} failed: {exc}") from exc

        elapsed_ms = (time.monotonic() - t0) * 1000.0
        logger.info(
            "api_call operation=%s verb=%s path=%s status=%s elapsed_ms=%.1f",
            operation,
            prepared.method,
            path,
            response.status_code,
            elapsed_ms,
            extra={**fields, "status_code": response.status_code, "elapsed_ms": round(elapsed_ms, 1)},
        )
        return response.status_code, response.content
