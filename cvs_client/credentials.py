# User value: signs every API call with a fresh service-account JWT so volume operations never run on stale auth.
from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Optional

from google.auth import exceptions as google_auth_exceptions
from google.auth import jwt

from cvs_client.errors import CredentialError

logger = logging.getLogger("cvs.credentials")

REASON_NO_SOURCE = "no credential source"
REASON_UNREADABLE_KEY_FILE = "unreadable key file"
REASON_MALFORMED_KEY = "malformed key"
REASON_ISSUANCE_FAILED = "token issuance failed"


# User value: accepts raw or base64 key JSON, same as GOOGLE_APPLICATION_CREDENTIALS_JSON deployments.
def _parse_key_material(raw: str) -> dict:
    text = raw.strip()
    try:
        info = json.loads(text)
    except ValueError:
        try:
            info = json.loads(base64.b64decode(text, validate=True))
        except (binascii.Error, ValueError) as exc:
            raise CredentialError(REASON_MALFORMED_KEY, "key is neither JSON nor base64 JSON") from exc
    if not isinstance(info, dict):
        raise CredentialError(REASON_MALFORMED_KEY, "key JSON must be an object")
    return info


def _read_key_file(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return fh.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise CredentialError(REASON_UNREADABLE_KEY_FILE, f"{path}: {exc}") from exc


# User value: one token per request keeps each volume call independently authorised.
def mint_token(
    *,
    credentials: Optional[str] = None,
    key_file: Optional[str] = None,
    audience: str,
) -> str:
    if credentials:
        raw = credentials
        source = "inline"
    elif key_file:
        raw = _read_key_file(key_file)
        source = "file"
    else:
        raise CredentialError(REASON_NO_SOURCE)

    info = _parse_key_material(raw)
    try:
        signer = jwt.Credentials.from_service_account_info(info, audience=audience)
    except (google_auth_exceptions.GoogleAuthError, ValueError, KeyError, TypeError) as exc:
        raise CredentialError(REASON_MALFORMED_KEY, str(exc)) from exc

    try:
        # Self-signed JWTs are produced locally; the request argument is unused.
        signer.refresh(None)
    except (google_auth_exceptions.GoogleAuthError, ValueError, TypeError) as exc:
        raise CredentialError(REASON_ISSUANCE_FAILED, str(exc)) from exc

    token = signer.token
    if isinstance(token, bytes):
        token = token.decode("utf-8")
    if not token:
        raise CredentialError(REASON_ISSUANCE_FAILED, "issuer returned an empty token")

    logger.debug("credential_minted source=%s audience=%s", source, audience)
    return token
