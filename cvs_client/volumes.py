# -*- coding: utf-8 -*-
"""
Volume lifecycle operations.

Every operation takes the ``CvsApiClient`` explicitly; the project used for
URLs and default network paths comes from the client's ``ClientConfig``.

Create and delete run through the transient retry loop; lookups and update
are single calls.
"""

import logging
import random
import time
from typing import Callable, List, Optional

from cvs_client.api_client import CvsApiClient
from cvs_client.contract import (
    DEFAULT_VOLUME_TYPE,
    VERB_CREATE,
    VERB_FETCH,
    VERB_REMOVE,
    VERB_REPLACE,
    creation_token_path,
    network_path,
    volume_path,
    volumes_path,
)
from cvs_client.error_catalog import classify_response, raise_for_outcome
from cvs_client.errors import (
    AmbiguousMatchError,
    ConflictError,
    FatalAPIError,
    NotFoundError,
)
from cvs_client.models import CreateVolumeResult, VolumeRequest, VolumeResult
from cvs_client.utils.retry_policy import (
    CREATE_POLICIES,
    DELETE_POLICIES,
    run_with_transient_retry,
)

logger = logging.getLogger("cvs.volumes")

# Envelope codes an update reply may carry when it went through.
UPDATE_OK_CODES = (0, 200)


def _fetch(api: CvsApiClient, path: str, operation: str):
    status_code, body = api.call_api_method(VERB_FETCH, path, operation=operation)
    outcome = classify_response(status_code, body, operation)
    raise_for_outcome(outcome, operation)
    return outcome


def _expect_object(outcome, operation: str) -> dict:
    if not isinstance(outcome.body, dict):
        raise FatalAPIError(operation, outcome.status_code, outcome.status_code, f"unexpected response body: {outcome.body!r}")
    return outcome.body


def _expect_list(outcome, operation: str) -> list:
    if outcome.body is None:
        return []
    if not isinstance(outcome.body, list):
        raise FatalAPIError(operation, outcome.status_code, outcome.status_code, f"unexpected response body: {outcome.body!r}")
    return outcome.body


# =========================================================
# Lookups
# =========================================================
def get_volume_by_id(api: CvsApiClient, request: VolumeRequest) -> VolumeResult:
    operation = "getVolumeByID"
    outcome = _fetch(api, volume_path(request.region, request.volume_id), operation)
    return VolumeResult.from_dict(_expect_object(outcome, operation))


def get_volumes_by_region(api: CvsApiClient, region: str) -> List[VolumeResult]:
    operation = "getVolumeByRegion"
    outcome = _fetch(api, volumes_path(region), operation)
    return [VolumeResult.from_dict(v) for v in _expect_list(outcome, operation)]


def get_volume_by_name_or_creation_token(api: CvsApiClient, request: VolumeRequest) -> VolumeResult:
    """
    Find one volume in ``request.region`` by creation token, name, or both.

    A token is authoritative: when it matches, a supplied name must agree.
    A name alone must match exactly one volume.
    """
    if not request.name and not request.creation_token:
        raise ValueError("Either creation token or volume name or both are required")

    operation = "getVolumeByNameOrCreationToken"
    outcome = _fetch(api, volumes_path(request.region), operation)
    volumes = [VolumeResult.from_dict(v) for v in _expect_list(outcome, operation)]

    if request.creation_token:
        for volume in volumes:
            if volume.creation_token != request.creation_token:
                continue
            if request.name and volume.name != request.name:
                raise ConflictError(
                    f"Given creation token {request.creation_token} does not match given volume name {request.name}"
                )
            return volume
        raise NotFoundError(operation, 404, 404, f"Given creation token does not exist: {request.creation_token}")

    matches = [v for v in volumes if v.name == request.name]
    if len(matches) > 1:
        raise AmbiguousMatchError(f"Found more than one volume named {request.name} in {request.region}")
    if not matches:
        raise NotFoundError(operation, 404, 404, f"No volume found for: {request.name}")
    return matches[0]


# =========================================================
# Create
# =========================================================
def create_volume_creation_token(api: CvsApiClient, request: VolumeRequest) -> str:
    operation = "createVolumeCreationToken"
    status_code, body = api.call_api_method(
        VERB_FETCH,
        creation_token_path(request.region),
        request.to_params(),
        operation=operation,
    )
    outcome = classify_response(status_code, body, operation)
    raise_for_outcome(outcome, operation)
    token = VolumeResult.from_dict(_expect_object(outcome, operation)).creation_token
    if not token:
        raise FatalAPIError(operation, status_code, 0, "response carried no creation token")
    return token


# User value: keeps create idempotent so a busy backend never ends up with duplicate volumes.
def create_volume(
    api: CvsApiClient,
    request: VolumeRequest,
    vol_type: str = DEFAULT_VOLUME_TYPE,
    *,
    rng: Optional[random.Random] = None,
    sleep: Callable[[float], None] = time.sleep,
    should_cancel: Optional[Callable[[], bool]] = None,
    deadline: Optional[float] = None,
) -> CreateVolumeResult:
    operation = "createVolume"

    if not request.creation_token:
        request.creation_token = create_volume_creation_token(api, request)
        logger.info("creation_token_minted region=%s name=%s token=%s", request.region, request.name, request.creation_token)

    project = request.shared_vpc_project_number or api.config.project_number
    # Rendered once: every retry replays this exact body, creation token included.
    params = request.to_params(network=network_path(project, request.network))
    path = volumes_path(request.region, vol_type)

    outcome = run_with_transient_retry(
        operation=operation,
        send=lambda: api.call_api_method(VERB_CREATE, path, params, operation=operation),
        policies=CREATE_POLICIES,
        rng=rng,
        sleep=sleep,
        should_cancel=should_cancel,
        deadline=deadline,
    )
    result = CreateVolumeResult.from_dict(_expect_object(outcome, operation))
    logger.info(
        "volume_create_submitted region=%s name=%s token=%s volume_id=%s",
        request.region,
        request.name,
        request.creation_token,
        result.volume_id,
    )
    return result


# =========================================================
# Update
# =========================================================
def update_volume(api: CvsApiClient, request: VolumeRequest) -> None:
    operation = "updateVolume"
    status_code, body = api.call_api_method(
        VERB_REPLACE,
        volume_path(request.region, request.volume_id),
        request.to_params(),
        operation=operation,
    )
    outcome = classify_response(status_code, body, operation)
    raise_for_outcome(outcome, operation)

    # The API can report a logical failure inside a 2xx envelope.
    envelope = outcome.body if isinstance(outcome.body, dict) else {}
    code = envelope.get("code") or 0
    message = envelope.get("message") or ""
    if code not in UPDATE_OK_CODES or message:
        raise FatalAPIError(operation, status_code, code, message)
    logger.info("volume_updated region=%s volume_id=%s", request.region, request.volume_id)


# =========================================================
# Delete
# =========================================================
def delete_volume(
    api: CvsApiClient,
    request: VolumeRequest,
    *,
    rng: Optional[random.Random] = None,
    sleep: Callable[[float], None] = time.sleep,
    should_cancel: Optional[Callable[[], bool]] = None,
    deadline: Optional[float] = None,
) -> None:
    operation = "deleteVolume"
    path = volume_path(request.region, request.volume_id)
    run_with_transient_retry(
        operation=operation,
        send=lambda: api.call_api_method(VERB_REMOVE, path, operation=operation),
        policies=DELETE_POLICIES,
        rng=rng,
        sleep=sleep,
        should_cancel=should_cancel,
        deadline=deadline,
    )
    logger.info("volume_delete_submitted region=%s volume_id=%s", request.region, request.volume_id)
